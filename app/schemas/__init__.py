"""
Schemas Module
==============

This module provides Pydantic models for validating collaborator input.
"""

from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import ValidationError
from app.schemas.device import RegisterDeviceRequest
from app.schemas.measurement import MeasurementIn
from app.schemas.topology import CreateHomeRequest, CreateRoomRequest


def to_domain_error(exc: PydanticValidationError) -> ValidationError:
    """Flatten a pydantic error into the domain ValidationError."""
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return ValidationError(summary, detail={"errors": errors})


__all__ = [
    "CreateHomeRequest",
    "CreateRoomRequest",
    "MeasurementIn",
    "PydanticValidationError",
    "RegisterDeviceRequest",
    "to_domain_error",
]

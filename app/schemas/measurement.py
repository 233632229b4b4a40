"""
Measurement Schemas
===================

Pydantic model for readings arriving from ingestion collaborators (CSV
exports, BLE advertisements, direct calls). Range rules belong to the
measurement store; this model only normalizes types. Integer fields are
strict: text sources convert their columns before building the model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictInt, field_validator

from app.domain.devices import MacAddress
from app.domain.exceptions import InvalidDeviceId
from app.domain.measurement import Measurement
from app.utils.time import coerce_datetime


class MeasurementIn(BaseModel):
    """One reading as received from a collaborator"""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    device_id: MacAddress
    measured_at: datetime
    temperature_celsius: float
    humidity_percent: StrictInt
    co2_ppm: Optional[StrictInt] = None
    light_level: Optional[StrictInt] = None

    @field_validator("device_id", mode="before")
    def _coerce_device_id(cls, v):
        try:
            return MacAddress.parse(v)
        except InvalidDeviceId as exc:
            raise ValueError(str(exc)) from None

    @field_validator("measured_at", mode="before")
    def _coerce_measured_at(cls, v):
        parsed = coerce_datetime(v)
        if parsed is None:
            raise ValueError(f"Invalid timestamp '{v}'")
        return parsed

    def to_domain(self) -> Measurement:
        return Measurement(
            device_id=self.device_id,
            measured_at=self.measured_at,
            temperature_celsius=self.temperature_celsius,
            humidity_percent=self.humidity_percent,
            co2_ppm=self.co2_ppm,
            light_level=self.light_level,
        )

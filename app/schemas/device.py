"""
Device Schemas
==============

Pydantic models validating device registration input.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.devices import MacAddress
from app.domain.exceptions import InvalidDeviceId
from app.enums import SwitchBotDeviceType


class RegisterDeviceRequest(BaseModel):
    """Request model for registering a SwitchBot device"""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    device_id: MacAddress = Field(..., description="6-byte hardware address")
    type: SwitchBotDeviceType = Field(..., description="SwitchBot model")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    sort_order: int = Field(..., ge=0, strict=True, description="Global display position")

    @field_validator("device_id", mode="before")
    def _coerce_device_id(cls, v):
        try:
            return MacAddress.parse(v)
        except InvalidDeviceId as exc:
            raise ValueError(str(exc)) from None

    @field_validator("type", mode="before")
    def _coerce_device_type(cls, v):
        if isinstance(v, SwitchBotDeviceType):
            return v
        if isinstance(v, str):
            try:
                return SwitchBotDeviceType(v)
            except ValueError:
                pass
        raise ValueError(f"Unsupported device type '{v}'")

    @field_validator("name", mode="before")
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

"""
Measurement Value Object
========================
Immutable reading reported by a SwitchBot device at a single instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.devices import MacAddress
from app.domain.exceptions import OutOfRange, UnsupportedField
from app.enums.device import MeasurementField, SwitchBotDeviceType
from app.utils.time import from_storage

LIGHT_LEVEL_MIN = 0
LIGHT_LEVEL_MAX = 20


def validate_light_level(light_level: int | None) -> None:
    """Raise OutOfRange unless ``light_level`` is absent or within 0..20."""
    if light_level is None:
        return
    if not LIGHT_LEVEL_MIN <= light_level <= LIGHT_LEVEL_MAX:
        raise OutOfRange(
            f"light_level must be between {LIGHT_LEVEL_MIN} and {LIGHT_LEVEL_MAX}, got {light_level}",
            detail={"field": "light_level", "value": light_level},
        )


@dataclass(frozen=True)
class Measurement:
    device_id: MacAddress
    measured_at: datetime
    temperature_celsius: float
    humidity_percent: int
    co2_ppm: int | None = None
    light_level: int | None = None

    def __post_init__(self) -> None:
        validate_light_level(self.light_level)

    @property
    def reported_fields(self) -> frozenset[MeasurementField]:
        fields = set()
        if self.co2_ppm is not None:
            fields.add(MeasurementField.CO2_PPM)
        if self.light_level is not None:
            fields.add(MeasurementField.LIGHT_LEVEL)
        return frozenset(fields)

    def check_capabilities(self, device_type: SwitchBotDeviceType) -> None:
        """Raise UnsupportedField if the model cannot report an included field."""
        unsupported = sorted(f.value for f in self.reported_fields - device_type.capabilities)
        if unsupported:
            raise UnsupportedField(
                f"{device_type.value} does not report {', '.join(unsupported)}",
                detail={"device_id": str(self.device_id), "fields": unsupported},
            )

    @classmethod
    def from_row(cls, row: Any) -> "Measurement":
        return cls(
            device_id=MacAddress(bytes(row["device_id"])),
            measured_at=from_storage(row["measured_at"]),
            temperature_celsius=float(row["temperature_celsius"]),
            humidity_percent=int(row["humidity_percent"]),
            co2_ppm=row["co2_ppm"],
            light_level=row["light_level"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": str(self.device_id),
            "measured_at": self.measured_at.isoformat(),
            "temperature_celsius": self.temperature_celsius,
            "humidity_percent": self.humidity_percent,
            "co2_ppm": self.co2_ppm,
            "light_level": self.light_level,
        }

"""
Device-related Enumerations
============================

SwitchBot hardware models supported by the device registry and the
measurement fields each model is able to report.
"""

from __future__ import annotations

from enum import Enum


class MeasurementField(str, Enum):
    """Optional measurement fields whose presence depends on the device model."""

    CO2_PPM = "co2_ppm"
    LIGHT_LEVEL = "light_level"


class SwitchBotDeviceType(str, Enum):
    """
    Closed set of SwitchBot device models.

    Values match the persisted ``type`` column exactly, including the spaces
    and parentheses SwitchBot uses in its own product names.
    """

    HUB = "Hub"
    HUB_PLUS = "Hub Plus"
    HUB_MINI = "Hub Mini"
    HUB_2 = "Hub 2"
    HUB_3 = "Hub 3"
    METER = "Meter"
    METER_PLUS = "MeterPlus"
    WO_IO_SENSOR = "WoIOSensor"
    METER_PRO = "MeterPro"
    METER_PRO_CO2 = "MeterPro(CO2)"

    @classmethod
    def _missing_(cls, value: object) -> "SwitchBotDeviceType | None":
        """Accept member names (``HUB_2``) and case-insensitive product names."""
        if not isinstance(value, str):
            return None
        normalized = value.strip()
        by_name = cls.__members__.get(normalized.upper().replace(" ", "_"))
        if by_name is not None:
            return by_name
        for member in cls:
            if member.value.lower() == normalized.lower():
                return member
        return None

    @property
    def capabilities(self) -> frozenset[MeasurementField]:
        """Optional fields this model can report."""
        return DEVICE_CAPABILITIES[self]

    def supports(self, measurement_field: MeasurementField) -> bool:
        return measurement_field in DEVICE_CAPABILITIES[self]


_NONE: frozenset[MeasurementField] = frozenset()
_LIGHT = frozenset({MeasurementField.LIGHT_LEVEL})
_CO2 = frozenset({MeasurementField.CO2_PPM})

# Every member must appear here; tests assert the table is exhaustive.
DEVICE_CAPABILITIES: dict[SwitchBotDeviceType, frozenset[MeasurementField]] = {
    SwitchBotDeviceType.HUB: _NONE,
    SwitchBotDeviceType.HUB_PLUS: _NONE,
    SwitchBotDeviceType.HUB_MINI: _NONE,
    SwitchBotDeviceType.HUB_2: _LIGHT,
    SwitchBotDeviceType.HUB_3: _LIGHT,
    SwitchBotDeviceType.METER: _NONE,
    SwitchBotDeviceType.METER_PLUS: _NONE,
    SwitchBotDeviceType.WO_IO_SENSOR: _NONE,
    SwitchBotDeviceType.METER_PRO: _NONE,
    SwitchBotDeviceType.METER_PRO_CO2: _CO2,
}

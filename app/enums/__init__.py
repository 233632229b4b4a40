"""
Enums Module
============

Enumeration types shared across the ledger. Enums ensure type safety and
consistency between the registry, the measurement store and the BLE codec.
"""

from app.enums.device import DEVICE_CAPABILITIES, MeasurementField, SwitchBotDeviceType

__all__ = [
    "DEVICE_CAPABILITIES",
    "MeasurementField",
    "SwitchBotDeviceType",
]

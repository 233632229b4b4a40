"""Bluetooth LE advertisement decoding."""

from app.hardware.ble.switchbot import (
    SWITCHBOT_COMPANY_ID,
    SWITCHBOT_SERVICE_UUID,
    DecodedMeasurement,
    decode_advertisement,
    decode_manufacturer_data,
    detect_device_type,
)

__all__ = [
    "SWITCHBOT_COMPANY_ID",
    "SWITCHBOT_SERVICE_UUID",
    "DecodedMeasurement",
    "decode_advertisement",
    "decode_manufacturer_data",
    "detect_device_type",
]

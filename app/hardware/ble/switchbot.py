"""
SwitchBot BLE advertisement codec.

SwitchBot units broadcast readings without a connection. The model is the
first byte of the service data under :data:`SWITCHBOT_SERVICE_UUID`; the
readings live in the manufacturer data under :data:`SWITCHBOT_COMPANY_ID`,
at offsets that depend on the model.

Reference: OpenWonderLabs/SwitchBotAPI-BLE README.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from app.domain.exceptions import AdvertisementDecodeError
from app.domain.measurement import LIGHT_LEVEL_MAX
from app.enums.device import SwitchBotDeviceType

logger = logging.getLogger(__name__)

SWITCHBOT_COMPANY_ID = 0x0969
SWITCHBOT_SERVICE_UUID = uuid.UUID("0000fd3d-0000-1000-8000-00805f9b34fb")

HUMIDITY_MAX = 100

MODEL_BYTES: Dict[int, SwitchBotDeviceType] = {
    0x76: SwitchBotDeviceType.HUB_2,
    0x54: SwitchBotDeviceType.METER,
    0x69: SwitchBotDeviceType.METER_PLUS,
    0x77: SwitchBotDeviceType.WO_IO_SENSOR,
    0x35: SwitchBotDeviceType.METER_PRO_CO2,
}


@dataclass(frozen=True)
class DecodedMeasurement:
    device_type: SwitchBotDeviceType
    temperature_celsius: float
    humidity_percent: int
    co2_ppm: Optional[int] = None
    light_level: Optional[int] = None


# ==================== Field decoders ====================


def decode_temperature(lo: int, hi: int) -> float:
    """Low nibble of ``lo`` is tenths; ``hi`` holds the integer part and sign bit (set = positive)."""
    fraction = lo & 0x0F
    integral = hi & 0x7F
    sign = 1 if hi & 0x80 else -1
    return sign * (integral * 10 + fraction) / 10


def decode_humidity(value: int) -> int:
    humidity = value & 0x7F
    if humidity > HUMIDITY_MAX:
        raise AdvertisementDecodeError(
            f"humidity out of range: expected 0-{HUMIDITY_MAX}, got {humidity}",
            detail={"field": "humidity_percent", "value": humidity},
        )
    return humidity


def decode_light_level(value: int) -> int:
    light_level = value & 0x7F
    if light_level > LIGHT_LEVEL_MAX:
        raise AdvertisementDecodeError(
            f"light level out of range: expected 0-{LIGHT_LEVEL_MAX}, got {light_level}",
            detail={"field": "light_level", "value": light_level},
        )
    return light_level


def decode_co2(hi: int, lo: int) -> int:
    return int.from_bytes(bytes((hi, lo)), "big")


# ==================== Per-model layouts ====================


def _require_length(data: bytes, minimum: int, device_type: SwitchBotDeviceType) -> None:
    if len(data) < minimum:
        raise AdvertisementDecodeError(
            f"{device_type.value} manufacturer data too short: expected at least {minimum} bytes, got {len(data)}",
            detail={"device_type": device_type.value, "length": len(data)},
        )


def _decode_hub_2(data: bytes) -> DecodedMeasurement:
    _require_length(data, 17, SwitchBotDeviceType.HUB_2)
    return DecodedMeasurement(
        device_type=SwitchBotDeviceType.HUB_2,
        temperature_celsius=decode_temperature(data[13], data[14]),
        humidity_percent=decode_humidity(data[15]),
        light_level=decode_light_level(data[12]),
    )


def _decode_meter_plus(data: bytes) -> DecodedMeasurement:
    _require_length(data, 11, SwitchBotDeviceType.METER_PLUS)
    return DecodedMeasurement(
        device_type=SwitchBotDeviceType.METER_PLUS,
        temperature_celsius=decode_temperature(data[8], data[9]),
        humidity_percent=decode_humidity(data[10]),
    )


def _decode_wo_io_sensor(data: bytes) -> DecodedMeasurement:
    _require_length(data, 12, SwitchBotDeviceType.WO_IO_SENSOR)
    return DecodedMeasurement(
        device_type=SwitchBotDeviceType.WO_IO_SENSOR,
        temperature_celsius=decode_temperature(data[8], data[9]),
        humidity_percent=decode_humidity(data[10]),
    )


def _decode_meter_pro_co2(data: bytes) -> DecodedMeasurement:
    _require_length(data, 16, SwitchBotDeviceType.METER_PRO_CO2)
    return DecodedMeasurement(
        device_type=SwitchBotDeviceType.METER_PRO_CO2,
        temperature_celsius=decode_temperature(data[8], data[9]),
        humidity_percent=decode_humidity(data[10]),
        co2_ppm=decode_co2(data[13], data[14]),
    )


def _unsupported(device_type: SwitchBotDeviceType) -> Callable[[bytes], DecodedMeasurement]:
    def _decode(data: bytes) -> DecodedMeasurement:
        raise AdvertisementDecodeError(
            f"decoding {device_type.value} advertisements is not supported",
            detail={"device_type": device_type.value},
        )

    return _decode


DECODERS: Dict[SwitchBotDeviceType, Callable[[bytes], DecodedMeasurement]] = {
    SwitchBotDeviceType.HUB: _unsupported(SwitchBotDeviceType.HUB),
    SwitchBotDeviceType.HUB_PLUS: _unsupported(SwitchBotDeviceType.HUB_PLUS),
    SwitchBotDeviceType.HUB_MINI: _unsupported(SwitchBotDeviceType.HUB_MINI),
    SwitchBotDeviceType.HUB_2: _decode_hub_2,
    SwitchBotDeviceType.HUB_3: _unsupported(SwitchBotDeviceType.HUB_3),
    SwitchBotDeviceType.METER: _unsupported(SwitchBotDeviceType.METER),
    SwitchBotDeviceType.METER_PLUS: _decode_meter_plus,
    SwitchBotDeviceType.WO_IO_SENSOR: _decode_wo_io_sensor,
    SwitchBotDeviceType.METER_PRO: _unsupported(SwitchBotDeviceType.METER_PRO),
    SwitchBotDeviceType.METER_PRO_CO2: _decode_meter_pro_co2,
}


# ==================== Entry points ====================


def detect_device_type(service_data: bytes) -> SwitchBotDeviceType:
    if not service_data:
        raise AdvertisementDecodeError("SwitchBot service data is empty")
    model = service_data[0]
    try:
        return MODEL_BYTES[model]
    except KeyError:
        raise AdvertisementDecodeError(
            f"unknown SwitchBot device type: 0x{model:02x}", detail={"model_byte": model}
        ) from None


def decode_manufacturer_data(device_type: SwitchBotDeviceType, data: bytes) -> DecodedMeasurement:
    return DECODERS[device_type](bytes(data))


def _service_payload(service_data: Mapping[Any, bytes]) -> Optional[bytes]:
    for key, payload in service_data.items():
        try:
            key_uuid = key if isinstance(key, uuid.UUID) else uuid.UUID(str(key))
        except ValueError:
            continue
        if key_uuid == SWITCHBOT_SERVICE_UUID:
            return bytes(payload)
    return None


def decode_advertisement(
    manufacturer_data: Mapping[int, bytes],
    service_data: Mapping[Any, bytes],
) -> DecodedMeasurement:
    """
    Decode one SwitchBot advertisement.

    Args:
        manufacturer_data: Company id -> payload
        service_data: Service UUID (``uuid.UUID`` or string) -> payload

    Raises:
        AdvertisementDecodeError: not a SwitchBot frame, unknown or unsupported model,
            truncated payload, or a field outside its wire range
    """
    service_payload = _service_payload(service_data)
    if service_payload is None:
        raise AdvertisementDecodeError(f"SwitchBot service data not found: {SWITCHBOT_SERVICE_UUID}")
    device_type = detect_device_type(service_payload)

    payload = manufacturer_data.get(SWITCHBOT_COMPANY_ID)
    if payload is None:
        raise AdvertisementDecodeError(f"SwitchBot manufacturer data not found: 0x{SWITCHBOT_COMPANY_ID:04x}")

    return decode_manufacturer_data(device_type, payload)

"""
SwitchBot Advertisement Ingestor
================================

Turns passively scanned SwitchBot BLE advertisements into stored
measurements.

This service is strictly responsible for:
1. Identity resolution (advertiser address -> registered device).
2. Decoding (delegated to :mod:`app.hardware.ble.switchbot`).
3. Persistence through the MeasurementStore, stamped with the receive time.

The scanner itself (adapter handling, scan loop) is a collaborator that
feeds :class:`Advertisement` objects in. A bad advertisement never stops the
loop: it is logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional

from app.domain.devices import Device, MacAddress
from app.domain.exceptions import AdvertisementDecodeError, DuplicateMeasurement, InvalidDeviceId, ValidationError
from app.domain.measurement import Measurement
from app.hardware.ble.switchbot import decode_advertisement
from app.utils.time import coerce_datetime, utc_now

if TYPE_CHECKING:
    from app.services.application.device_registry import DeviceRegistry
    from app.services.application.measurement_store import MeasurementStore

logger = logging.getLogger(__name__)


class NoOpMetrics:
    """Default no-op implementation for the metrics interface."""

    def inc(self, name: str, value: int = 1, **labels: Any) -> None:
        return


@dataclass(frozen=True)
class Advertisement:
    """One BLE advertisement as reported by the scanner."""

    address: Any
    manufacturer_data: Mapping[int, bytes] = field(default_factory=dict)
    service_data: Mapping[Any, bytes] = field(default_factory=dict)
    received_at: Optional[datetime] = None


@dataclass
class IngestStats:
    recorded: int = 0
    duplicates: int = 0
    unregistered: int = 0
    failed: int = 0


class SwitchBotAdvertisementIngestor:
    """Records readings from registered SwitchBot devices."""

    def __init__(
        self,
        device_registry: "DeviceRegistry",
        measurement_store: "MeasurementStore",
        metrics: Any | None = None,
    ) -> None:
        self.device_registry = device_registry
        self.measurement_store = measurement_store
        self.metrics = metrics or NoOpMetrics()
        self.last_seen: Dict[MacAddress, datetime] = {}
        self._devices: Dict[MacAddress, Device] = {}
        self.reload_devices()

    def reload_devices(self) -> int:
        """Refresh the address -> device map from the registry (sort order preserved)."""
        self._devices = {device.id: device for device in self.device_registry.list_devices()}
        logger.info("SwitchBot ingestor tracking %s device(s)", len(self._devices))
        return len(self._devices)

    @property
    def devices(self) -> Dict[MacAddress, Device]:
        return dict(self._devices)

    def ingest(self, advertisement: Advertisement) -> Optional[Measurement]:
        """
        Decode and store one advertisement.

        Returns:
            The stored measurement, or None when the advertisement was
            ignored, undecodable or already ingested.
        """
        _, measurement = self._ingest(advertisement)
        return measurement

    def ingest_many(self, advertisements: Iterable[Advertisement]) -> IngestStats:
        """Ingest one scan cycle worth of advertisements."""
        stats = IngestStats()
        for advertisement in advertisements:
            outcome, _ = self._ingest(advertisement)
            setattr(stats, outcome, getattr(stats, outcome) + 1)
        return stats

    def _ingest(self, advertisement: Advertisement) -> tuple[str, Optional[Measurement]]:
        try:
            address = MacAddress.parse(advertisement.address)
        except InvalidDeviceId:
            logger.debug("Ignoring advertisement with malformed address %r", advertisement.address)
            return self._outcome("unregistered")

        device = self._devices.get(address)
        if device is None:
            return self._outcome("unregistered")

        try:
            decoded = decode_advertisement(advertisement.manufacturer_data, advertisement.service_data)
        except AdvertisementDecodeError as exc:
            logger.warning("Failed to decode SwitchBot advertisement from %s (%s): %s", address, device.name, exc)
            return self._outcome("failed")

        if decoded.device_type is not device.type:
            logger.warning(
                "Device %s is registered as %s but advertises as %s",
                address,
                device.type.value,
                decoded.device_type.value,
            )

        measured_at = coerce_datetime(advertisement.received_at) or utc_now()
        try:
            measurement = self.measurement_store.record(
                device.id,
                measured_at,
                temperature_celsius=decoded.temperature_celsius,
                humidity_percent=decoded.humidity_percent,
                co2_ppm=decoded.co2_ppm,
                light_level=decoded.light_level,
            )
        except DuplicateMeasurement:
            logger.debug("Advertisement from %s at %s already ingested", address, measured_at.isoformat())
            return self._outcome("duplicates")
        except ValidationError as exc:
            logger.warning("Rejected reading from %s (%s): %s", address, device.name, exc)
            return self._outcome("failed")

        self.last_seen[address] = measured_at
        logger.info(
            "%s  %s  %4.1f°C  %s%%  %s  %s",
            measured_at.isoformat(),
            address,
            measurement.temperature_celsius,
            measurement.humidity_percent,
            f"{measurement.co2_ppm}ppm" if measurement.co2_ppm is not None else "N/A",
            measurement.light_level if measurement.light_level is not None else "N/A",
        )
        return self._outcome("recorded", measurement)

    def _outcome(
        self, outcome: str, measurement: Optional[Measurement] = None
    ) -> tuple[str, Optional[Measurement]]:
        self.metrics.inc("ble_advertisements_total", outcome=outcome)
        return outcome, measurement

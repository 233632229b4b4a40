"""
Measurement Store
=================
Append-only ingestion of SwitchBot readings.

A reading is keyed by ``(device_id, measured_at)``. Re-sending the same key
is rejected with DuplicateMeasurement whatever the payload; callers that
retry decide whether that counts as success.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import ExitStack
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional

from app.domain.devices import Device, MacAddress
from app.domain.exceptions import DuplicateMeasurement, InvalidInterval, UnknownDevice, ValidationError
from app.domain.measurement import Measurement
from app.schemas import MeasurementIn, PydanticValidationError, to_domain_error
from app.utils.concurrency import KeyedLock
from app.utils.time import coerce_datetime

if TYPE_CHECKING:
    from infrastructure.database.repositories.devices import DeviceRepository
    from infrastructure.database.repositories.measurements import MeasurementRepository

logger = logging.getLogger(__name__)


class MeasurementStore:
    """Validates and persists readings; serves ordered range and latest queries."""

    def __init__(
        self,
        measurement_repo: "MeasurementRepository",
        device_repo: "DeviceRepository",
        *,
        enforce_capabilities: bool = False,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.measurement_repo = measurement_repo
        self.device_repo = device_repo
        self.enforce_capabilities = enforce_capabilities
        self.locks = locks or KeyedLock()

    # ==================== Writes ====================

    def record(
        self,
        device_id: Any,
        measured_at: Any,
        temperature_celsius: float,
        humidity_percent: int,
        co2_ppm: Optional[int] = None,
        light_level: Optional[int] = None,
    ) -> Measurement:
        """
        Insert one reading.

        Raises:
            ValidationError: malformed id or timestamp, wrong field types
            OutOfRange: light_level outside 0..20
            UnknownDevice: device not registered
            UnsupportedField: capability enforcement on and the model cannot report a field
            DuplicateMeasurement: a reading already exists at this instant
        """
        try:
            reading = MeasurementIn(
                device_id=device_id,
                measured_at=measured_at,
                temperature_celsius=temperature_celsius,
                humidity_percent=humidity_percent,
                co2_ppm=co2_ppm,
                light_level=light_level,
            )
        except PydanticValidationError as exc:
            raise to_domain_error(exc) from None

        measurement = reading.to_domain()
        device = self._require_device(measurement.device_id)
        self._check(measurement, device)

        with self.locks.hold(measurement.device_id.packed):
            try:
                with self.measurement_repo.unit_of_work():
                    self.measurement_repo.add(measurement)
            except sqlite3.IntegrityError as exc:
                raise self._duplicate(measurement) from exc

        logger.debug("Recorded measurement for %s at %s", measurement.device_id, measurement.measured_at)
        return measurement

    def record_many(self, measurements: Iterable[Measurement], *, skip_duplicates: bool = True) -> int:
        """
        Insert a batch of readings in one transaction.

        Every reading is validated before anything is written. With
        ``skip_duplicates`` existing keys are left untouched; otherwise the
        first duplicate aborts the whole batch.

        Returns:
            Number of rows inserted
        """
        batch = list(measurements)
        if not batch:
            return 0

        devices: Dict[MacAddress, Device] = {}
        for measurement in batch:
            device = devices.get(measurement.device_id)
            if device is None:
                device = devices[measurement.device_id] = self._require_device(measurement.device_id)
            self._check(measurement, device)

        with self._hold_all(sorted(devices)):
            try:
                with self.measurement_repo.unit_of_work():
                    inserted = self.measurement_repo.add_many(batch, skip_duplicates=skip_duplicates)
            except sqlite3.IntegrityError as exc:
                raise DuplicateMeasurement(
                    "batch contains a reading that already exists",
                    detail={"batch_size": len(batch)},
                ) from exc

        logger.info("Recorded %s of %s measurements", inserted, len(batch))
        return inserted

    # ==================== Reads ====================

    def range(self, device_id: Any, start: Any, end: Any) -> Iterator[Measurement]:
        """Lazily yield readings in ``[start, end]`` ordered by ``measured_at``."""
        device_id = MacAddress.parse(device_id)
        start_at = self._timestamp(start, "start")
        end_at = self._timestamp(end, "end")
        if start_at > end_at:
            raise InvalidInterval(
                "range start must not be after its end",
                detail={"start": start_at.isoformat(), "end": end_at.isoformat()},
            )
        self._require_device(device_id)
        return self.measurement_repo.iter_range(device_id, start_at, end_at)

    def latest(self, device_id: Any) -> Optional[Measurement]:
        device_id = MacAddress.parse(device_id)
        self._require_device(device_id)
        return self.measurement_repo.latest(device_id)

    # ==================== Helpers ====================

    def _require_device(self, device_id: MacAddress) -> Device:
        device = self.device_repo.get_device(device_id)
        if device is None:
            raise UnknownDevice(f"device {device_id} is not registered", detail={"device_id": str(device_id)})
        return device

    def _check(self, measurement: Measurement, device: Device) -> None:
        if self.enforce_capabilities:
            measurement.check_capabilities(device.type)

    def _hold_all(self, device_ids: List[MacAddress]) -> ExitStack:
        """Acquire every device lock in a stable order; the returned stack releases them."""
        stack = ExitStack()
        with stack:
            for device_id in device_ids:
                stack.enter_context(self.locks.hold(device_id.packed))
            return stack.pop_all()

    @staticmethod
    def _duplicate(measurement: Measurement) -> DuplicateMeasurement:
        return DuplicateMeasurement(
            f"measurement for {measurement.device_id} at {measurement.measured_at.isoformat()} already exists",
            detail={"device_id": str(measurement.device_id), "measured_at": measurement.measured_at.isoformat()},
        )

    @staticmethod
    def _timestamp(value: Any, name: str) -> datetime:
        parsed = coerce_datetime(value)
        if parsed is None:
            raise ValidationError(f"invalid {name}: {value!r}", detail={name: repr(value)})
        return parsed

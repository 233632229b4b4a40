"""
Measurement Repository
======================

Repository for SwitchBot readings. Clear ownership: used exclusively by
MeasurementStore.
"""
from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from app.domain.devices import MacAddress
from app.domain.measurement import Measurement
from app.utils.time import to_storage

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class MeasurementRepository:
    """Facade over switchbot_measurements."""

    def __init__(self, backend: "SQLiteDatabaseHandler", *, page_size: int = 500) -> None:
        self._backend = backend
        self._page_size = page_size

    def unit_of_work(self) -> AbstractContextManager[sqlite3.Connection]:
        return self._backend.transaction()

    def add(self, measurement: Measurement) -> None:
        self._backend.insert_measurement(measurement)

    def add_many(self, measurements: Iterable[Measurement], *, skip_duplicates: bool) -> int:
        return self._backend.bulk_insert_measurements(measurements, skip_duplicates=skip_duplicates)

    def iter_range(self, device_id: MacAddress, start: datetime, end: datetime) -> Iterator[Measurement]:
        """Yield readings in ``[start, end]`` one keyset page at a time."""
        start_key, end_key = to_storage(start), to_storage(end)
        after: Optional[str] = None
        while True:
            page = self._backend.get_measurements_page(
                device_id, after=after, start=start_key, end=end_key, limit=self._page_size
            )
            yield from page
            if len(page) < self._page_size:
                return
            after = to_storage(page[-1].measured_at)

    def latest(self, device_id: MacAddress) -> Optional[Measurement]:
        return self._backend.get_latest_measurement(device_id)

    def count(self, device_id: MacAddress) -> int:
        return self._backend.count_measurements(device_id)

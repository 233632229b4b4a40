from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from app.domain.devices import MacAddress
from app.domain.measurement import Measurement
from app.utils.time import to_storage

logger = logging.getLogger(__name__)

_COLUMNS = "device_id, measured_at, temperature_celsius, humidity_percent, co2_ppm, light_level"


def _params(measurement: Measurement) -> tuple:
    return (
        measurement.device_id.packed,
        to_storage(measurement.measured_at),
        float(measurement.temperature_celsius),
        int(measurement.humidity_percent),
        measurement.co2_ppm,
        measurement.light_level,
    )


class MeasurementOperations:
    """Append-only measurement persistence helpers."""

    def insert_measurement(self, measurement: Measurement) -> None:
        """Insert one reading; a duplicate key raises ``sqlite3.IntegrityError``."""
        self.get_db().execute(
            f"INSERT INTO switchbot_measurements ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            _params(measurement),
        )

    def bulk_insert_measurements(self, measurements: Iterable[Measurement], *, skip_duplicates: bool) -> int:
        """Insert many readings; returns the number of rows actually written."""
        verb = "INSERT OR IGNORE" if skip_duplicates else "INSERT"
        db = self.get_db()
        before = db.total_changes
        db.executemany(
            f"{verb} INTO switchbot_measurements ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (_params(m) for m in measurements),
        )
        return db.total_changes - before

    def get_measurements_page(
        self,
        device_id: MacAddress,
        *,
        after: Optional[str],
        start: str,
        end: str,
        limit: int,
    ) -> List[Measurement]:
        """Keyset page of readings in ``[start, end]`` strictly after ``after``.

        Timestamps are passed in storage form so a caller can resume exactly
        where the previous page stopped.
        """
        lower_op, lower = (">", after) if after is not None else (">=", start)
        cursor = self.get_db().execute(
            f"""
            SELECT {_COLUMNS} FROM switchbot_measurements
            WHERE device_id = ? AND measured_at {lower_op} ? AND measured_at <= ?
            ORDER BY measured_at ASC
            LIMIT ?
            """,
            (device_id.packed, lower, end, limit),
        )
        return [Measurement.from_row(row) for row in cursor.fetchall()]

    def get_latest_measurement(self, device_id: MacAddress) -> Optional[Measurement]:
        row = self.get_db().execute(
            f"""
            SELECT {_COLUMNS} FROM switchbot_measurements
            WHERE device_id = ?
            ORDER BY measured_at DESC
            LIMIT 1
            """,
            (device_id.packed,),
        ).fetchone()
        return Measurement.from_row(row) if row else None

    def count_measurements(self, device_id: MacAddress) -> int:
        row = self.get_db().execute(
            "SELECT COUNT(*) FROM switchbot_measurements WHERE device_id = ?",
            (device_id.packed,),
        ).fetchone()
        return int(row[0])

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from app.domain.devices import MacAddress
from app.domain.placement import Placement
from app.utils.time import from_storage, to_storage

logger = logging.getLogger(__name__)

_COLUMNS = "device_id, placed_at, removed_at, room_id"


class PlacementOperations:
    """Device location history helpers.

    These helpers perform single statements only. Callers that need the
    check-then-write guarantees run them inside ``transaction()``.
    """

    def get_open_placement(self, device_id: MacAddress) -> Optional[Placement]:
        row = self.get_db().execute(
            f"""
            SELECT {_COLUMNS} FROM switchbot_device_locations
            WHERE device_id = ? AND removed_at IS NULL
            """,
            (device_id.packed,),
        ).fetchone()
        return Placement.from_row(row) if row else None

    def get_last_removed_at(self, device_id: MacAddress) -> Optional[datetime]:
        row = self.get_db().execute(
            """
            SELECT MAX(removed_at) AS last_removed_at FROM switchbot_device_locations
            WHERE device_id = ? AND removed_at IS NOT NULL
            """,
            (device_id.packed,),
        ).fetchone()
        return from_storage(row["last_removed_at"]) if row else None

    def insert_placement(self, placement: Placement) -> None:
        self.get_db().execute(
            f"INSERT INTO switchbot_device_locations ({_COLUMNS}) VALUES (?, ?, ?, ?)",
            (
                placement.device_id.packed,
                to_storage(placement.placed_at),
                to_storage(placement.removed_at) if placement.removed_at else None,
                placement.room_id,
            ),
        )

    def close_placement(self, device_id: MacAddress, placed_at: datetime, removed_at: datetime) -> int:
        """Set ``removed_at`` on the open row starting at ``placed_at``; returns rows touched."""
        cursor = self.get_db().execute(
            """
            UPDATE switchbot_device_locations
            SET removed_at = ?
            WHERE device_id = ? AND placed_at = ? AND removed_at IS NULL
            """,
            (to_storage(removed_at), device_id.packed, to_storage(placed_at)),
        )
        return cursor.rowcount

    def get_placements(self, device_id: MacAddress) -> List[Placement]:
        cursor = self.get_db().execute(
            f"""
            SELECT {_COLUMNS} FROM switchbot_device_locations
            WHERE device_id = ?
            ORDER BY placed_at ASC
            """,
            (device_id.packed,),
        )
        return [Placement.from_row(row) for row in cursor.fetchall()]

    def get_open_placements_in_room(self, room_id: str) -> List[Placement]:
        cursor = self.get_db().execute(
            """
            SELECT l.device_id, l.placed_at, l.removed_at, l.room_id
            FROM switchbot_device_locations l
            JOIN switchbot_devices d ON d.id = l.device_id
            WHERE l.room_id = ? AND l.removed_at IS NULL
            ORDER BY d.sort_order ASC
            """,
            (room_id,),
        )
        return [Placement.from_row(row) for row in cursor.fetchall()]

    def count_open_placements(self, device_id: MacAddress) -> int:
        row = self.get_db().execute(
            """
            SELECT COUNT(*) FROM switchbot_device_locations
            WHERE device_id = ? AND removed_at IS NULL
            """,
            (device_id.packed,),
        ).fetchone()
        return int(row[0])

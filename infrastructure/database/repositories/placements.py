"""
Placement Repository
====================

Repository for the device location history. Clear ownership: used
exclusively by PlacementLedger, which wraps check-then-write sequences in
``unit_of_work()``.
"""
from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from app.domain.devices import MacAddress
from app.domain.placement import Placement

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class PlacementRepository:
    """Facade over switchbot_device_locations."""

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        self._backend = backend

    def unit_of_work(self) -> AbstractContextManager[sqlite3.Connection]:
        """One write transaction spanning every call made inside it."""
        return self._backend.transaction()

    def get_open(self, device_id: MacAddress) -> Optional[Placement]:
        return self._backend.get_open_placement(device_id)

    def last_removed_at(self, device_id: MacAddress) -> Optional[datetime]:
        return self._backend.get_last_removed_at(device_id)

    def open(self, placement: Placement) -> None:
        self._backend.insert_placement(placement)

    def close(self, placement: Placement, removed_at: datetime) -> bool:
        return self._backend.close_placement(placement.device_id, placement.placed_at, removed_at) == 1

    def history(self, device_id: MacAddress) -> List[Placement]:
        return self._backend.get_placements(device_id)

    def open_in_room(self, room_id: str) -> List[Placement]:
        return self._backend.get_open_placements_in_room(room_id)

    def count_open(self, device_id: MacAddress) -> int:
        return self._backend.count_open_placements(device_id)

"""
Topology Repository
===================

Repository for homes and rooms. Used by TopologyService and, for room
existence checks, by the PlacementLedger.
"""
from __future__ import annotations

from typing import List, Optional

from app.domain.topology import Home, Room
from infrastructure.database.ops.topology import TopologyOperations


class TopologyRepository:
    """Facade over home and room persistence."""

    def __init__(self, backend: TopologyOperations) -> None:
        self._backend = backend

    # Homes --------------------------------------------------------------------
    def create_home(self, *, home_id: str, name: str, sort_order: int) -> Home:
        return self._backend.insert_home(home_id=home_id, name=name, sort_order=sort_order)

    def get_home(self, home_id: str) -> Optional[Home]:
        return self._backend.get_home(home_id)

    def list_homes(self) -> List[Home]:
        return self._backend.get_all_homes()

    # Rooms --------------------------------------------------------------------
    def create_room(self, *, room_id: str, home_id: str, name: str, sort_order: int) -> Room:
        return self._backend.insert_room(room_id=room_id, home_id=home_id, name=name, sort_order=sort_order)

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._backend.get_room(room_id)

    def list_rooms(self, home_id: str) -> List[Room]:
        return self._backend.get_rooms_for_home(home_id)

"""
Topology Service
================
Homes and the rooms inside them. Supplies the room existence checks the
placement ledger relies on; reordering is left to collaborators.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, List, Optional

from app.domain.exceptions import UnknownHome, UnknownRoom
from app.domain.topology import Home, Room
from app.schemas import CreateHomeRequest, CreateRoomRequest, PydanticValidationError, to_domain_error

if TYPE_CHECKING:
    from infrastructure.database.repositories.topology import TopologyRepository

logger = logging.getLogger(__name__)


class TopologyService:
    def __init__(self, topology_repo: "TopologyRepository") -> None:
        self.topology_repo = topology_repo

    def create_home(self, name: str, sort_order: int, home_id: Optional[str] = None) -> Home:
        """Create a home. Raises ValidationError, DuplicateSortOrder or DuplicateHome."""
        try:
            request = CreateHomeRequest(name=name, sort_order=sort_order, home_id=home_id)
        except PydanticValidationError as exc:
            raise to_domain_error(exc) from None

        home = self.topology_repo.create_home(
            home_id=request.home_id or str(uuid.uuid4()),
            name=request.name,
            sort_order=request.sort_order,
        )
        logger.info("Created home %s (%s)", home.id, home.name)
        return home

    def create_room(self, home_id: str, name: str, sort_order: int, room_id: Optional[str] = None) -> Room:
        """Create a room in ``home_id``. Raises ValidationError, UnknownHome or DuplicateSortOrder."""
        try:
            request = CreateRoomRequest(home_id=home_id, name=name, sort_order=sort_order, room_id=room_id)
        except PydanticValidationError as exc:
            raise to_domain_error(exc) from None

        room = self.topology_repo.create_room(
            room_id=request.room_id or str(uuid.uuid4()),
            home_id=request.home_id,
            name=request.name,
            sort_order=request.sort_order,
        )
        logger.info("Created room %s (%s) in home %s", room.id, room.name, home_id)
        return room

    def get_home(self, home_id: str) -> Optional[Home]:
        return self.topology_repo.get_home(home_id)

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.topology_repo.get_room(room_id)

    def list_homes(self) -> List[Home]:
        return self.topology_repo.list_homes()

    def list_rooms(self, home_id: str) -> List[Room]:
        """Rooms of a home in display order."""
        self.require_home(home_id)
        return self.topology_repo.list_rooms(home_id)

    def require_home(self, home_id: str) -> Home:
        home = self.topology_repo.get_home(home_id)
        if home is None:
            raise UnknownHome(f"home {home_id} does not exist", detail={"home_id": home_id})
        return home

    def require_room(self, room_id: str) -> Room:
        room = self.topology_repo.get_room(room_id)
        if room is None:
            raise UnknownRoom(f"room {room_id} does not exist", detail={"room_id": room_id})
        return room

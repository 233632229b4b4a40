from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from app.domain.exceptions import (
    ConflictError,
    DuplicateHome,
    DuplicateSortOrder,
    RepositoryError,
    UnknownHome,
)
from app.domain.topology import Home, Room

logger = logging.getLogger(__name__)


class TopologyOperations:
    """Home and room persistence helpers shared across database handlers."""

    # --- Homes -----------------------------------------------------------------
    def insert_home(self, *, home_id: str, name: str, sort_order: int) -> Home:
        db = self.get_db()
        try:
            db.execute(
                "INSERT INTO homes (id, name, sort_order) VALUES (?, ?, ?)",
                (home_id, name, sort_order),
            )
        except sqlite3.IntegrityError as exc:
            message = str(exc)
            if "homes.sort_order" in message:
                raise DuplicateSortOrder(
                    f"home sort_order {sort_order} is already taken",
                    detail={"scope": "homes", "sort_order": sort_order},
                ) from exc
            if "homes.id" in message:
                raise DuplicateHome(f"home {home_id} already exists", detail={"home_id": home_id}) from exc
            raise RepositoryError(f"failed to insert home: {exc}") from exc
        logger.info("Home '%s' inserted (sort_order=%s).", name, sort_order)
        return Home(id=home_id, name=name, sort_order=sort_order)

    def get_home(self, home_id: str) -> Optional[Home]:
        row = self.get_db().execute(
            "SELECT id, name, sort_order FROM homes WHERE id = ?", (home_id,)
        ).fetchone()
        return Home.from_row(row) if row else None

    def get_all_homes(self) -> List[Home]:
        cursor = self.get_db().execute("SELECT id, name, sort_order FROM homes ORDER BY sort_order")
        return [Home.from_row(row) for row in cursor.fetchall()]

    # --- Rooms -----------------------------------------------------------------
    def insert_room(self, *, room_id: str, home_id: str, name: str, sort_order: int) -> Room:
        db = self.get_db()
        try:
            db.execute(
                "INSERT INTO rooms (id, home_id, name, sort_order) VALUES (?, ?, ?, ?)",
                (room_id, home_id, name, sort_order),
            )
        except sqlite3.IntegrityError as exc:
            message = str(exc)
            if "FOREIGN KEY" in message:
                raise UnknownHome(f"home {home_id} does not exist", detail={"home_id": home_id}) from exc
            if "rooms.home_id, rooms.sort_order" in message:
                raise DuplicateSortOrder(
                    f"room sort_order {sort_order} is already taken in home {home_id}",
                    detail={"scope": "rooms", "home_id": home_id, "sort_order": sort_order},
                ) from exc
            if "rooms.id" in message:
                raise ConflictError(f"room {room_id} already exists", detail={"room_id": room_id}) from exc
            raise RepositoryError(f"failed to insert room: {exc}") from exc
        logger.info("Room '%s' inserted into home %s (sort_order=%s).", name, home_id, sort_order)
        return Room(id=room_id, home_id=home_id, name=name, sort_order=sort_order)

    def get_room(self, room_id: str) -> Optional[Room]:
        row = self.get_db().execute(
            "SELECT id, home_id, name, sort_order FROM rooms WHERE id = ?", (room_id,)
        ).fetchone()
        return Room.from_row(row) if row else None

    def get_rooms_for_home(self, home_id: str) -> List[Room]:
        cursor = self.get_db().execute(
            "SELECT id, home_id, name, sort_order FROM rooms WHERE home_id = ? ORDER BY sort_order",
            (home_id,),
        )
        return [Room.from_row(row) for row in cursor.fetchall()]

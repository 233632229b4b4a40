"""
Placement Ledger
================
Append-mostly history of which room each SwitchBot device occupied.

Every mutation runs under the device's in-process lock and inside a single
``BEGIN IMMEDIATE`` transaction that reads the open row, checks the
preconditions and then writes. The partial unique index on open placements
catches anything that still slips through (another process writing the same
file) and surfaces it as :class:`PlacementConflict`.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from app.domain.devices import Device, MacAddress
from app.domain.exceptions import (
    AlreadyPlaced,
    HomeEnvError,
    NonMonotonicTime,
    NotPlaced,
    PlacementConflict,
    UnknownDevice,
    UnknownRoom,
    ValidationError,
)
from app.domain.placement import Placement
from app.utils.concurrency import KeyedLock
from app.utils.time import coerce_datetime

if TYPE_CHECKING:
    from infrastructure.database.repositories.devices import DeviceRepository
    from infrastructure.database.repositories.placements import PlacementRepository
    from infrastructure.database.repositories.topology import TopologyRepository
    from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


class PlacementLedger:
    """
    Maintains the non-overlapping device-to-room history.

    Responsibilities:
    - place / move / remove with per-device serialization
    - current location and ordered history lookups
    - which devices currently sit in a room
    """

    def __init__(
        self,
        placement_repo: "PlacementRepository",
        device_repo: "DeviceRepository",
        topology_repo: "TopologyRepository",
        *,
        locks: Optional[KeyedLock] = None,
        audit_logger: Optional["AuditLogger"] = None,
    ) -> None:
        self.placement_repo = placement_repo
        self.device_repo = device_repo
        self.topology_repo = topology_repo
        self.locks = locks or KeyedLock()
        self.audit_logger = audit_logger

    # ==================== Mutations ====================

    def place(self, device_id: Any, room_id: str, at: Any) -> Placement:
        """
        Open the device's first (or next) placement.

        Args:
            device_id: Device hardware address
            room_id: Target room
            at: Event time; must not precede the end of the previous placement

        Returns:
            The new open placement

        Raises:
            UnknownDevice, UnknownRoom, AlreadyPlaced, NonMonotonicTime
        """
        device_id = MacAddress.parse(device_id)
        at = self._event_time(at)

        with self._mutation("place", device_id, room_id=room_id, at=at):
            self._require_device(device_id)
            self._require_room(room_id)

            current = self.placement_repo.get_open(device_id)
            if current is not None:
                raise AlreadyPlaced(
                    f"device {device_id} is already placed in room {current.room_id}",
                    detail={"device_id": str(device_id), "room_id": current.room_id},
                )

            last_removed_at = self.placement_repo.last_removed_at(device_id)
            if last_removed_at is not None and at < last_removed_at:
                raise NonMonotonicTime(
                    f"placement at {at.isoformat()} overlaps history ending {last_removed_at.isoformat()}",
                    detail={"device_id": str(device_id), "at": at.isoformat()},
                )

            placement = Placement(device_id=device_id, placed_at=at, room_id=room_id)
            self.placement_repo.open(placement)

        logger.info("Placed device %s in room %s at %s", device_id, room_id, at.isoformat())
        return placement

    def move(self, device_id: Any, new_room_id: str, at: Any) -> Placement:
        """
        Close the open placement at ``at`` and open a new one in ``new_room_id``.

        Both writes commit together or not at all.

        Raises:
            UnknownDevice, UnknownRoom, NotPlaced, NonMonotonicTime
        """
        device_id = MacAddress.parse(device_id)
        at = self._event_time(at)

        with self._mutation("move", device_id, room_id=new_room_id, at=at):
            self._require_device(device_id)
            self._require_room(new_room_id)

            current = self._require_open(device_id, at)
            self._close(current, at)

            placement = Placement(device_id=device_id, placed_at=at, room_id=new_room_id)
            self.placement_repo.open(placement)

        logger.info(
            "Moved device %s from room %s to room %s at %s",
            device_id,
            current.room_id,
            new_room_id,
            at.isoformat(),
        )
        return placement

    def remove(self, device_id: Any, at: Any) -> Placement:
        """
        Close the open placement without opening another.

        Returns:
            The closed placement

        Raises:
            UnknownDevice, NotPlaced, NonMonotonicTime
        """
        device_id = MacAddress.parse(device_id)
        at = self._event_time(at)

        with self._mutation("remove", device_id, at=at):
            self._require_device(device_id)
            current = self._require_open(device_id, at)
            closed = self._close(current, at)

        logger.info("Removed device %s from room %s at %s", device_id, current.room_id, at.isoformat())
        return closed

    # ==================== Reads ====================

    def current_placement(self, device_id: Any) -> Optional[Placement]:
        device_id = MacAddress.parse(device_id)
        self._require_device(device_id)
        return self.placement_repo.get_open(device_id)

    def current_location(self, device_id: Any) -> Optional[str]:
        """Room id of the open placement, or None when the device is unplaced."""
        placement = self.current_placement(device_id)
        return placement.room_id if placement else None

    def history(self, device_id: Any) -> List[Placement]:
        """All placements for the device, oldest first, the open one last."""
        device_id = MacAddress.parse(device_id)
        self._require_device(device_id)
        return self.placement_repo.history(device_id)

    def occupants(self, room_id: str) -> List[Placement]:
        """Open placements in ``room_id`` ordered by device sort order."""
        self._require_room(room_id)
        return self.placement_repo.open_in_room(room_id)

    # ==================== Helpers ====================

    @contextmanager
    def _mutation(self, action: str, device_id: MacAddress, **meta: Any) -> Iterator[None]:
        """Serialize on the device, run one transaction and audit the outcome."""
        try:
            with self.locks.hold(device_id.packed):
                try:
                    with self.placement_repo.unit_of_work():
                        yield
                except sqlite3.IntegrityError as exc:
                    logger.warning("Placement write for %s lost a race: %s", device_id, exc)
                    raise PlacementConflict(
                        f"concurrent placement change for device {device_id}; retry",
                        detail={"device_id": str(device_id)},
                    ) from exc
        except HomeEnvError as exc:
            self._audit(action, device_id, "rejected", error=type(exc).__name__, **meta)
            raise
        self._audit(action, device_id, "success", **meta)

    def _require_device(self, device_id: MacAddress) -> Device:
        device = self.device_repo.get_device(device_id)
        if device is None:
            raise UnknownDevice(f"device {device_id} is not registered", detail={"device_id": str(device_id)})
        return device

    def _require_room(self, room_id: str) -> None:
        if self.topology_repo.get_room(room_id) is None:
            raise UnknownRoom(f"room {room_id} does not exist", detail={"room_id": room_id})

    def _require_open(self, device_id: MacAddress, at: datetime) -> Placement:
        current = self.placement_repo.get_open(device_id)
        if current is None:
            raise NotPlaced(f"device {device_id} has no open placement", detail={"device_id": str(device_id)})
        if at <= current.placed_at:
            raise NonMonotonicTime(
                f"{at.isoformat()} is not after the open placement start {current.placed_at.isoformat()}",
                detail={
                    "device_id": str(device_id),
                    "at": at.isoformat(),
                    "placed_at": current.placed_at.isoformat(),
                },
            )
        return current

    def _close(self, current: Placement, at: datetime) -> Placement:
        closed = current.closed_at(at)
        if not self.placement_repo.close(current, at):
            raise PlacementConflict(
                f"open placement for device {current.device_id} changed underneath; retry",
                detail={"device_id": str(current.device_id)},
            )
        return closed

    @staticmethod
    def _event_time(value: Any) -> datetime:
        at = coerce_datetime(value)
        if at is None:
            raise ValidationError(f"invalid event time: {value!r}", detail={"at": repr(value)})
        return at

    def _audit(self, action: str, device_id: MacAddress, outcome: str, **meta: Any) -> None:
        if self.audit_logger:
            self.audit_logger.log_event(
                actor="system",
                action=action,
                resource=f"device:{device_id}",
                outcome=outcome,
                **meta,
            )

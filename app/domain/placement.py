"""
Placement Value Object
======================
A time-bounded record of which room a device physically occupied.

A placement with no ``removed_at`` is *open* and represents the device's
current location. Intervals are half-open: ``[placed_at, removed_at)``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from app.domain.devices import MacAddress
from app.domain.exceptions import InvalidInterval
from app.utils.time import from_storage


@dataclass(frozen=True)
class Placement:
    device_id: MacAddress
    placed_at: datetime
    room_id: str
    removed_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.removed_at is not None and not self.placed_at < self.removed_at:
            raise InvalidInterval(
                "placed_at must be strictly before removed_at",
                detail={
                    "device_id": str(self.device_id),
                    "placed_at": self.placed_at.isoformat(),
                    "removed_at": self.removed_at.isoformat(),
                },
            )

    @property
    def is_open(self) -> bool:
        return self.removed_at is None

    def closed_at(self, at: datetime) -> "Placement":
        """Return a copy closed at ``at``."""
        return replace(self, removed_at=at)

    def covers(self, instant: datetime) -> bool:
        """True when the device was in this room at ``instant``."""
        if instant < self.placed_at:
            return False
        return self.removed_at is None or instant < self.removed_at

    @classmethod
    def from_row(cls, row: Any) -> "Placement":
        return cls(
            device_id=MacAddress(bytes(row["device_id"])),
            placed_at=from_storage(row["placed_at"]),
            room_id=row["room_id"],
            removed_at=from_storage(row["removed_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": str(self.device_id),
            "room_id": self.room_id,
            "placed_at": self.placed_at.isoformat(),
            "removed_at": self.removed_at.isoformat() if self.removed_at else None,
        }

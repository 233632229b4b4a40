"""
Topology Entities
=================
Homes and the rooms inside them. Placements reference rooms by id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Home:
    id: str
    name: str
    sort_order: int

    @classmethod
    def from_row(cls, row: Any) -> "Home":
        return cls(id=row["id"], name=row["name"], sort_order=int(row["sort_order"]))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}


@dataclass(frozen=True)
class Room:
    id: str
    home_id: str
    name: str
    sort_order: int

    @classmethod
    def from_row(cls, row: Any) -> "Room":
        return cls(
            id=row["id"],
            home_id=row["home_id"],
            name=row["name"],
            sort_order=int(row["sort_order"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "home_id": self.home_id,
            "name": self.name,
            "sort_order": self.sort_order,
        }

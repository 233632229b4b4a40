"""
Device Entity
=============
SwitchBot device identity: a 6-byte hardware address plus registry metadata.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from app.domain.exceptions import InvalidDeviceId
from app.enums.device import SwitchBotDeviceType

_HEX_PAIRS = re.compile(r"^[0-9A-Fa-f]{2}([:-]?)[0-9A-Fa-f]{2}(\1[0-9A-Fa-f]{2}){4}$")


@dataclass(frozen=True, order=True)
class MacAddress:
    """Six-byte hardware identifier, rendered as ``AA:BB:CC:DD:EE:FF``."""

    packed: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.packed, bytes) or len(self.packed) != 6:
            raise InvalidDeviceId(
                "device id must be exactly 6 bytes",
                detail={"length": len(self.packed) if isinstance(self.packed, (bytes, bytearray)) else None},
            )

    @classmethod
    def parse(cls, value: Any) -> "MacAddress":
        """Build from bytes, another MacAddress, or a MAC string."""
        if isinstance(value, MacAddress):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(bytes(value))
        if isinstance(value, str):
            text = value.strip()
            if not _HEX_PAIRS.match(text):
                raise InvalidDeviceId(f"invalid MAC address: {value!r}")
            return cls(bytes.fromhex(text.replace(":", "").replace("-", "")))
        raise InvalidDeviceId(f"unsupported device id type: {type(value).__name__}")

    def __str__(self) -> str:
        return ":".join(f"{b:02X}" for b in self.packed)


@dataclass(frozen=True)
class Device:
    """Registered SwitchBot device."""

    id: MacAddress
    type: SwitchBotDeviceType
    name: str
    sort_order: int

    @classmethod
    def from_row(cls, row: Any) -> "Device":
        return cls(
            id=MacAddress(bytes(row["id"])),
            type=SwitchBotDeviceType(row["type"]),
            name=row["name"],
            sort_order=int(row["sort_order"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "type": self.type.value,
            "name": self.name,
            "sort_order": self.sort_order,
        }

"""
Domain Value Objects Package
=============================
Immutable value objects describing the home topology, the device registry and
the placement/measurement ledger.
"""

from .devices import Device, MacAddress
from .measurement import LIGHT_LEVEL_MAX, LIGHT_LEVEL_MIN, Measurement
from .placement import Placement
from .topology import Home, Room

__all__ = [
    "Device",
    "Home",
    "LIGHT_LEVEL_MAX",
    "LIGHT_LEVEL_MIN",
    "MacAddress",
    "Measurement",
    "Placement",
    "Room",
]

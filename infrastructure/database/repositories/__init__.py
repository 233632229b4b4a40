"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.devices import DeviceRepository
from infrastructure.database.repositories.measurements import MeasurementRepository
from infrastructure.database.repositories.placements import PlacementRepository
from infrastructure.database.repositories.topology import TopologyRepository

__all__ = [
    "DeviceRepository",
    "MeasurementRepository",
    "PlacementRepository",
    "TopologyRepository",
]

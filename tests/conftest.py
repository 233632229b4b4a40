"""
Shared test fixtures for the home environments test suite.

Provides:
- In-memory SQLite database with all tables created
- File-backed database for tests that cross threads
- Repository instances wired to the test database
- Service factories for the ledger services
- Helper utilities for seeding homes, rooms and devices

Usage:
    def test_example(seed, placement_ledger):
        device = seed.create_device()
        room = seed.create_room()
        placement_ledger.place(device.id, room.id, T0)
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from app.domain.devices import Device, MacAddress
from app.domain.topology import Home, Room
from app.enums import SwitchBotDeviceType
from app.services.application.device_registry import DeviceRegistry
from app.services.application.measurement_store import MeasurementStore
from app.services.application.placement_ledger import PlacementLedger
from app.services.application.topology_service import TopologyService
from infrastructure.database.repositories.devices import DeviceRepository
from infrastructure.database.repositories.measurements import MeasurementRepository
from infrastructure.database.repositories.placements import PlacementRepository
from infrastructure.database.repositories.topology import TopologyRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database. An
    in-memory database is private to the connection that opened it, so
    use ``file_db_handler`` for anything that spans threads.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close_all()


@pytest.fixture()
def file_db_handler(tmp_path):
    """File-backed database shared by every thread of a test."""
    handler = SQLiteDatabaseHandler(str(tmp_path / "ledger.db"), busy_timeout=10.0)
    handler.create_tables()
    yield handler
    handler.close_all()


@pytest.fixture()
def db_connection(db_handler):
    """Raw sqlite3 connection for direct SQL in tests."""
    with db_handler.connection() as conn:
        yield conn


# ========================== Repository Fixtures ============================


@pytest.fixture()
def topology_repo(db_handler):
    return TopologyRepository(db_handler)


@pytest.fixture()
def device_repo(db_handler):
    """DeviceRepository backed by the in-memory DB."""
    return DeviceRepository(db_handler)


@pytest.fixture()
def placement_repo(db_handler):
    return PlacementRepository(db_handler)


@pytest.fixture()
def measurement_repo(db_handler):
    """MeasurementRepository with a small page size so paging is exercised."""
    return MeasurementRepository(db_handler, page_size=3)


# ========================== Mock Service Fixtures ==========================


@pytest.fixture()
def mock_audit_logger():
    """Mock AuditLogger."""
    logger = MagicMock()
    logger.log_event = MagicMock()
    return logger


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def topology_service(topology_repo):
    return TopologyService(topology_repo)


@pytest.fixture()
def device_registry(device_repo):
    return DeviceRegistry(device_repo)


@pytest.fixture()
def placement_ledger(placement_repo, device_repo, topology_repo, mock_audit_logger):
    """PlacementLedger with real repos and a mocked audit logger."""
    return PlacementLedger(placement_repo, device_repo, topology_repo, audit_logger=mock_audit_logger)


@pytest.fixture()
def measurement_store(measurement_repo, device_repo):
    return MeasurementStore(measurement_repo, device_repo)


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(seed):
            home = seed.create_home()
            room = seed.create_room(home_id=home.id)
            device = seed.create_device(device_type=SwitchBotDeviceType.HUB_2)
    """

    def __init__(self, db_handler: SQLiteDatabaseHandler):
        self._topology = TopologyService(TopologyRepository(db_handler))
        self._registry = DeviceRegistry(DeviceRepository(db_handler))
        self._home_count = 0
        self._room_count = 0
        self._device_count = 0

    def create_home(self, name: str = "Home", home_id: str | None = None) -> Home:
        self._home_count += 1
        return self._topology.create_home(
            name, sort_order=self._home_count, home_id=home_id or f"home-{self._home_count}"
        )

    def create_room(
        self,
        name: str = "Room",
        home_id: str | None = None,
        room_id: str | None = None,
    ) -> Room:
        """Create a room, creating a home first when none is given."""
        if home_id is None:
            home_id = self.create_home().id
        self._room_count += 1
        return self._topology.create_room(
            home_id, name, sort_order=self._room_count, room_id=room_id or f"room-{self._room_count}"
        )

    def create_device(
        self,
        device_type: SwitchBotDeviceType = SwitchBotDeviceType.METER_PLUS,
        name: str | None = None,
        device_id: str | None = None,
    ) -> Device:
        self._device_count += 1
        mac = device_id or f"AA:BB:CC:DD:EE:{self._device_count:02X}"
        return self._registry.register_device(
            mac,
            device_type,
            name or f"Sensor {self._device_count}",
            sort_order=self._device_count,
        )


@pytest.fixture()
def seed(db_handler):
    """SeedData helper for quickly populating the test database."""
    return SeedData(db_handler)


@pytest.fixture()
def unknown_mac():
    return MacAddress.parse("00:00:00:00:00:99")

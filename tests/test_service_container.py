"""Wiring tests for ServiceContainer."""

import json
from datetime import datetime, timezone

import pytest

from app.config import AppConfig
from app.enums import SwitchBotDeviceType
from app.services.container import ServiceContainer
from app.services.hardware import SwitchBotAdvertisementIngestor


@pytest.fixture()
def container(tmp_path):
    config = AppConfig(
        database_path=str(tmp_path / "db" / "ledger.db"),
        audit_enabled=True,
        audit_log_path=str(tmp_path / "logs" / "audit.log"),
        enforce_device_capabilities=True,
    )
    built = ServiceContainer.build(config)
    yield built
    built.shutdown()


def test_services_share_one_database(container):
    container.topology_service.create_home("Flat", 1, home_id="flat")
    container.topology_service.create_room("flat", "Kitchen", 1, room_id="kitchen")
    device = container.device_registry.register_device("AA:BB:CC:DD:EE:01", "Meter", "Meter", 1)

    container.placement_ledger.place(device.id, "kitchen", datetime(2026, 1, 1, tzinfo=timezone.utc))

    assert container.placement_ledger.current_location(device.id) == "kitchen"
    assert [p.device_id for p in container.placement_ledger.occupants("kitchen")] == [device.id]


def test_capability_switch_is_applied(container):
    assert container.measurement_store.enforce_capabilities is True


def test_ledger_mutations_are_audited(container, tmp_path):
    container.topology_service.create_home("Flat", 1, home_id="flat")
    container.topology_service.create_room("flat", "Kitchen", 1, room_id="kitchen")
    device = container.device_registry.register_device("AA:BB:CC:DD:EE:01", "Meter", "Meter", 1)
    container.placement_ledger.place(device.id, "kitchen", datetime(2026, 1, 1, tzinfo=timezone.utc))

    container.shutdown()

    line = (tmp_path / "logs" / "audit.log").read_text(encoding="utf-8").strip().splitlines()[-1]
    payload = json.loads(line.split(" | ", 2)[2])
    assert payload["action"] == "place"
    assert payload["outcome"] == "success"
    assert payload["resource"] == "device:AA:BB:CC:DD:EE:01"


def test_advertisement_ingestor_sees_registered_devices(container):
    container.device_registry.register_device("AA:BB:CC:DD:EE:01", SwitchBotDeviceType.HUB_2, "Hub", 1)

    ingestor = container.advertisement_ingestor()

    assert isinstance(ingestor, SwitchBotAdvertisementIngestor)
    assert [str(d) for d in ingestor.devices] == ["AA:BB:CC:DD:EE:01"]

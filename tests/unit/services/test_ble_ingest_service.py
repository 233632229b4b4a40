"""
Tests for SwitchBotAdvertisementIngestor.

Covers:
- registered devices are recorded with the receive time
- unregistered, undecodable and duplicate advertisements are skipped
- model mismatch is logged but still recorded
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.enums import SwitchBotDeviceType
from app.hardware.ble.switchbot import SWITCHBOT_COMPANY_ID, SWITCHBOT_SERVICE_UUID
from app.services.hardware import Advertisement, SwitchBotAdvertisementIngestor

RECEIVED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

HUB_2_PAYLOAD = bytes([0] * 12 + [0x87, 0x05, 0x96, 0xB0, 0x00])
METER_PLUS_PAYLOAD = bytes([0] * 8 + [0x02, 0x95, 0x37])


def advertisement(address, model: int, payload: bytes, received_at=RECEIVED_AT) -> Advertisement:
    return Advertisement(
        address=address,
        manufacturer_data={SWITCHBOT_COMPANY_ID: payload},
        service_data={SWITCHBOT_SERVICE_UUID: bytes([model])},
        received_at=received_at,
    )


@pytest.fixture()
def hub(seed):
    return seed.create_device(SwitchBotDeviceType.HUB_2, name="Living room hub")


@pytest.fixture()
def ingestor(hub, device_registry, measurement_store):
    return SwitchBotAdvertisementIngestor(device_registry, measurement_store)


class TestIngest:
    def test_records_registered_device(self, ingestor, hub, measurement_store):
        measurement = ingestor.ingest(advertisement(str(hub.id), 0x76, HUB_2_PAYLOAD))

        assert measurement is not None
        assert measurement.measured_at == RECEIVED_AT
        assert measurement.light_level == 7
        assert measurement_store.latest(hub.id) == measurement
        assert ingestor.last_seen[hub.id] == RECEIVED_AT

    def test_ignores_unregistered_address(self, ingestor, measurement_repo, hub):
        result = ingestor.ingest(advertisement("11:22:33:44:55:66", 0x76, HUB_2_PAYLOAD))

        assert result is None
        assert measurement_repo.count(hub.id) == 0

    def test_ignores_malformed_address(self, ingestor):
        assert ingestor.ingest(advertisement("garbage", 0x76, HUB_2_PAYLOAD)) is None

    def test_skips_undecodable_advertisement(self, ingestor, hub, caplog):
        with caplog.at_level(logging.WARNING, logger="app.services.hardware.ble_ingest_service"):
            result = ingestor.ingest(advertisement(hub.id, 0x76, HUB_2_PAYLOAD[:10]))

        assert result is None
        assert "Failed to decode" in caplog.text

    def test_duplicate_is_treated_as_already_ingested(self, ingestor, hub, measurement_repo):
        ad = advertisement(hub.id, 0x76, HUB_2_PAYLOAD)
        ingestor.ingest(ad)

        assert ingestor.ingest(ad) is None
        assert measurement_repo.count(hub.id) == 1

    def test_model_mismatch_is_logged(self, ingestor, hub, caplog):
        with caplog.at_level(logging.WARNING, logger="app.services.hardware.ble_ingest_service"):
            result = ingestor.ingest(advertisement(hub.id, 0x69, METER_PLUS_PAYLOAD))

        assert result is not None
        assert result.temperature_celsius == pytest.approx(21.2)
        assert "advertises as MeterPlus" in caplog.text

    def test_missing_receive_time_uses_now(self, ingestor, hub):
        measurement = ingestor.ingest(advertisement(hub.id, 0x76, HUB_2_PAYLOAD, received_at=None))

        assert measurement.measured_at.tzinfo is not None
        assert measurement.measured_at > RECEIVED_AT


class TestIngestMany:
    def test_counts_outcomes(self, ingestor, hub):
        ads = [
            advertisement(hub.id, 0x76, HUB_2_PAYLOAD),
            advertisement(hub.id, 0x76, HUB_2_PAYLOAD),
            advertisement("11:22:33:44:55:66", 0x76, HUB_2_PAYLOAD),
            advertisement(hub.id, 0x42, HUB_2_PAYLOAD, received_at=datetime(2026, 1, 2, tzinfo=timezone.utc)),
        ]

        stats = ingestor.ingest_many(ads)

        assert (stats.recorded, stats.duplicates, stats.unregistered, stats.failed) == (1, 1, 1, 1)

    def test_metrics_are_reported(self, hub, device_registry, measurement_store):
        metrics = MagicMock()
        ingestor = SwitchBotAdvertisementIngestor(device_registry, measurement_store, metrics=metrics)

        ingestor.ingest(advertisement(hub.id, 0x76, HUB_2_PAYLOAD))

        metrics.inc.assert_called_with("ble_advertisements_total", outcome="recorded")


def test_reload_picks_up_new_devices(ingestor, seed):
    assert len(ingestor.devices) == 1

    seed.create_device(SwitchBotDeviceType.METER_PLUS)

    assert ingestor.reload_devices() == 2

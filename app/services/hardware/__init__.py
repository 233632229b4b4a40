"""
Hardware Service Layer
======================
Services bridging radio-level device traffic into the ledger.

Services:
- SwitchBotAdvertisementIngestor: BLE advertisements -> MeasurementStore
"""

from app.services.hardware.ble_ingest_service import (
    Advertisement,
    IngestStats,
    SwitchBotAdvertisementIngestor,
)

__all__ = [
    "Advertisement",
    "IngestStats",
    "SwitchBotAdvertisementIngestor",
]

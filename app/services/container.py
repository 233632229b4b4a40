from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.config import AppConfig
from app.services.application.device_registry import DeviceRegistry
from app.services.application.measurement_store import MeasurementStore
from app.services.application.placement_ledger import PlacementLedger
from app.services.application.topology_service import TopologyService
from app.services.hardware.ble_ingest_service import SwitchBotAdvertisementIngestor
from infrastructure.database.repositories.devices import DeviceRepository
from infrastructure.database.repositories.measurements import MeasurementRepository
from infrastructure.database.repositories.placements import PlacementRepository
from infrastructure.database.repositories.topology import TopologyRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage the ledger services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    topology_repo: TopologyRepository
    device_repo: DeviceRepository
    placement_repo: PlacementRepository
    measurement_repo: MeasurementRepository
    audit_logger: Optional[AuditLogger]
    topology_service: TopologyService
    device_registry: DeviceRegistry
    placement_ledger: PlacementLedger
    measurement_store: MeasurementStore

    @classmethod
    def build(cls, config: AppConfig) -> "ServiceContainer":
        """Construct the service container with all dependencies."""
        database = SQLiteDatabaseHandler(
            config.database_path,
            busy_timeout=config.db_busy_timeout_seconds,
            cache_size_kb=config.db_cache_size_kb,
        )
        database.init_app()

        topology_repo = TopologyRepository(database)
        device_repo = DeviceRepository(database)
        placement_repo = PlacementRepository(database)
        measurement_repo = MeasurementRepository(database, page_size=config.measurement_page_size)

        audit_logger = AuditLogger(config.audit_log_path) if config.audit_enabled else None

        container = cls(
            config=config,
            database=database,
            topology_repo=topology_repo,
            device_repo=device_repo,
            placement_repo=placement_repo,
            measurement_repo=measurement_repo,
            audit_logger=audit_logger,
            topology_service=TopologyService(topology_repo),
            device_registry=DeviceRegistry(device_repo),
            placement_ledger=PlacementLedger(
                placement_repo,
                device_repo,
                topology_repo,
                audit_logger=audit_logger,
            ),
            measurement_store=MeasurementStore(
                measurement_repo,
                device_repo,
                enforce_capabilities=config.enforce_device_capabilities,
            ),
        )
        logger.info("ServiceContainer built successfully (database=%s).", config.database_path)
        return container

    def advertisement_ingestor(self) -> SwitchBotAdvertisementIngestor:
        """New BLE ingestor bound to the current device registry."""
        return SwitchBotAdvertisementIngestor(self.device_registry, self.measurement_store)

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        if self.audit_logger is not None:
            self.audit_logger.close()
        self.database.close_all()
        logger.info("ServiceContainer shutdown complete.")

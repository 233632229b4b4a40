"""
Service Organization
====================
Services are organized by their lifecycle and instantiation pattern:

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: PlacementLedger, MeasurementStore, DeviceRegistry, TopologyService

**hardware/**
  Ingestion workers that turn radio traffic into ledger writes.
  Examples: SwitchBotAdvertisementIngestor

**utilities/**
  Stateless helpers that can be instantiated multiple times.
  Examples: SwitchBot CSV export import
"""

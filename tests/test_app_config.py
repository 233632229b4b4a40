"""Tests for environment-driven configuration."""

import logging

import pytest

from app.config import AppConfig, load_config, setup_logging, validate_config
from app.domain.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "HOMEENV_DATABASE_PATH",
        "HOMEENV_TIMEZONE",
        "TZ",
        "HOMEENV_ENFORCE_CAPABILITIES",
        "HOMEENV_IMPORT_BATCH_SIZE",
        "HOMEENV_DB_BUSY_TIMEOUT",
        "HOMEENV_AUDIT_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()

    assert config.database_path == "database/home_environments.db"
    assert config.timezone == "UTC"
    assert config.enforce_device_capabilities is False
    assert config.import_batch_size == 1000
    assert config.audit_enabled is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HOMEENV_DATABASE_PATH", "/tmp/ledger.db")
    monkeypatch.setenv("HOMEENV_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("HOMEENV_ENFORCE_CAPABILITIES", "yes")
    monkeypatch.setenv("HOMEENV_IMPORT_BATCH_SIZE", "250")
    monkeypatch.setenv("HOMEENV_DB_BUSY_TIMEOUT", "0.5")

    config = load_config()

    assert config.database_path == "/tmp/ledger.db"
    assert config.timezone == "Asia/Tokyo"
    assert config.enforce_device_capabilities is True
    assert config.import_batch_size == 250
    assert config.db_busy_timeout_seconds == 0.5


def test_tz_fallback(monkeypatch):
    monkeypatch.setenv("TZ", "Europe/Berlin")

    assert AppConfig().timezone == "Europe/Berlin"


def test_non_integer_setting(monkeypatch):
    monkeypatch.setenv("HOMEENV_IMPORT_BATCH_SIZE", "lots")

    with pytest.raises(ConfigurationError, match="HOMEENV_IMPORT_BATCH_SIZE"):
        AppConfig()


def test_unknown_timezone(monkeypatch):
    monkeypatch.setenv("HOMEENV_TIMEZONE", "Atlantis/Capital")

    with pytest.raises(ConfigurationError, match="unknown timezone"):
        load_config()


def test_non_positive_batch_size():
    with pytest.raises(ConfigurationError, match="import_batch_size"):
        validate_config(AppConfig(import_batch_size=0))


def test_setup_logging_is_idempotent(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    log_file = tmp_path / "logs" / "app.log"
    try:
        setup_logging(level="WARNING", log_file=str(log_file))
        setup_logging(level="WARNING", log_file=str(log_file))

        ours = [h for h in root.handlers if h.name in {"homeenv_console", "homeenv_file"}]
        assert len(ours) == 2
        assert log_file.parent.exists()
    finally:
        for handler in list(root.handlers):
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)

"""End-to-end tests for the homeenv-import-csv entry point."""

import logging

import pytest

from app import config as app_config
from app.config import AppConfig
from app.enums import SwitchBotDeviceType
from app.services.container import ServiceContainer
from app.workers import import_cli

DEVICE = "AA:BB:CC:DD:EE:01"
HEADER = "Date,Temperature_Celsius(°C),Relative_Humidity(%),Abs_Humidity(g/m³),DPT(°C),VPD(kPa),Light_Value\n"


@pytest.fixture()
def database_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("HOMEENV_DATABASE_PATH", str(path))
    monkeypatch.setenv("HOMEENV_AUDIT_ENABLED", "false")
    monkeypatch.setenv("HOMEENV_TIMEZONE", "UTC")
    monkeypatch.setattr(import_cli, "setup_logging", lambda *args, **kwargs: None)
    return path


@pytest.fixture()
def registered(database_path):
    container = ServiceContainer.build(AppConfig())
    try:
        container.device_registry.register_device(DEVICE, SwitchBotDeviceType.HUB_2, "Hub", 1)
    finally:
        container.shutdown()


@pytest.fixture()
def export(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(
        HEADER
        + "2026-01-01 10:00,20.5,40,0,0,0,3\n"
        + "2026-01-01 10:01,20.6,41,0,0,0,4\n"
        + "2026-01-01 10:02,20.7,42,0,0,0,5\n",
        encoding="utf-8",
    )
    return path


def stored_rows() -> int:
    container = ServiceContainer.build(AppConfig())
    try:
        return container.measurement_repo.count(container.device_registry.require_device(DEVICE).id)
    finally:
        container.shutdown()


def test_import_reports_inserted_count(registered, export, capsys):
    code = import_cli.main(["--device-id", DEVICE, "--file", str(export)])

    assert code == 0
    assert f"Inserted 3 records from {export}" in capsys.readouterr().out
    assert stored_rows() == 3


def test_reimport_inserts_nothing(registered, export, capsys):
    import_cli.main(["--device-id", DEVICE, "--file", str(export)])

    code = import_cli.main(["--device-id", DEVICE, "--file", str(export), "--batch-size", "2"])

    assert code == 0
    assert "Inserted 0 records" in capsys.readouterr().out.splitlines()[-1]
    assert stored_rows() == 3


def test_unregistered_device_fails(database_path, export, capsys):
    code = import_cli.main(["--device-id", DEVICE, "--file", str(export)])

    assert code == 1
    assert "Import failed" in capsys.readouterr().out


def test_missing_file_fails(registered, tmp_path, capsys):
    code = import_cli.main(["--device-id", DEVICE, "--file", str(tmp_path / "absent.csv")])

    assert code == 1
    assert "Import failed" in capsys.readouterr().out


def test_database_path_flag_overrides_environment(registered, export, tmp_path, capsys):
    other = tmp_path / "other.db"

    code = import_cli.main(["--device-id", DEVICE, "--file", str(export), "--database-path", str(other)])

    assert code == 1
    assert other.exists()


def test_required_arguments(database_path):
    with pytest.raises(SystemExit):
        import_cli.main(["--file", "export.csv"])


@pytest.fixture()
def root_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_log_file_from_environment(registered, export, tmp_path, monkeypatch, root_handlers):
    log_file = tmp_path / "logs" / "import.log"
    monkeypatch.setenv("HOMEENV_LOG_FILE", str(log_file))
    monkeypatch.setattr(import_cli, "setup_logging", app_config.setup_logging)
    for handler in list(root_handlers.handlers):
        if handler.name == "homeenv_file":
            root_handlers.removeHandler(handler)

    code = import_cli.main(["--device-id", DEVICE, "--file", str(export)])

    assert code == 0
    assert log_file.exists()
    assert any(h.name == "homeenv_file" for h in root_handlers.handlers)

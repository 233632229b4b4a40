"""
Configuration for the home environments ledger
==============================================
Runtime settings loaded from environment variables, plus the logging setup
shared by every entry point.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field

from app.domain.exceptions import ConfigurationError
from app.utils.time import get_zone


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number.") from None


def _env_timezone() -> str:
    return os.getenv("HOMEENV_TIMEZONE") or os.getenv("TZ") or "UTC"


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("HOMEENV_ENV", "development"))
    database_path: str = field(
        default_factory=lambda: os.getenv("HOMEENV_DATABASE_PATH", "database/home_environments.db")
    )
    db_busy_timeout_seconds: float = field(default_factory=lambda: _env_float("HOMEENV_DB_BUSY_TIMEOUT", 5.0))
    db_cache_size_kb: int = field(default_factory=lambda: _env_int("HOMEENV_DB_CACHE_SIZE_KB", 8_000))

    # Zone used to interpret naive local timestamps (CSV exports).
    timezone: str = field(default_factory=_env_timezone)

    # Reject co2_ppm / light_level from models that cannot measure them.
    enforce_device_capabilities: bool = field(
        default_factory=lambda: _env_bool("HOMEENV_ENFORCE_CAPABILITIES", False)
    )
    import_batch_size: int = field(default_factory=lambda: _env_int("HOMEENV_IMPORT_BATCH_SIZE", 1000))
    measurement_page_size: int = field(default_factory=lambda: _env_int("HOMEENV_MEASUREMENT_PAGE_SIZE", 500))

    audit_enabled: bool = field(default_factory=lambda: _env_bool("HOMEENV_AUDIT_ENABLED", True))
    audit_log_path: str = field(default_factory=lambda: os.getenv("HOMEENV_AUDIT_LOG_PATH", "logs/audit.log"))

    DEBUG: bool = field(default_factory=lambda: _env_bool("HOMEENV_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("HOMEENV_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("HOMEENV_LOG_FILE", "logs/home_environments.log"))


def validate_config(config: AppConfig) -> None:
    """Raise ConfigurationError for settings the services cannot run with."""
    try:
        get_zone(config.timezone)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    for name in ("import_batch_size", "measurement_page_size", "db_cache_size_kb"):
        if getattr(config, name) <= 0:
            raise ConfigurationError(f"{name} must be positive")
    if config.db_busy_timeout_seconds < 0:
        raise ConfigurationError("db_busy_timeout_seconds must not be negative")


def setup_logging(debug: bool = False, *, level: str = "INFO", log_file: str | None = None) -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicates when entry points call this more than once
    has_console = any(getattr(h, "name", "") == "homeenv_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "homeenv_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "homeenv_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "homeenv_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"homeenv_console", "homeenv_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    config = AppConfig()
    validate_config(config)
    return config

from __future__ import annotations

import argparse
import logging

from app.config import load_config, setup_logging
from app.domain.exceptions import HomeEnvError
from app.services.container import ServiceContainer
from app.services.utilities.switchbot_csv import import_csv

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Import a SwitchBot CSV export into the measurement store."""
    config = load_config()

    parser = argparse.ArgumentParser(prog="homeenv-import-csv")
    parser.add_argument("--device-id", required=True, help="Device MAC address (AA:BB:CC:DD:EE:FF)")
    parser.add_argument("--file", required=True, help="SwitchBot CSV export")
    parser.add_argument(
        "--timezone",
        default=config.timezone,
        help=f"IANA zone the export timestamps are in (default: {config.timezone})",
    )
    parser.add_argument(
        "--database-path",
        default=config.database_path,
        help=f"Path to SQLite database (default: {config.database_path})",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=config.import_batch_size,
        help=f"Rows per insert transaction (default: {config.import_batch_size})",
    )
    args = parser.parse_args(argv)

    config.database_path = args.database_path
    setup_logging(debug=config.DEBUG, level=config.log_level, log_file=config.log_file)

    container = ServiceContainer.build(config)
    try:
        result = import_csv(
            container.measurement_store,
            args.file,
            args.device_id,
            args.timezone,
            batch_size=args.batch_size,
        )
    except (HomeEnvError, OSError) as exc:
        logger.error("Import of %s failed: %s", args.file, exc)
        print(f"Import failed: {exc}")
        return 1
    finally:
        container.shutdown()

    print(f"Inserted {result.inserted} records from {args.file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

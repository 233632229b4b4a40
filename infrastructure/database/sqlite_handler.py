import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from app.domain.exceptions import StorageBusy
from app.enums.device import SwitchBotDeviceType
from infrastructure.database.ops.devices import DeviceOperations
from infrastructure.database.ops.measurements import MeasurementOperations
from infrastructure.database.ops.placements import PlacementOperations
from infrastructure.database.ops.topology import TopologyOperations

logger = logging.getLogger(__name__)


def is_busy_error(exc: sqlite3.Error) -> bool:
    message = str(exc).lower()
    return "database is locked" in message or "database table is locked" in message


class SQLiteDatabaseHandler(
    TopologyOperations,
    DeviceOperations,
    PlacementOperations,
    MeasurementOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals.

    Every thread gets its own connection. Connections run in autocommit mode;
    multi-statement writes go through :meth:`transaction`, which takes the
    SQLite write lock up front with ``BEGIN IMMEDIATE``.
    """

    def __init__(
        self,
        database_path: str,
        *,
        busy_timeout: float = 5.0,
        cache_size_kb: int = 8_000,
    ) -> None:
        self._database_path = database_path
        self._busy_timeout = busy_timeout
        self._cache_size_kb = cache_size_kb
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        # Ensure the directory for the database file exists
        if database_path != ":memory:":
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        """Create the schema and, for API collaborators, release connections per app context."""
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
            with self._connections_lock:
                self._connections.append(connection)
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._database_path,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "file is encrypted or is not a database" in message
            or "malformed" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        if self._database_path == ":memory:":
            return None
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure a fresh connection.

        - foreign_keys: placements and measurements must reference registered rows
        - WAL mode: readers never block the single writer
        - busy_timeout: writers wait for the lock instead of failing at once
        """
        connection.execute("PRAGMA foreign_keys=ON")
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute(f"PRAGMA busy_timeout={int(self._busy_timeout * 1000)}")
        connection.execute(f"PRAGMA cache_size=-{int(self._cache_size_kb)}")
        connection.execute("PRAGMA temp_store=MEMORY")

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")
            with self._connections_lock:
                if connection in self._connections:
                    self._connections.remove(connection)

    def close_all(self) -> None:
        """Close every connection opened by any thread."""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for connection in connections:
            connection.close()
        self._local = threading.local()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        yield self.get_db()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements as one write transaction.

        Nested use joins the outer transaction. SQLite lock timeouts surface
        as :class:`StorageBusy` so callers can retry.
        """
        conn = self.get_db()
        if conn.in_transaction:
            yield conn
            return

        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.OperationalError as exc:
            if is_busy_error(exc):
                raise StorageBusy("storage is busy; retry the operation") from exc
            raise

        try:
            yield conn
        except sqlite3.OperationalError as exc:
            self._rollback(conn)
            if is_busy_error(exc):
                raise StorageBusy("storage is busy; retry the operation") from exc
            raise
        except BaseException:
            self._rollback(conn)
            raise

        try:
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            logger.error("Commit failed; rolling back: %s", exc)
            self._rollback(conn)
            if isinstance(exc, sqlite3.OperationalError) and is_busy_error(exc):
                raise StorageBusy("storage is busy; retry the operation") from exc
            raise

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        device_types = ", ".join(f"'{member.value}'" for member in SwitchBotDeviceType)
        with self.transaction() as db:
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS homes (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    sort_order INTEGER NOT NULL UNIQUE
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS rooms (
                    id TEXT PRIMARY KEY,
                    home_id TEXT NOT NULL REFERENCES homes (id),
                    name TEXT NOT NULL,
                    sort_order INTEGER NOT NULL,
                    UNIQUE (home_id, sort_order)
                )
                """
            )
            db.execute(
                f"""
                CREATE TABLE IF NOT EXISTS switchbot_devices (
                    id BLOB PRIMARY KEY,
                    type TEXT NOT NULL CHECK (type IN ({device_types})),
                    name TEXT NOT NULL,
                    sort_order INTEGER NOT NULL UNIQUE,
                    CHECK (length(id) = 6)
                )
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS switchbot_device_locations (
                    device_id BLOB NOT NULL REFERENCES switchbot_devices (id),
                    placed_at TEXT NOT NULL,
                    removed_at TEXT,
                    room_id TEXT NOT NULL REFERENCES rooms (id),
                    PRIMARY KEY (device_id, placed_at),
                    CHECK (removed_at IS NULL OR placed_at < removed_at)
                )
                """
            )
            # At most one open placement per device.
            db.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_device_locations_open
                ON switchbot_device_locations (device_id)
                WHERE removed_at IS NULL
                """
            )
            db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_device_locations_room_open
                ON switchbot_device_locations (room_id)
                WHERE removed_at IS NULL
                """
            )
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS switchbot_measurements (
                    device_id BLOB NOT NULL REFERENCES switchbot_devices (id),
                    measured_at TEXT NOT NULL,
                    temperature_celsius REAL NOT NULL,
                    humidity_percent INTEGER NOT NULL,
                    co2_ppm INTEGER,
                    light_level INTEGER,
                    PRIMARY KEY (device_id, measured_at),
                    CHECK (0 <= light_level AND light_level <= 20)
                )
                """
            )
        logger.info("Database schema ready at %s", self._database_path)

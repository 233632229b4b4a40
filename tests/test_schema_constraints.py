"""
Schema-level guarantees, exercised with raw SQL so they hold for any writer
that bypasses the services.
"""

import sqlite3

import pytest

DEVICE = bytes.fromhex("aabbccddee01")


@pytest.fixture()
def conn(db_connection):
    db_connection.execute("INSERT INTO homes (id, name, sort_order) VALUES ('h', 'Home', 1)")
    db_connection.execute("INSERT INTO rooms (id, home_id, name, sort_order) VALUES ('r1', 'h', 'Kitchen', 1)")
    db_connection.execute("INSERT INTO rooms (id, home_id, name, sort_order) VALUES ('r2', 'h', 'Office', 2)")
    db_connection.execute(
        "INSERT INTO switchbot_devices (id, type, name, sort_order) VALUES (?, 'Hub 2', 'Hub', 1)",
        (DEVICE,),
    )
    return db_connection


def place(conn, placed_at, room_id="r1", removed_at=None):
    conn.execute(
        "INSERT INTO switchbot_device_locations (device_id, placed_at, removed_at, room_id) VALUES (?, ?, ?, ?)",
        (DEVICE, placed_at, removed_at, room_id),
    )


def measure(conn, measured_at, light_level=None):
    conn.execute(
        """
        INSERT INTO switchbot_measurements
            (device_id, measured_at, temperature_celsius, humidity_percent, light_level)
        VALUES (?, ?, 21.0, 40, ?)
        """,
        (DEVICE, measured_at, light_level),
    )


def test_second_open_placement_is_rejected(conn):
    place(conn, "2026-01-01T00:00:00.000000+00:00")

    with pytest.raises(sqlite3.IntegrityError):
        place(conn, "2026-01-02T00:00:00.000000+00:00", room_id="r2")


def test_closed_placements_may_coexist_with_an_open_one(conn):
    place(conn, "2026-01-01T00:00:00.000000+00:00", removed_at="2026-01-02T00:00:00.000000+00:00")
    place(conn, "2026-01-02T00:00:00.000000+00:00", removed_at="2026-01-03T00:00:00.000000+00:00")
    place(conn, "2026-01-03T00:00:00.000000+00:00", room_id="r2")

    count = conn.execute("SELECT COUNT(*) FROM switchbot_device_locations").fetchone()[0]
    assert count == 3


@pytest.mark.parametrize("removed_at", ["2026-01-01T00:00:00.000000+00:00", "2025-12-31T00:00:00.000000+00:00"])
def test_removed_must_follow_placed(conn, removed_at):
    with pytest.raises(sqlite3.IntegrityError):
        place(conn, "2026-01-01T00:00:00.000000+00:00", removed_at=removed_at)


def test_placement_requires_known_room(conn):
    with pytest.raises(sqlite3.IntegrityError):
        place(conn, "2026-01-01T00:00:00.000000+00:00", room_id="attic")


@pytest.mark.parametrize("light_level", [-1, 21])
def test_light_level_check(conn, light_level):
    with pytest.raises(sqlite3.IntegrityError):
        measure(conn, "2026-01-01T00:00:00.000000+00:00", light_level)


def test_light_level_may_be_null(conn):
    measure(conn, "2026-01-01T00:00:00.000000+00:00")


def test_measurement_primary_key(conn):
    measure(conn, "2026-01-01T00:00:00.000000+00:00", 3)

    with pytest.raises(sqlite3.IntegrityError):
        measure(conn, "2026-01-01T00:00:00.000000+00:00", 4)


def test_measurement_requires_registered_device(conn):
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            """
            INSERT INTO switchbot_measurements (device_id, measured_at, temperature_celsius, humidity_percent)
            VALUES (?, '2026-01-01T00:00:00.000000+00:00', 21.0, 40)
            """,
            (bytes(6),),
        )


def test_device_type_is_a_closed_set(conn):
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO switchbot_devices (id, type, name, sort_order) VALUES (?, 'Toaster', 'Bad', 2)",
            (bytes.fromhex("aabbccddee02"),),
        )


def test_device_id_is_six_bytes(conn):
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO switchbot_devices (id, type, name, sort_order) VALUES (?, 'Meter', 'Bad', 2)",
            (bytes(5),),
        )


@pytest.mark.parametrize(
    "statement",
    [
        "INSERT INTO homes (id, name, sort_order) VALUES ('h2', 'Cabin', 1)",
        "INSERT INTO rooms (id, home_id, name, sort_order) VALUES ('r3', 'h', 'Hall', 1)",
    ],
)
def test_sort_order_uniqueness(conn, statement):
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(statement)


def test_create_tables_is_idempotent(db_handler, conn):
    db_handler.create_tables()

    assert conn.execute("SELECT COUNT(*) FROM switchbot_devices").fetchone()[0] == 1

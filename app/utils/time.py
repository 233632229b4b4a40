"""Utility functions for time handling.

All timestamps are UTC and timezone-aware inside the ledger. They are
persisted as fixed-width ISO-8601 strings (microsecond precision, ``+00:00``
offset) so that SQLite's text ordering matches chronological ordering.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Naive values are interpreted as UTC.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def to_storage(value: datetime) -> str:
    """Format an aware (or naive-as-UTC) datetime for persistence."""
    dt = coerce_datetime(value)
    if dt is None:
        raise TypeError(f"expected datetime, got {type(value).__name__}")
    return dt.strftime(STORAGE_FORMAT)


def from_storage(value: str | None) -> datetime | None:
    """Parse a persisted timestamp back into an aware UTC datetime."""
    if value is None:
        return None
    return datetime.strptime(value, STORAGE_FORMAT).replace(tzinfo=timezone.utc)


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising ValueError for unknown zones."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {name}") from exc


def localize(naive: datetime, zone: ZoneInfo) -> datetime:
    """
    Attach ``zone`` to a naive local wall-clock time.

    Ambiguous times (the repeated hour when clocks go back) resolve to the
    earlier instant. Times inside a spring-forward gap do not exist and raise
    ValueError.
    """
    if naive.tzinfo is not None:
        raise ValueError("expected a naive datetime")
    candidate = naive.replace(tzinfo=zone, fold=0)
    round_trip = candidate.astimezone(timezone.utc).astimezone(zone)
    if round_trip.replace(tzinfo=None) != naive:
        raise ValueError(f"nonexistent local time in {zone.key}: {naive.isoformat(sep=' ')}")
    return candidate

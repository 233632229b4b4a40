"""
SwitchBot CSV export import.

The SwitchBot app exports one CSV per device. The header decides which
optional column is present:

- header mentions ``Co2``         -> temperature, humidity, CO2 (column 3)
- header mentions ``Light_Value`` -> temperature, humidity, light level (column 6)
- otherwise                       -> temperature, humidity

Timestamps are local wall-clock minutes (``%Y-%m-%d %H:%M``) in the zone the
export was taken in.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, List, TextIO

from app.domain.devices import MacAddress
from app.domain.exceptions import HomeEnvError, ValidationError
from app.domain.measurement import Measurement
from app.schemas import MeasurementIn, PydanticValidationError, to_domain_error
from app.utils.time import get_zone, localize

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from app.services.application.measurement_store import MeasurementStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_BATCH_SIZE = 1000

MEASURED_AT_INDEX = 0
TEMPERATURE_CELSIUS_INDEX = 1
HUMIDITY_PERCENT_INDEX = 2
CO2_PPM_INDEX = 3
LIGHT_LEVEL_INDEX = 6


class CsvFormat(str, Enum):
    TEMPERATURE_HUMIDITY = "temperature_humidity"
    TEMPERATURE_HUMIDITY_CO2 = "temperature_humidity_co2"
    TEMPERATURE_HUMIDITY_LIGHT_LEVEL = "temperature_humidity_light_level"


@dataclass(frozen=True)
class ImportResult:
    path: str
    rows_read: int
    inserted: int

    @property
    def skipped(self) -> int:
        return self.rows_read - self.inserted


def detect_format(header: str) -> CsvFormat:
    if "Co2" in header:
        return CsvFormat.TEMPERATURE_HUMIDITY_CO2
    if "Light_Value" in header:
        return CsvFormat.TEMPERATURE_HUMIDITY_LIGHT_LEVEL
    return CsvFormat.TEMPERATURE_HUMIDITY


def _integer(value: str, field: str, line: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError(
            f"line {line}: {field} must be an integer, got {value!r}",
            detail={"line": line, "field": field, "value": value},
        ) from None


def _parse_row(
    row: List[str],
    *,
    line: int,
    csv_format: CsvFormat,
    device_id: MacAddress,
    zone: "ZoneInfo",
) -> Measurement:
    try:
        raw_timestamp = row[MEASURED_AT_INDEX]
        payload: dict[str, Any] = {
            "device_id": device_id,
            "temperature_celsius": row[TEMPERATURE_CELSIUS_INDEX],
            "humidity_percent": _integer(row[HUMIDITY_PERCENT_INDEX], "humidity_percent", line),
        }
        if csv_format is CsvFormat.TEMPERATURE_HUMIDITY_CO2:
            payload["co2_ppm"] = _integer(row[CO2_PPM_INDEX], "co2_ppm", line)
        elif csv_format is CsvFormat.TEMPERATURE_HUMIDITY_LIGHT_LEVEL:
            payload["light_level"] = _integer(row[LIGHT_LEVEL_INDEX], "light_level", line)
    except IndexError:
        raise ValidationError(f"line {line}: missing columns", detail={"line": line}) from None

    try:
        naive = datetime.strptime(raw_timestamp.strip(), TIMESTAMP_FORMAT)
        payload["measured_at"] = localize(naive, zone)
    except ValueError as exc:
        raise ValidationError(
            f"line {line}: invalid timestamp {raw_timestamp!r}: {exc}",
            detail={"line": line, "value": raw_timestamp},
        ) from exc

    try:
        return MeasurementIn(**payload).to_domain()
    except PydanticValidationError as exc:
        error = to_domain_error(exc)
        raise ValidationError(f"line {line}: {error}", detail={"line": line, **error.detail}) from None
    except HomeEnvError as exc:
        raise type(exc)(f"line {line}: {exc}", detail={"line": line, **exc.detail}) from exc


def iter_csv_measurements(handle: TextIO, device_id: Any, timezone: str) -> Iterator[Measurement]:
    """Yield one measurement per data row; raise on the first malformed row."""
    device_id = MacAddress.parse(device_id)
    zone = get_zone(timezone)
    header = handle.readline()
    csv_format = detect_format(header)
    logger.debug("Detected CSV format %s from header %r", csv_format.value, header.strip())

    for line, row in enumerate(csv.reader(handle), start=2):
        if not row or not any(cell.strip() for cell in row):
            continue
        yield _parse_row(row, line=line, csv_format=csv_format, device_id=device_id, zone=zone)


def import_csv(
    store: "MeasurementStore",
    path: str | Path,
    device_id: Any,
    timezone: str,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> ImportResult:
    """
    Import a SwitchBot CSV export for one device.

    Rows are written in batches through ``store.record_many``; readings that
    already exist are skipped, so re-running an import is harmless. A bad row
    stops the import, leaving earlier batches committed.

    Raises:
        ValidationError: malformed row, unknown timezone or bad device id
        UnknownDevice: device not registered
        OSError: file cannot be read
    """
    if batch_size <= 0:
        raise ValidationError("batch_size must be positive", detail={"batch_size": batch_size})
    try:
        get_zone(timezone)
    except ValueError as exc:
        raise ValidationError(str(exc), detail={"timezone": timezone}) from exc

    path = Path(path)
    rows_read = 0
    inserted = 0
    batch: List[Measurement] = []

    with path.open(newline="", encoding="utf-8-sig") as handle:
        for measurement in iter_csv_measurements(handle, device_id, timezone):
            batch.append(measurement)
            rows_read += 1
            if len(batch) >= batch_size:
                inserted += store.record_many(batch, skip_duplicates=True)
                batch.clear()

    if batch:
        inserted += store.record_many(batch, skip_duplicates=True)

    result = ImportResult(path=str(path), rows_read=rows_read, inserted=inserted)
    logger.info(
        "Imported %s: %s row(s) read, %s inserted, %s already present",
        path,
        result.rows_read,
        result.inserted,
        result.skipped,
    )
    return result

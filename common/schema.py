"""
Header and record parsing for daily observation CSV files.

The header is resolved into a Schema exactly once; every data line is then
parsed against it. Parsing a line never raises anything but a
SkippableRecordError subclass, so a bad line can't abort a map task.
"""

import math
import datetime
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from common.errors import MalformedRecordError, SchemaError

STATION_COLUMN = 'location_id'
DATE_COLUMN = 'date'
TEMPERATURE_COLUMN = 'temperature_2m_mean (°C)'
PRECIPITATION_COLUMN = 'precipitation_hours (h)'

DELIMITER = ','


@dataclass(frozen=True)
class ObservationRecord:
    """One day of observations for one station"""
    station_id: int
    date: datetime.date
    precipitation_hours: float
    temperature_mean: Optional[float] = None

    @property
    def month(self) -> int:
        return self.date.month

    @property
    def year(self) -> int:
        return self.date.year


@dataclass(frozen=True)
class Schema:
    """Column name -> index mapping resolved from the header line"""
    columns: Dict[str, int]
    required: Sequence[str]
    width: int

    def index(self, name: str) -> int:
        return self.columns[name]

    def has(self, name: str) -> bool:
        return name in self.columns


def split_fields(line: str) -> list:
    return [field.strip() for field in line.rstrip('\r\n').split(DELIMITER)]


def parse_header(line: str, required: Sequence[str]) -> Schema:
    """
    Build a Schema from the header line

    Args:
        line: First line of the input
        required: Column names the job reads

    Returns:
        Schema with every column of the header indexed by name

    Raises:
        SchemaError: If any required column is missing
    """
    fields = split_fields(line)
    columns = {}
    for i, name in enumerate(fields):
        # first occurrence wins for duplicated names
        columns.setdefault(name, i)

    missing = [name for name in required if name not in columns]
    if missing:
        raise SchemaError(f"Input header is missing required columns: {', '.join(missing)}")

    return Schema(columns=columns, required=tuple(required), width=len(fields))


def parse_date(text: str) -> datetime.date:
    """Parse a month/day/year date"""
    parts = text.split('/')
    if len(parts) != 3:
        raise MalformedRecordError(f"date '{text}' is not month/day/year")
    try:
        month, day, year = (int(part) for part in parts)
        return datetime.date(year, month, day)
    except ValueError as e:
        raise MalformedRecordError(f"invalid date '{text}': {e}")


def _parse_float(text: str, column: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise MalformedRecordError(f"{column} '{text}' is not a number")
    if not math.isfinite(value):
        raise MalformedRecordError(f"{column} '{text}' is not finite")
    return value


def parse_record(schema: Optional[Schema], line: str) -> ObservationRecord:
    """
    Parse one data line against the schema

    Raises:
        MalformedRecordError: On any structural or numeric problem, or when
            no header has been seen yet
    """
    if schema is None:
        raise MalformedRecordError('data line received before header', line)

    fields = split_fields(line)
    if len(fields) < schema.width:
        raise MalformedRecordError(
            f"expected {schema.width} fields, got {len(fields)}", line)

    try:
        raw_station = fields[schema.index(STATION_COLUMN)]
        try:
            station_id = int(raw_station)
        except ValueError:
            raise MalformedRecordError(f"station id '{raw_station}' is not an integer")
        if station_id < 0:
            raise MalformedRecordError(f"station id {station_id} is negative")

        date = parse_date(fields[schema.index(DATE_COLUMN)])

        precipitation = _parse_float(fields[schema.index(PRECIPITATION_COLUMN)], PRECIPITATION_COLUMN)
        if precipitation < 0:
            raise MalformedRecordError(f"negative precipitation hours {precipitation}")

        temperature = None
        if TEMPERATURE_COLUMN in schema.required:
            temperature = _parse_float(fields[schema.index(TEMPERATURE_COLUMN)], TEMPERATURE_COLUMN)

    except KeyError as e:
        raise MalformedRecordError(f"column {e} not in header", line)
    except MalformedRecordError as e:
        e.line = line
        raise

    return ObservationRecord(
        station_id=station_id,
        date=date,
        precipitation_hours=precipitation,
        temperature_mean=temperature,
    )

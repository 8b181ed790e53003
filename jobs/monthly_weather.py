"""
Total precipitation and mean temperature per district per month.

Observations from 2014 onwards are folded into one bucket per
(station, month), so every January of the decade lands in the same key.
Stations 25 (Welimada) and 26 (Bandarawela) are towns rather than
districts and are left out.
"""

from common.aggregates import PartialAggregate, merge_partials
from common.errors import FilteredRecordError
from common.formatting import FinalRecord, format_monthly_line, sort_final_records
from common.schema import DATE_COLUMN, PRECIPITATION_COLUMN, STATION_COLUMN, TEMPERATURE_COLUMN

JOB_NAME = 'Monthly Weather Analysis'

REQUIRED_COLUMNS = (STATION_COLUMN, DATE_COLUMN, TEMPERATURE_COLUMN, PRECIPITATION_COLUMN)
NEEDS_STATIONS = True

EXCLUDED_STATIONS = frozenset({25, 26})
MIN_YEAR = 2014


def key_function(record):
    """
    Aggregation key for a record: (station_id, month), year dropped.

    Raises:
        FilteredRecordError: For excluded stations and years before MIN_YEAR
    """
    if record.station_id in EXCLUDED_STATIONS:
        raise FilteredRecordError(f"station {record.station_id} is not a district")
    if record.year < MIN_YEAR:
        raise FilteredRecordError(f"year {record.year} is before {MIN_YEAR}")
    return (record.station_id, record.month)


def map_function(record):
    """
    Map function: emit one single-observation partial per record.

    Yields:
        ((station_id, month), PartialAggregate) tuple
    """
    yield (key_function(record), PartialAggregate.of(record))


def combiner_function(key, values):
    """Pre-merge the partials one map task produced for a key"""
    yield (key, merge_partials(values))


def reduce_function(key, values):
    """Merge every partial for a key and compute its mean temperature"""
    yield (key, merge_partials(values).finalize())


def finalize_function(results, stations):
    """
    Resolve station names, sort and render the report.

    Args:
        results: Every ((station_id, month), FinalAggregate) pair of the job
        stations: StationDirectory

    Returns:
        Output lines sorted by station name, then month
    """
    records = [
        FinalRecord(
            station_name=stations.resolve(station_id),
            month=month,
            total_precipitation=aggregate.total_precipitation,
            mean_temperature=aggregate.mean_temperature,
            station_id=station_id,
        )
        for (station_id, month), aggregate in results
    ]
    return [format_monthly_line(record) for record in sort_final_records(records)]

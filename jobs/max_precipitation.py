"""
Month and year with the highest total precipitation across all districts.

Unlike the monthly report the key keeps the year, so each calendar month
of each year is its own candidate, and no station or year filter applies.
"""

from itertools import groupby

from common.aggregates import PartialAggregate, merge_partials
from common.formatting import format_max_line, format_month_total_line
from common.global_max import global_max, merge_maxima
from common.schema import DATE_COLUMN, PRECIPITATION_COLUMN, STATION_COLUMN

JOB_NAME = 'Maximum Precipitation Month'

REQUIRED_COLUMNS = (STATION_COLUMN, DATE_COLUMN, PRECIPITATION_COLUMN)
NEEDS_STATIONS = False


def key_function(record):
    return (record.month, record.year)


def map_function(record):
    """
    Yields:
        ((month, year), PartialAggregate) tuple
    """
    yield (key_function(record), PartialAggregate.of(record))


def combiner_function(key, values):
    yield (key, merge_partials(values))


def reduce_function(key, values):
    yield (key, merge_partials(values).finalize())


def chronological(results):
    return sorted(results, key=lambda pair: (pair[0][1], pair[0][0]))


def yearly_maxima(results):
    """Best month of each year, in year order"""
    for _, pairs in groupby(chronological(results), key=lambda pair: pair[0][1]):
        yield global_max((key, aggregate.total_precipitation) for key, aggregate in pairs)


def finalize_function(results, stations):
    """Single line for the winning month, or nothing for an empty keyspace"""
    maximum = merge_maxima(yearly_maxima(results))
    if maximum is None:
        return []
    return [format_max_line(maximum)]


def totals_function(results):
    """Every month-year total in chronological order"""
    return [
        format_month_total_line(month, year, aggregate.total_precipitation, aggregate.count)
        for (month, year), aggregate in chronological(results)
    ]

"""
Rendering of final report lines
"""

from decimal import Decimal, ROUND_HALF_UP
from dataclasses import dataclass
from typing import Iterable, List

from common.global_max import GlobalMaximum


@dataclass(frozen=True)
class FinalRecord:
    """One (station, month) result of the monthly report"""
    station_name: str
    month: int
    total_precipitation: float
    mean_temperature: float
    station_id: int


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 21 -> '21st'"""
    if 11 <= n <= 13:
        return f"{n}th"
    suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f"{n}{suffix}"


def round_half_up(value: float) -> str:
    """Format to zero decimal places, rounding halves away from zero"""
    return str(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def sort_final_records(records: Iterable[FinalRecord]) -> List[FinalRecord]:
    return sorted(records, key=lambda r: (r.station_name, r.month, r.station_id))


def format_monthly_line(record: FinalRecord) -> str:
    return (
        f"{record.station_name} had a total precipitation of "
        f"{round_half_up(record.total_precipitation)} hours with a mean temperature of "
        f"{round_half_up(record.mean_temperature)} for {ordinal(record.month)} month"
    )


def format_max_line(maximum: GlobalMaximum) -> str:
    return (
        f"{ordinal(maximum.month)} month in {maximum.year} had the highest total "
        f"precipitation of {round_half_up(maximum.total)} hours"
    )


def format_month_total_line(month: int, year: int, total: float, count: int) -> str:
    return f"{month}-{year}\tTotal Precipitation: {total:.2f} hours (from {count} records)"

"""
Global maximum over (month, year) precipitation totals.

Keys are (month, year) tuples. The winner is the greatest total; equal
totals go to the chronologically earliest month. That is a total order,
so the fold gives the same answer for any scan order and per-shard maxima
can be merged with merge_maxima.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

MonthKey = Tuple[int, int]


@dataclass(frozen=True)
class GlobalMaximum:
    """Month-year with the highest total precipitation"""
    month: int
    year: int
    total: float

    @property
    def key(self) -> MonthKey:
        return (self.month, self.year)


def _beats(candidate: GlobalMaximum, incumbent: Optional[GlobalMaximum]) -> bool:
    if incumbent is None:
        return True
    if candidate.total != incumbent.total:
        return candidate.total > incumbent.total
    return (candidate.year, candidate.month) < (incumbent.year, incumbent.month)


def global_max(pairs: Iterable[Tuple[MonthKey, float]]) -> Optional[GlobalMaximum]:
    """
    Single sequential pass over every (key, total) pair.

    Returns:
        The winning GlobalMaximum, or None when no pair was seen
    """
    best = None
    for (month, year), total in pairs:
        candidate = GlobalMaximum(month=month, year=year, total=total)
        if _beats(candidate, best):
            best = candidate
    return best


def merge_maxima(candidates: Iterable[Optional[GlobalMaximum]]) -> Optional[GlobalMaximum]:
    """Fold shard-level maxima into the global one; None entries are empty shards"""
    best = None
    for candidate in candidates:
        if candidate is not None and _beats(candidate, best):
            best = candidate
    return best

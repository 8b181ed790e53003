"""
Mergeable accumulators for the map, combine and reduce phases.

PartialAggregate merging is a field-wise sum, so partials may be combined
in any grouping and any order and still produce the same totals.
"""

from dataclasses import dataclass, asdict
from typing import Iterable


@dataclass
class PartialAggregate:
    """Running totals for one aggregation key"""
    precipitation_sum: float = 0.0
    temperature_sum: float = 0.0
    count: int = 0

    @classmethod
    def of(cls, record) -> 'PartialAggregate':
        """Accumulator holding a single observation"""
        return cls().combine(record)

    def combine(self, record) -> 'PartialAggregate':
        """Fold one ObservationRecord into this accumulator"""
        self.precipitation_sum += record.precipitation_hours
        if record.temperature_mean is not None:
            self.temperature_sum += record.temperature_mean
        self.count += 1
        return self

    def merge(self, other: 'PartialAggregate') -> 'PartialAggregate':
        """Add another accumulator for the same key into this one"""
        self.precipitation_sum += other.precipitation_sum
        self.temperature_sum += other.temperature_sum
        self.count += other.count
        return self

    def finalize(self) -> 'FinalAggregate':
        mean = self.temperature_sum / self.count if self.count > 0 else 0.0
        return FinalAggregate(
            total_precipitation=self.precipitation_sum,
            mean_temperature=mean,
            count=self.count,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'PartialAggregate':
        return cls(
            precipitation_sum=float(data['precipitation_sum']),
            temperature_sum=float(data['temperature_sum']),
            count=int(data['count']),
        )


@dataclass(frozen=True)
class FinalAggregate:
    """Merged result for one key; never changes after the merge completes"""
    total_precipitation: float
    mean_temperature: float
    count: int

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'FinalAggregate':
        return cls(
            total_precipitation=float(data['total_precipitation']),
            mean_temperature=float(data['mean_temperature']),
            count=int(data['count']),
        )


def merge_partials(values: Iterable[PartialAggregate]) -> PartialAggregate:
    """
    Merge every partial for one key into a fresh accumulator.

    The inputs are left untouched.
    """
    merged = PartialAggregate()
    for value in values:
        merged.merge(value)
    return merged

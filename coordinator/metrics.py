"""
Performance metrics collection for weather MapReduce jobs.
"""

import os
import time
import json
from dataclasses import dataclass, asdict


def _total_size(paths) -> int:
    return sum(os.path.getsize(p) for p in paths if p and os.path.exists(p))


@dataclass
class JobMetrics:
    """Metrics for a single job execution."""

    job_id: str
    job_name: str
    start_time: float
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    num_map_tasks: int = 0
    num_reduce_tasks: int = 0
    use_combiner: bool = False
    input_size_bytes: int = 0
    intermediate_size_bytes: int = 0
    output_size_bytes: int = 0
    records_read: int = 0
    records_skipped: int = 0
    records_filtered: int = 0
    pairs_emitted: int = 0
    pairs_written: int = 0
    keys_reduced: int = 0
    lines_written: int = 0
    peak_memory_bytes: int = 0

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        return self.reduce_phase_end - self.reduce_phase_start

    @property
    def combiner_reduction_ratio(self) -> float:
        """Share of map output pairs removed by the combiner."""
        if self.pairs_emitted == 0:
            return 0.0
        return 1.0 - (self.pairs_written / self.pairs_emitted)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['combiner_reduction_ratio'] = self.combiner_reduction_ratio
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects metrics for jobs as their tasks report back."""

    def __init__(self):
        self.job_metrics = {}

    def start_job(self, job_id: str, job_name: str, num_map_tasks: int, num_reduce_tasks: int,
                  use_combiner: bool, input_path: str):
        """Initialize metrics tracking for a new job."""
        now = time.time()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            job_name=job_name,
            start_time=now,
            map_phase_start=now,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            input_size_bytes=_total_size([input_path]),
        )

    def record_map_result(self, job_id: str, result: dict):
        metrics = self.job_metrics.get(job_id)
        if not metrics:
            return
        metrics.records_read += result.get('records_read', 0)
        metrics.records_skipped += result.get('records_skipped', 0)
        metrics.records_filtered += result.get('records_filtered', 0)
        metrics.pairs_emitted += result.get('pairs_emitted', 0)
        metrics.pairs_written += result.get('pairs_written', 0)
        metrics.intermediate_size_bytes += _total_size(result.get('intermediate_files', []))
        metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, result.get('memory_bytes', 0))

    def record_reduce_result(self, job_id: str, result: dict):
        metrics = self.job_metrics.get(job_id)
        if not metrics:
            return
        metrics.keys_reduced += result.get('keys', 0)
        metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, result.get('memory_bytes', 0))

    def end_map_phase(self, job_id: str):
        """Mark the end of the map phase and the start of the reduce phase."""
        if job_id in self.job_metrics:
            now = time.time()
            self.job_metrics[job_id].map_phase_end = now
            self.job_metrics[job_id].reduce_phase_start = now

    def end_reduce_phase(self, job_id: str):
        if job_id in self.job_metrics:
            self.job_metrics[job_id].reduce_phase_end = time.time()

    def end_job(self, job_id: str, final_result: dict):
        """Mark job completion and record output size."""
        metrics = self.job_metrics.get(job_id)
        if not metrics:
            return
        metrics.end_time = time.time()
        metrics.lines_written = final_result.get('lines_written', 0)
        metrics.output_size_bytes = _total_size(
            [final_result.get('output_file'), final_result.get('totals_file')])
        metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, final_result.get('memory_bytes', 0))

    def get_metrics(self, job_id: str) -> JobMetrics:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)

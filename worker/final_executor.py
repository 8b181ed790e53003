#!/usr/bin/env python3
"""
Final Task Executor
Runs once per job on a single worker: reads every reduce output, so the
whole keyspace is visible, and hands it to the job's finalize function
"""

import os
import time
import logging

import psutil

from common.aggregates import FinalAggregate
from common.storage import read_json_lines, write_lines
from worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)

REPORT_FILE = 'part-0.txt'
TOTALS_FILE = 'totals-0.txt'


class FinalExecutor:
    """Executes the single, unsharded final task of a job"""

    def __init__(self, reduce_outputs: list, job_file: str, output_path: str,
                 stations=None, emit_totals: bool = False):
        """
        Args:
            reduce_outputs: Output file of every reduce task
            job_file: Job module path or name
            output_path: Report directory
            stations: StationDirectory, or None for jobs that don't need one
            emit_totals: Also write the job's per-key totals, when it defines them
        """
        self.reduce_outputs = reduce_outputs
        self.job_file = job_file
        self.output_path = output_path
        self.stations = stations
        self.emit_totals = emit_totals
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        start_time = time.time()

        try:
            finalize_func = self.loader.get_finalize_function()
            results = self._read_results()

            lines = finalize_func(results, self.stations)
            report_file = os.path.join(self.output_path, REPORT_FILE)
            written = write_lines(report_file, lines)
            logger.info(f"Final task: Wrote {written} lines to {report_file}")

            totals_file = os.path.join(self.output_path, TOTALS_FILE)
            totals_func = self.loader.get_totals_function()
            if self.emit_totals and totals_func:
                write_lines(totals_file, totals_func(results))
            else:
                # totals left by an earlier run would not match this report
                if os.path.exists(totals_file):
                    os.remove(totals_file)
                    logger.info(f"Final task: Removed stale {totals_file}")
                totals_file = None

            execution_time = int((time.time() - start_time) * 1000)
            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'lines_written': written,
                'output_file': report_file,
                'totals_file': totals_file,
                'memory_bytes': psutil.Process().memory_info().rss,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Final task failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
            }

    def _read_results(self) -> list:
        """Every (key, FinalAggregate) pair across all reduce outputs, sorted by key"""
        results = []
        for filepath in self.reduce_outputs:
            for key, value in read_json_lines(filepath):
                results.append((key, FinalAggregate.from_dict(value)))
        results.sort(key=lambda pair: pair[0])
        logger.info(f"Final task: Collected {len(results)} keys from {len(self.reduce_outputs)} reduce outputs")
        return results

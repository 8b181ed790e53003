#!/usr/bin/env python3
"""
Local job runner
Drives one job through the map, reduce and final phases on a thread pool.
All map tasks must finish before any reduce task is created, and the
final phase runs exactly once over every reduce output.
"""

import os
import uuid
import shutil
import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from common.config import JobConfig
from common.errors import JobFailedError
from common.schema import parse_header
from common.stations import StationDirectory
from common.storage import read_header
from coordinator.job_manager import JobManager
from coordinator.metrics import JobMetrics, MetricsCollector
from worker.final_executor import FinalExecutor
from worker.function_loader import FunctionLoader
from worker.map_executor import MapExecutor
from worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)


class LocalJobRunner:
    """Runs weather MapReduce jobs in-process"""

    def __init__(self, config: Optional[JobConfig] = None,
                 job_manager: Optional[JobManager] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config or JobConfig()
        self.job_manager = job_manager or JobManager()
        self.metrics = metrics or MetricsCollector()

    def run(self, job_file: str, input_path: str, output_path: str,
            job_id: Optional[str] = None) -> JobMetrics:
        """
        Run a job to completion

        Args:
            job_file: Job module path or dotted module name
            input_path: Observation CSV
            output_path: Report directory
            job_id: Custom job ID (auto-generated if not provided)

        Returns:
            JobMetrics for the finished job

        Raises:
            SchemaError: Input header lacks a required column
            ReferenceLoadError: Station reference could not be loaded
            JobFailedError: Input missing or a task failed
        """
        job_id = job_id or uuid.uuid4().hex[:12]
        loader = FunctionLoader(job_file)
        job_name = loader.get_job_name()

        if not os.path.isfile(input_path):
            raise JobFailedError(f"Input file not found: {input_path}")

        logger.info("=" * 44)
        logger.info(f"Job {job_id}: {job_name}")
        logger.info(f"Input Path: {input_path}")
        logger.info(f"Output Path: {output_path}")
        logger.info("=" * 44)

        # Header and reference data are resolved before any aggregation starts
        header = read_header(input_path)
        schema = None
        if header is None:
            logger.warning(f"Job {job_id}: Input {input_path} is empty")
        else:
            schema = parse_header(header, loader.get_required_columns())

        stations = None
        if loader.needs_stations():
            stations = StationDirectory.load(self.config.stations_path)

        created_work_dir = self.config.work_dir is None
        work_dir = self.config.work_dir or tempfile.mkdtemp(prefix='weather-mapreduce-')
        intermediate_dir = os.path.join(work_dir, job_id)

        job = self.job_manager.create_job(
            job_id=job_id,
            input_path=input_path,
            output_path=output_path,
            job_file=job_file,
            num_map_tasks=self.config.num_map_tasks,
            num_reduce_tasks=self.config.num_reduce_tasks,
            use_combiner=self.config.use_combiner,
            intermediate_dir=intermediate_dir,
        )
        map_tasks = self.job_manager.generate_map_tasks(job)
        self.metrics.start_job(job_id, job_name, len(map_tasks), job.num_reduce_tasks,
                               job.use_combiner, input_path)

        try:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                # --- MAP PHASE ---
                futures = {
                    pool.submit(MapExecutor(
                        task_id=task.task_id,
                        input_path=input_path,
                        start_offset=task.start_offset,
                        end_offset=task.end_offset,
                        num_reduce_tasks=job.num_reduce_tasks,
                        job_file=job_file,
                        use_combiner=job.use_combiner,
                        job_id=job_id,
                        schema=schema,
                        intermediate_dir=intermediate_dir,
                    ).execute): task
                    for task in map_tasks
                }
                failures = []
                for future in as_completed(futures):
                    task, result = futures[future], future.result()
                    if result['success']:
                        self.job_manager.mark_map_task_completed(job_id, task.task_id, result['intermediate_files'])
                        self.metrics.record_map_result(job_id, result)
                    else:
                        self.job_manager.mark_task_failed(job_id, task, result['error_message'])
                        failures.append(f"map task {task.task_id}: {result['error_message']}")
                if failures:
                    raise JobFailedError(f"Job {job_id} failed in map phase: {'; '.join(failures)}")
                self.metrics.end_map_phase(job_id)

                # --- REDUCE PHASE (after the barrier) ---
                reduce_tasks = self.job_manager.generate_reduce_tasks(job)
                futures = {
                    pool.submit(ReduceExecutor(
                        task_id=task.task_id,
                        partition_id=task.partition_id,
                        intermediate_files=task.intermediate_files,
                        job_file=job_file,
                        output_dir=intermediate_dir,
                        job_id=job_id,
                    ).execute): task
                    for task in reduce_tasks
                }
                for future in as_completed(futures):
                    task, result = futures[future], future.result()
                    if result['success']:
                        self.job_manager.mark_reduce_task_completed(job_id, task.task_id, result['output_file'])
                        self.metrics.record_reduce_result(job_id, result)
                    else:
                        self.job_manager.mark_task_failed(job_id, task, result['error_message'])
                        failures.append(f"reduce task {task.task_id}: {result['error_message']}")
                if failures:
                    raise JobFailedError(f"Job {job_id} failed in reduce phase: {'; '.join(failures)}")
                self.metrics.end_reduce_phase(job_id)

            # --- FINAL PHASE: one worker, whole keyspace ---
            result = FinalExecutor(
                reduce_outputs=self.job_manager.reduce_outputs(job),
                job_file=job_file,
                output_path=output_path,
                stations=stations,
                emit_totals=self.config.emit_totals,
            ).execute()
            if not result['success']:
                self.job_manager.mark_job_failed(job_id, result['error_message'])
                raise JobFailedError(f"Job {job_id} failed in final phase: {result['error_message']}")

            self.job_manager.mark_job_completed(job_id)
            self.metrics.end_job(job_id, result)
        finally:
            if not self.config.keep_intermediate:
                shutil.rmtree(work_dir if created_work_dir else intermediate_dir, ignore_errors=True)

        metrics = self.metrics.get_metrics(job_id)
        logger.info(f"Job {job_id}: Completed in {metrics.total_time_seconds:.2f}s, "
                    f"{metrics.records_read} records read, {metrics.records_skipped} skipped, "
                    f"{metrics.lines_written} lines written to {output_path}")
        return metrics

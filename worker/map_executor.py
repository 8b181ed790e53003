#!/usr/bin/env python3
"""
Map Task Executor
Executes map tasks by reading an input split, extracting observation
records, applying the job's map function, partitioning output by key and
writing intermediate files
"""

import os
import json
import time
import hashlib
import logging
from collections import defaultdict

import psutil

from common.errors import FilteredRecordError, SkippableRecordError
from common.schema import parse_record
from common.storage import read_split, write_json_lines
from worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)


def partition_for(key, num_partitions: int) -> int:
    """Stable hash partitioning; the same key maps to the same reducer in every process"""
    digest = hashlib.md5(json.dumps(list(key)).encode('utf-8')).hexdigest()
    return int(digest, 16) % num_partitions


def intermediate_file_name(task_id: int, partition: int) -> str:
    return f"map-{task_id}-reduce-{partition}.txt"


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, num_reduce_tasks: int, job_file: str,
                 use_combiner: bool, job_id: str, schema, intermediate_dir: str):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job_file: Job module path or name
            use_combiner: Whether to apply combiner function
            job_id: Unique job identifier
            schema: Schema resolved from the input header
            intermediate_dir: Directory for this job's intermediate files
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.job_file = job_file
        self.use_combiner = use_combiner
        self.job_id = job_id
        self.schema = schema
        self.intermediate_dir = intermediate_dir
        self.loader = FunctionLoader(job_file)

        self.records_read = 0
        self.records_skipped = 0
        self.records_filtered = 0

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            record counters, 'intermediate_files' and 'memory_bytes'
        """
        start_time = time.time()

        try:
            map_func = self.loader.get_map_function()

            logger.info(f"Map task {self.task_id}: Reading bytes {self.start_offset}-{self.end_offset}")
            intermediate = self._map_split(map_func)
            pairs_emitted = sum(len(v) for v in intermediate.values())
            logger.info(f"Map task {self.task_id}: Generated {pairs_emitted} intermediate pairs "
                        f"from {self.records_read} lines ({self.records_skipped} skipped)")

            if self.use_combiner:
                intermediate = self._apply_combiner(intermediate)
                logger.info(f"Map task {self.task_id}: After combiner: "
                            f"{sum(len(v) for v in intermediate.values())} pairs")
            pairs_written = sum(len(v) for v in intermediate.values())

            files = self._write_intermediate_files(intermediate)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'records_read': self.records_read,
                'records_skipped': self.records_skipped,
                'records_filtered': self.records_filtered,
                'pairs_emitted': pairs_emitted,
                'pairs_written': pairs_written,
                'intermediate_files': files,
                'memory_bytes': psutil.Process().memory_info().rss,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
            }

    def _map_split(self, map_func) -> dict:
        """
        Extract records from the split and run the map function over them

        Returns:
            Dictionary mapping partition_id to list of (key, PartialAggregate) pairs
        """
        intermediate = defaultdict(list)

        for offset, line in read_split(self.input_path, self.start_offset, self.end_offset):
            if offset == 0:
                continue  # header, resolved into self.schema by the coordinator
            if not line.strip():
                continue

            self.records_read += 1
            try:
                record = parse_record(self.schema, line)
                pairs = list(map_func(record))
            except FilteredRecordError as e:
                self.records_skipped += 1
                self.records_filtered += 1
                logger.debug(f"Map task {self.task_id}: Filtered line '{line}': {e.reason}")
                continue
            except SkippableRecordError as e:
                self.records_skipped += 1
                logger.warning(f"Map task {self.task_id}: Skipping line '{line}': {e.reason}")
                continue

            for out_key, out_value in pairs:
                partition = partition_for(out_key, self.num_reduce_tasks)
                intermediate[partition].append((out_key, out_value))

        return intermediate

    def _apply_combiner(self, intermediate: dict) -> dict:
        """
        Apply combiner function to local map output

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Dictionary with same structure but with combined values
        """
        combiner_func = self.loader.get_combiner_function()
        if not combiner_func:
            return intermediate

        combined = {}
        for partition, kv_pairs in intermediate.items():
            key_groups = defaultdict(list)
            for k, v in kv_pairs:
                key_groups[k].append(v)

            combined_pairs = []
            for key, values in key_groups.items():
                for out_key, out_value in combiner_func(key, values):
                    combined_pairs.append((out_key, out_value))

            combined[partition] = combined_pairs

        return combined

    def _write_intermediate_files(self, intermediate: dict) -> list:
        """
        Write intermediate pairs to disk as JSON lines, one file per non-empty partition

        Returns:
            List of written file paths
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        files = []
        for partition in sorted(intermediate):
            kv_pairs = intermediate[partition]
            if not kv_pairs:
                continue
            filename = os.path.join(self.intermediate_dir, intermediate_file_name(self.task_id, partition))
            write_json_lines(filename, ((key, value.to_dict()) for key, value in kv_pairs))
            files.append(filename)

        return files

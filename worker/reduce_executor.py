#!/usr/bin/env python3
"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
merging partial aggregates and writing one finalized aggregate per key
"""

import os
import time
import logging
from collections import defaultdict

import psutil

from common.aggregates import PartialAggregate
from common.storage import read_json_lines, write_json_lines
from worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)


def reduce_output_name(partition_id: int) -> str:
    return f"reduce-{partition_id}.txt"


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: list,
                 job_file: str, output_dir: str, job_id: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: Intermediate file paths for this partition, from every map task
            job_file: Job module path or name
            output_dir: Directory where the reduce output should be written
            job_id: Unique job identifier
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job_file = job_file
        self.output_dir = output_dir
        self.job_id = job_id
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'keys', 'output_file' and 'memory_bytes'
        """
        start_time = time.time()

        try:
            reduce_func = self.loader.get_reduce_function()

            key_groups = self._read_and_group_intermediate()
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique keys")

            results = []
            for key in sorted(key_groups):  # Sort by key for deterministic output
                for out_key, out_value in reduce_func(key, key_groups[key]):
                    results.append((out_key, out_value))

            output_file = self._write_output(results)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'keys': len(results),
                'output_file': output_file,
                'memory_bytes': psutil.Process().memory_info().rss,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
            }

    def _read_and_group_intermediate(self) -> dict:
        """
        Read all intermediate files and group by key

        Returns:
            Dictionary mapping key tuple to list of PartialAggregate
        """
        key_groups = defaultdict(list)
        records = 0

        for filepath in self.intermediate_files:
            if not os.path.exists(filepath):
                # every listed file comes from a completed map task
                raise FileNotFoundError(f"Intermediate file not found: {filepath}")
            for key, value in read_json_lines(filepath):
                try:
                    partial = PartialAggregate.from_dict(value)
                    key_groups[key].append(partial)
                    records += 1
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Reduce task {self.task_id}: Skipping malformed value in {filepath}: {e}")

        logger.debug(f"Reduce task {self.task_id}: Read {len(self.intermediate_files)} files, {records} records")
        return key_groups

    def _write_output(self, results: list) -> str:
        """
        Write (key, FinalAggregate) pairs as JSON lines

        Returns:
            Path of the written file
        """
        os.makedirs(self.output_dir, exist_ok=True)
        output_file = os.path.join(self.output_dir, reduce_output_name(self.partition_id))
        write_json_lines(output_file, ((key, value.to_dict()) for key, value in results))
        logger.debug(f"Reduce task {self.task_id}: Wrote output to {output_file}")
        return output_file

#!/usr/bin/env python3
"""
Job Manager for weather MapReduce jobs
Handles job state management, task generation, and progress tracking
"""

import threading
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, Optional
import time
import os
import re


class JobStatus(Enum):
    """Status of a MapReduce job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    FINAL_PHASE = "final_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapTask:
    """Represents a single map task"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING
    intermediate_files: List[str] = field(default_factory=list)


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    output_file: Optional[str] = None


@dataclass
class Job:
    """Represents a complete MapReduce job"""
    job_id: str
    input_path: str
    output_path: str
    job_file: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    intermediate_dir: str
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0
    error_message: str = ''


_PARTITION_RE = re.compile(r'map-\d+-reduce-(\d+)\.txt$')


def partition_of(intermediate_file: str) -> Optional[int]:
    """Partition id encoded in an intermediate file name"""
    match = _PARTITION_RE.search(os.path.basename(intermediate_file))
    return int(match.group(1)) if match else None


class JobManager:
    """Manages jobs and their lifecycle"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, job_id: str, input_path: str, output_path: str, job_file: str,
                   num_map_tasks: int, num_reduce_tasks: int, use_combiner: bool,
                   intermediate_dir: str) -> Job:
        """Register a new job"""
        with self.lock:
            job = Job(
                job_id=job_id,
                input_path=input_path,
                output_path=output_path,
                job_file=job_file,
                num_map_tasks=num_map_tasks,
                num_reduce_tasks=num_reduce_tasks,
                use_combiner=use_combiner,
                intermediate_dir=intermediate_dir,
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """
        Split the input file into byte ranges, one per map task.

        Never creates more tasks than the file has bytes; an empty file
        still gets a single (empty) task.
        """
        file_size = os.path.getsize(job.input_path)
        num_tasks = max(1, min(job.num_map_tasks, file_size))
        chunk_size = file_size // num_tasks

        map_tasks = []
        for i in range(num_tasks):
            start = i * chunk_size
            end = file_size if i == num_tasks - 1 else (i + 1) * chunk_size
            map_tasks.append(MapTask(
                task_id=i,
                input_path=job.input_path,
                start_offset=start,
                end_offset=end
            ))

        with self.lock:
            job.map_tasks = map_tasks
            job.num_map_tasks = num_tasks
            job.status = JobStatus.MAP_PHASE
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """
        Create one reduce task per partition with the intermediate files
        every map task produced for it.

        Raises:
            RuntimeError: If any map task has not completed
        """
        with self.lock:
            if any(t.status != TaskStatus.COMPLETED for t in job.map_tasks):
                raise RuntimeError(f"Job {job.job_id}: reduce tasks requested before the map phase finished")

            files_by_partition = {p: [] for p in range(job.num_reduce_tasks)}
            for map_task in job.map_tasks:
                for filepath in map_task.intermediate_files:
                    partition = partition_of(filepath)
                    if partition in files_by_partition:
                        files_by_partition[partition].append(filepath)

            job.reduce_tasks = [
                ReduceTask(
                    task_id=partition_id,
                    partition_id=partition_id,
                    intermediate_files=sorted(files)
                )
                for partition_id, files in files_by_partition.items()
            ]
            job.status = JobStatus.REDUCE_PHASE
            return job.reduce_tasks

    def mark_map_task_completed(self, job_id: str, task_id: int, intermediate_files: List[str]):
        """Mark map task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                job.map_tasks[task_id].status = TaskStatus.COMPLETED
                job.map_tasks[task_id].intermediate_files = list(intermediate_files)

                # Check if all map tasks completed
                if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
                    job.status = JobStatus.SHUFFLE_PHASE

    def mark_reduce_task_completed(self, job_id: str, task_id: int, output_file: str):
        """Mark reduce task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.reduce_tasks):
                job.reduce_tasks[task_id].status = TaskStatus.COMPLETED
                job.reduce_tasks[task_id].output_file = output_file

                if all(t.status == TaskStatus.COMPLETED for t in job.reduce_tasks):
                    job.status = JobStatus.FINAL_PHASE

    def mark_task_failed(self, job_id: str, task, error_message: str):
        """Mark a map or reduce task, and with it the job, as failed"""
        with self.lock:
            task.status = TaskStatus.FAILED
        self.mark_job_failed(job_id, error_message)

    def mark_job_failed(self, job_id: str, error_message: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                job.end_time = time.time()

    def mark_job_completed(self, job_id: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = JobStatus.COMPLETED
                job.end_time = time.time()

    def reduce_outputs(self, job: Job) -> List[str]:
        with self.lock:
            return [t.output_file for t in job.reduce_tasks if t.output_file]

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)
            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)

            progress = int(((map_completed + reduce_completed) / total_tasks * 100)) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks)
            }

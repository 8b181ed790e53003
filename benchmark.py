#!/usr/bin/env python3
"""
Benchmarking script for the weather MapReduce jobs.
Runs both reports under several configurations with the local runner
and collects performance metrics.
"""

import csv
import json
import logging
import sys
import tempfile
from datetime import datetime
from pathlib import Path

from common.config import JobConfig
from common.logging_config import configure_logging
from coordinator.runner import LocalJobRunner

# Configuration
RESULTS_DIR = Path("benchmark_results")
INPUT_DIR = Path("shared") / "input"
STATIONS_FILE = INPUT_DIR / "locationData.csv"

MONTHLY_JOB = "jobs.monthly_weather"
MAX_JOB = "jobs.max_precipitation"

# Benchmark configurations
BENCHMARKS = [
    # Experiment 1: Input size scaling
    {"name": "input_size_small", "input": "weather_small.csv", "job": MONTHLY_JOB,
     "maps": 4, "reduces": 2, "combiner": True, "description": "2 years of data"},
    {"name": "input_size_medium", "input": "weather_medium.csv", "job": MONTHLY_JOB,
     "maps": 4, "reduces": 2, "combiner": True, "description": "6 years of data"},
    {"name": "input_size_large", "input": "weather_large.csv", "job": MONTHLY_JOB,
     "maps": 4, "reduces": 2, "combiner": True, "description": "15 years of data"},

    # Experiment 2: Map task scaling
    {"name": "map_scaling_1", "input": "weather_large.csv", "job": MONTHLY_JOB,
     "maps": 1, "reduces": 2, "combiner": True, "description": "1 map task"},
    {"name": "map_scaling_8", "input": "weather_large.csv", "job": MONTHLY_JOB,
     "maps": 8, "reduces": 2, "combiner": True, "description": "8 map tasks"},

    # Experiment 3: Combiner impact
    {"name": "combiner_off", "input": "weather_large.csv", "job": MONTHLY_JOB,
     "maps": 4, "reduces": 2, "combiner": False, "description": "Without combiner"},
    {"name": "max_precipitation", "input": "weather_large.csv", "job": MAX_JOB,
     "maps": 4, "reduces": 4, "combiner": True, "description": "Global maximum report"},
]


def run_benchmark(config):
    """Run one benchmark configuration and return its metrics dictionary"""
    input_path = INPUT_DIR / config["input"]
    if not input_path.exists():
        print(f"  ⏭️  Skipping {config['name']}: {input_path} not found")
        return None

    job_config = JobConfig(
        stations_path=str(STATIONS_FILE),
        num_map_tasks=config["maps"],
        num_reduce_tasks=config["reduces"],
        use_combiner=config["combiner"],
    )

    with tempfile.TemporaryDirectory() as output_dir:
        metrics = LocalJobRunner(job_config).run(config["job"], str(input_path), output_dir)

    result = metrics.to_dict()
    result["benchmark"] = config["name"]
    result["description"] = config["description"]
    print(f"  ✓ {config['name']}: {metrics.total_time_seconds:.2f}s, "
          f"combiner reduction {metrics.combiner_reduction_ratio:.1%}")
    return result


def save_results(results, timestamp):
    """Save results as JSON and CSV"""
    RESULTS_DIR.mkdir(exist_ok=True)

    json_path = RESULTS_DIR / f"benchmark_{timestamp}.json"
    with open(json_path, 'w') as f:
        json.dump(results, f, indent=2)

    csv_path = RESULTS_DIR / f"benchmark_{timestamp}.csv"
    with open(csv_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=list(results[0].keys()))
        writer.writeheader()
        writer.writerows(results)

    print(f"\n📁 Results saved to {json_path} and {csv_path}")


def main():
    configure_logging(debug=False)
    logging.getLogger().setLevel(logging.WARNING)

    print("=" * 70)
    print("Weather MapReduce Benchmarks")
    print("=" * 70)

    if not STATIONS_FILE.exists():
        print(f"❌ {STATIONS_FILE} not found. Run scripts/generate_weather_inputs.py first.")
        return 1

    results = [r for r in (run_benchmark(config) for config in BENCHMARKS) if r]
    if not results:
        print("❌ No benchmark ran")
        return 1

    save_results(results, datetime.now().strftime("%Y%m%d_%H%M%S"))
    return 0


if __name__ == "__main__":
    sys.exit(main())

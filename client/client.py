#!/usr/bin/env python3
"""
Weather MapReduce CLI
Runs the monthly weather report or the maximum precipitation report on a
local observation CSV
"""

import argparse
import logging
import sys

from common.config import JobConfig
from common.errors import ConfigurationError, WeatherJobError
from common.logging_config import configure_logging
from coordinator.runner import LocalJobRunner

logger = logging.getLogger(__name__)

JOBS = {
    'monthly-weather': 'jobs.monthly_weather',
    'max-precipitation': 'jobs.max_precipitation',
}


def run_job(args):
    """Run the job selected on the command line"""
    config = JobConfig.from_env().override(
        stations_path=args.stations,
        work_dir=args.work_dir,
        num_map_tasks=args.num_map_tasks,
        num_reduce_tasks=args.num_reduce_tasks,
        max_workers=args.max_workers,
        use_combiner=False if args.no_combiner else None,
        keep_intermediate=args.keep_intermediate or None,
        emit_totals=getattr(args, 'emit_totals', False) or None,
    )

    runner = LocalJobRunner(config)
    metrics = runner.run(JOBS[args.command], args.input_path, args.output_path, job_id=args.job_id)

    if args.metrics:
        metrics.save_to_file(args.metrics)
        logger.info(f"Metrics written to {args.metrics}")
    return 0


def _add_job_arguments(parser):
    parser.add_argument('input_path', help='Observation CSV file')
    parser.add_argument('output_path', help='Output directory for the report')
    parser.add_argument('--stations', help='Location CSV mapping station id to name '
                                           '(default: $WEATHER_STATIONS_PATH or /input/locationData.csv)')
    parser.add_argument('--work-dir', help='Directory for intermediate files (default: temporary directory)')
    parser.add_argument('--num-map-tasks', type=int, help='Number of map tasks (default: 4)')
    parser.add_argument('--num-reduce-tasks', type=int, help='Number of reduce tasks (default: 2)')
    parser.add_argument('--max-workers', type=int, help='Worker threads (default: 4)')
    parser.add_argument('--no-combiner', action='store_true', help='Disable the map-side combiner')
    parser.add_argument('--keep-intermediate', action='store_true', help='Keep intermediate files')
    parser.add_argument('--metrics', help='Write job metrics as JSON to this file')
    parser.add_argument('--job-id', help='Custom job ID (auto-generated if not provided)')
    parser.add_argument('--debug', action='store_true', help='Log filtered records and task details')


def build_parser():
    parser = argparse.ArgumentParser(
        description='Weather MapReduce CLI',
        epilog='Example: %(prog)s monthly-weather weatherData.csv output/monthly --stations locationData.csv'
    )
    subparsers = parser.add_subparsers(dest='command', help='Available reports')

    monthly_parser = subparsers.add_parser(
        'monthly-weather',
        help='Total precipitation and mean temperature per district per month',
        description='Total precipitation and mean temperature per district per month, 2014 onwards'
    )
    _add_job_arguments(monthly_parser)
    monthly_parser.set_defaults(func=run_job)

    max_parser = subparsers.add_parser(
        'max-precipitation',
        help='Month with the highest total precipitation',
        description='Find the month and year with the highest total precipitation'
    )
    _add_job_arguments(max_parser)
    max_parser.add_argument('--emit-totals', action='store_true',
                            help='Also write every month-year total to totals-0.txt')
    max_parser.set_defaults(func=run_job)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command specified, print help
    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    configure_logging(args.debug)

    try:
        return args.func(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except WeatherJobError as e:
        logger.error(f"Job failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


def monthly_weather_main(argv=None):
    """Entry point: monthly-weather <input_path> <output_path>"""
    return main(['monthly-weather'] + list(sys.argv[1:] if argv is None else argv))


def max_precipitation_main(argv=None):
    """Entry point: max-precipitation <input_path> <output_path>"""
    return main(['max-precipitation'] + list(sys.argv[1:] if argv is None else argv))


if __name__ == '__main__':
    sys.exit(main())

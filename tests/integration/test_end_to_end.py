"""
End-to-end tests running both reports through the local runner
"""

import os

import pytest

from common.config import JobConfig
from common.errors import JobFailedError, ReferenceLoadError, SchemaError
from coordinator.runner import LocalJobRunner


MONTHLY = 'jobs.monthly_weather'
MAX = 'jobs.max_precipitation'

EXPECTED_MONTHLY = [
    "Badulla had a total precipitation of 22 hours with a mean temperature of 23 for 6th month",
    "Colombo had a total precipitation of 10 hours with a mean temperature of 27 for 1st month",
    "Colombo had a total precipitation of 2 hours with a mean temperature of 27 for 2nd month",
    "Location_7 had a total precipitation of 2 hours with a mean temperature of 30 for 11th month",
]


def read_report(output_path, name='part-0.txt'):
    with open(os.path.join(output_path, name), encoding='utf-8') as f:
        return f.read().splitlines()


def run(job, input_path, output_path, stations, temp_dir, **overrides):
    config = JobConfig(stations_path=stations, work_dir=os.path.join(temp_dir, 'work')).override(**overrides)
    return LocalJobRunner(config).run(job, input_path, output_path)


class TestMonthlyWeatherReport:
    """Report A: per station per month across 2014 onwards"""

    def test_expected_report(self, sample_weather_file, sample_locations_file, temp_dir):
        output_path = os.path.join(temp_dir, 'monthly')

        metrics = run(MONTHLY, sample_weather_file, output_path, sample_locations_file, temp_dir)

        assert read_report(output_path) == EXPECTED_MONTHLY
        assert metrics.records_read == 12
        assert metrics.records_skipped == 6
        assert metrics.lines_written == 4

    def test_excluded_stations_never_reported(self, sample_weather_file, sample_locations_file, temp_dir):
        output_path = os.path.join(temp_dir, 'monthly')
        run(MONTHLY, sample_weather_file, output_path, sample_locations_file, temp_dir)

        report = '\n'.join(read_report(output_path))
        assert 'Welimada' not in report
        assert 'Bandarawela' not in report

    @pytest.mark.parametrize('maps,reduces,combiner', [(1, 1, False), (3, 2, True), (7, 5, False), (16, 3, True)])
    def test_topology_does_not_change_output(self, sample_weather_file, sample_locations_file, temp_dir,
                                             maps, reduces, combiner):
        """Test that any number of map/reduce tasks, with or without combiner, gives identical bytes"""
        output_path = os.path.join(temp_dir, f'monthly-{maps}-{reduces}')

        run(MONTHLY, sample_weather_file, output_path, sample_locations_file, temp_dir,
            num_map_tasks=maps, num_reduce_tasks=reduces, use_combiner=combiner)

        assert read_report(output_path) == EXPECTED_MONTHLY

    def test_repeated_runs_are_byte_identical(self, sample_weather_file, sample_locations_file, temp_dir):
        contents = []
        for i in range(2):
            output_path = os.path.join(temp_dir, f'run-{i}')
            run(MONTHLY, sample_weather_file, output_path, sample_locations_file, temp_dir)
            with open(os.path.join(output_path, 'part-0.txt'), 'rb') as f:
                contents.append(f.read())

        assert contents[0] == contents[1]

    def test_no_valid_records_gives_empty_report(self, make_weather_file, make_row, sample_locations_file, temp_dir):
        path = make_weather_file([make_row(25, '1/1/2020', 20.0, 1.0), make_row(3, '1/1/2010', 20.0, 1.0)])
        output_path = os.path.join(temp_dir, 'empty')

        run(MONTHLY, path, output_path, sample_locations_file, temp_dir)

        assert read_report(output_path) == []

    def test_missing_reference_aborts_before_output(self, sample_weather_file, temp_dir):
        output_path = os.path.join(temp_dir, 'monthly')

        with pytest.raises(ReferenceLoadError):
            run(MONTHLY, sample_weather_file, output_path, os.path.join(temp_dir, 'missing.csv'), temp_dir)

        assert not os.path.exists(output_path)

    def test_missing_column_aborts(self, make_weather_file, sample_locations_file, temp_dir):
        path = make_weather_file(['0,1/1/2020,5.0'], header='location_id,date,precipitation_hours (h)')

        with pytest.raises(SchemaError):
            run(MONTHLY, path, os.path.join(temp_dir, 'out'), sample_locations_file, temp_dir)

    def test_intermediate_files_removed(self, sample_weather_file, sample_locations_file, temp_dir):
        run(MONTHLY, sample_weather_file, os.path.join(temp_dir, 'out'), sample_locations_file, temp_dir)
        assert os.listdir(os.path.join(temp_dir, 'work')) == []

    def test_keep_intermediate(self, sample_weather_file, sample_locations_file, temp_dir):
        run(MONTHLY, sample_weather_file, os.path.join(temp_dir, 'out'), sample_locations_file, temp_dir,
            keep_intermediate=True)
        (job_dir,) = os.listdir(os.path.join(temp_dir, 'work'))
        files = os.listdir(os.path.join(temp_dir, 'work', job_dir))
        assert any(name.startswith('map-') for name in files)
        assert any(name.startswith('reduce-') for name in files)


class TestMaxPrecipitationReport:
    """Report B: single month-year with the highest total"""

    def test_expected_winner(self, make_weather_file, make_row, temp_dir):
        path = make_weather_file([
            make_row(0, '1/3/2019', 25.0, 60.0),
            make_row(1, '1/4/2019', 25.0, 60.0),
            make_row(0, '2/3/2019', 25.0, 150.0),
            make_row(25, '2/9/2019', 25.0, 150.0),   # towns count for this report
            make_row(0, '3/3/2020', 25.0, 300.0),
            make_row(0, '12/3/2005', 25.0, 10.0),
        ])
        output_path = os.path.join(temp_dir, 'max')

        run(MAX, path, output_path, os.path.join(temp_dir, 'unused.csv'), temp_dir, num_reduce_tasks=4)

        assert read_report(output_path) == ["2nd month in 2019 had the highest total precipitation of 300 hours"]

    def test_emit_totals(self, make_weather_file, make_row, temp_dir):
        path = make_weather_file([
            make_row(0, '1/3/2019', 25.0, 1.5),
            make_row(1, '1/4/2019', 25.0, 2.0),
            make_row(0, '12/3/2018', 25.0, 4.0),
        ])
        output_path = os.path.join(temp_dir, 'max')

        run(MAX, path, output_path, 'unused.csv', temp_dir, emit_totals=True)

        assert read_report(output_path, 'totals-0.txt') == [
            "12-2018\tTotal Precipitation: 4.00 hours (from 1 records)",
            "1-2019\tTotal Precipitation: 3.50 hours (from 2 records)",
        ]

    def test_header_only_input_emits_nothing(self, make_weather_file, temp_dir):
        output_path = os.path.join(temp_dir, 'max')
        run(MAX, make_weather_file([]), output_path, 'unused.csv', temp_dir)
        assert read_report(output_path) == []

    def test_empty_file_emits_nothing(self, make_weather_file, temp_dir):
        output_path = os.path.join(temp_dir, 'max')
        run(MAX, make_weather_file([], header=None), output_path, 'unused.csv', temp_dir)
        assert read_report(output_path) == []


class TestRunnerFailures:

    def test_missing_input(self, temp_dir, sample_locations_file):
        with pytest.raises(JobFailedError):
            run(MONTHLY, os.path.join(temp_dir, 'nope.csv'), os.path.join(temp_dir, 'out'),
                sample_locations_file, temp_dir)

    def test_failed_task_fails_job(self, sample_weather_file, temp_dir):
        job_file = os.path.join(temp_dir, 'broken_job.py')
        with open(job_file, 'w') as f:
            f.write(
                "REQUIRED_COLUMNS = ('location_id', 'date', 'precipitation_hours (h)')\n"
                "def map_function(record):\n"
                "    raise RuntimeError('map exploded')\n"
                "def reduce_function(key, values):\n"
                "    return []\n"
                "def finalize_function(results, stations):\n"
                "    return []\n"
            )

        runner = LocalJobRunner(JobConfig(work_dir=os.path.join(temp_dir, 'work')))
        with pytest.raises(JobFailedError, match='map exploded'):
            runner.run(job_file, sample_weather_file, os.path.join(temp_dir, 'out'), job_id='broken')

        assert runner.job_manager.get_job_status('broken')['status'] == 'failed'
        assert os.listdir(os.path.join(temp_dir, 'work')) == []

    def test_failed_reduce_removes_intermediate_files(self, sample_weather_file, temp_dir):
        job_file = os.path.join(temp_dir, 'broken_reduce.py')
        with open(job_file, 'w') as f:
            f.write(
                "from jobs.max_precipitation import REQUIRED_COLUMNS, map_function\n"
                "def reduce_function(key, values):\n"
                "    raise RuntimeError('reduce exploded')\n"
                "def finalize_function(results, stations):\n"
                "    return []\n"
            )
        work_dir = os.path.join(temp_dir, 'work')

        runner = LocalJobRunner(JobConfig(work_dir=work_dir, num_reduce_tasks=2))
        with pytest.raises(JobFailedError, match='reduce exploded'):
            runner.run(job_file, sample_weather_file, os.path.join(temp_dir, 'out'), job_id='broken-reduce')

        assert os.listdir(work_dir) == []

    def test_failed_job_keeps_intermediate_when_asked(self, sample_weather_file, temp_dir):
        job_file = os.path.join(temp_dir, 'broken_final.py')
        with open(job_file, 'w') as f:
            f.write(
                "from jobs.max_precipitation import REQUIRED_COLUMNS, map_function, reduce_function\n"
                "def finalize_function(results, stations):\n"
                "    raise RuntimeError('final exploded')\n"
            )
        work_dir = os.path.join(temp_dir, 'work')

        runner = LocalJobRunner(JobConfig(work_dir=work_dir, keep_intermediate=True))
        with pytest.raises(JobFailedError, match='final exploded'):
            runner.run(job_file, sample_weather_file, os.path.join(temp_dir, 'out'), job_id='broken-final')

        assert any(name.startswith('reduce-') for name in os.listdir(os.path.join(work_dir, 'broken-final')))

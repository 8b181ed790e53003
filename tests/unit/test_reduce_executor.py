"""
Unit tests for ReduceExecutor and FinalExecutor
"""

import os
import json

import pytest

from common.aggregates import FinalAggregate
from common.stations import StationDirectory
from worker.final_executor import FinalExecutor
from worker.reduce_executor import ReduceExecutor


def partial(hours, temperature, count=1):
    return {'precipitation_sum': hours, 'temperature_sum': temperature, 'count': count}


def write_intermediate(path, pairs):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        for key, value in pairs:
            f.write(json.dumps({'key': key, 'value': value}) + '\n')
    return path


def make_executor(files, temp_dir, job_file='jobs.monthly_weather'):
    return ReduceExecutor(
        task_id=0,
        partition_id=0,
        intermediate_files=files,
        job_file=job_file,
        output_dir=os.path.join(temp_dir, 'reduce'),
        job_id='test-job'
    )


def read_output(path):
    with open(path) as f:
        return [(tuple(r['key']), r['value']) for r in map(json.loads, f)]


class TestReduceExecutorGrouping:
    """Tests for key grouping functionality"""

    def test_groups_values_by_key(self, temp_dir):
        """Test that partials for a key are grouped across map outputs"""
        intermediate_dir = os.path.join(temp_dir, 'intermediate')
        file1 = write_intermediate(os.path.join(intermediate_dir, 'map-0-reduce-0.txt'), [
            ([3, 6], partial(1.0, 20.0)),
            ([0, 1], partial(2.0, 25.0)),
        ])
        file2 = write_intermediate(os.path.join(intermediate_dir, 'map-1-reduce-0.txt'), [
            ([3, 6], partial(4.0, 50.0, 2)),
        ])

        key_groups = make_executor([file1, file2], temp_dir)._read_and_group_intermediate()

        assert set(key_groups) == {(3, 6), (0, 1)}
        assert len(key_groups[(3, 6)]) == 2
        assert len(key_groups[(0, 1)]) == 1

    def test_missing_intermediate_file_raises(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            make_executor(['/nonexistent/file.txt'], temp_dir)._read_and_group_intermediate()

    def test_skips_malformed_lines(self, temp_dir):
        path = os.path.join(temp_dir, 'map-0-reduce-0.txt')
        with open(path, 'w') as f:
            f.write(json.dumps({'key': [3, 6], 'value': partial(1.0, 20.0)}) + '\n')
            f.write('invalid json line\n')
            f.write(json.dumps({'missing': 'key_field'}) + '\n')
            f.write(json.dumps({'key': [0, 1], 'value': {'count': 1}}) + '\n')

        key_groups = make_executor([path], temp_dir)._read_and_group_intermediate()

        assert list(key_groups) == [(3, 6)]


class TestReduceExecution:

    def test_merges_in_any_file_order(self, temp_dir):
        """Test that the merged result does not depend on arrival order"""
        intermediate_dir = os.path.join(temp_dir, 'intermediate')
        files = [
            write_intermediate(os.path.join(intermediate_dir, f'map-{i}-reduce-0.txt'), [([3, 6], value)])
            for i, value in enumerate([partial(1.5, 20.0), partial(2.5, 30.0, 2), partial(4.0, 22.0)])
        ]

        outputs = []
        for i, ordering in enumerate([files, list(reversed(files))]):
            executor = make_executor(ordering, os.path.join(temp_dir, str(i)))
            result = executor.execute()
            assert result['success'] is True
            outputs.append(read_output(result['output_file']))

        assert outputs[0] == outputs[1] == [
            ((3, 6), {'total_precipitation': 8.0, 'mean_temperature': 18.0, 'count': 4}),
        ]

    def test_output_sorted_by_key(self, temp_dir):
        path = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.txt'), [
            ([5, 1], partial(1.0, 1.0)),
            ([0, 12], partial(1.0, 1.0)),
            ([0, 2], partial(1.0, 1.0)),
        ])

        result = make_executor([path], temp_dir).execute()

        assert result['keys'] == 3
        assert [key for key, _ in read_output(result['output_file'])] == [(0, 2), (0, 12), (5, 1)]

    def test_empty_partition_writes_empty_output(self, temp_dir):
        result = make_executor([], temp_dir).execute()

        assert result['success'] is True
        assert result['keys'] == 0
        assert os.path.getsize(result['output_file']) == 0

    def test_bad_job_module_reports_failure(self, temp_dir):
        result = make_executor([], temp_dir, job_file='jobs.does_not_exist').execute()
        assert result['success'] is False

    def test_missing_intermediate_file_fails_task(self, temp_dir):
        present = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.txt'), [([3, 6], partial(1.0, 20.0))])

        result = make_executor([present, os.path.join(temp_dir, 'map-1-reduce-0.txt')], temp_dir).execute()

        assert result['success'] is False
        assert 'map-1-reduce-0.txt' in result['error_message']

    def test_malformed_value_leaves_no_key_behind(self, temp_dir):
        """A key whose only partial is unreadable must not reach the reduce output"""
        path = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.txt'), [
            ([3, 6], partial(1.0, 20.0)),
            ([0, 1], {'count': 1}),
        ])

        result = make_executor([path], temp_dir).execute()

        assert result['success'] is True
        assert result['keys'] == 1
        assert [key for key, _ in read_output(result['output_file'])] == [(3, 6)]


class TestFinalExecutor:
    """Tests for the single final task"""

    def test_sees_every_reduce_output(self, temp_dir):
        outputs = [
            write_intermediate(os.path.join(temp_dir, 'reduce-0.txt'), [
                ([1, 2019], FinalAggregate(120.0, 0.0, 2).to_dict()),
            ]),
            write_intermediate(os.path.join(temp_dir, 'reduce-1.txt'), [
                ([2, 2019], FinalAggregate(300.0, 0.0, 2).to_dict()),
                ([3, 2020], FinalAggregate(300.0, 0.0, 2).to_dict()),
            ]),
        ]
        output_path = os.path.join(temp_dir, 'out')

        result = FinalExecutor(outputs, 'jobs.max_precipitation', output_path, emit_totals=True).execute()

        assert result['success'] is True
        assert result['lines_written'] == 1
        with open(os.path.join(output_path, 'part-0.txt')) as f:
            assert f.read() == "2nd month in 2019 had the highest total precipitation of 300 hours\n"
        with open(os.path.join(output_path, 'totals-0.txt')) as f:
            assert len(f.readlines()) == 3

    def test_monthly_report_uses_station_names(self, temp_dir):
        output = write_intermediate(os.path.join(temp_dir, 'reduce-0.txt'), [
            ([0, 1], FinalAggregate(10.0, 27.0, 2).to_dict()),
        ])
        output_path = os.path.join(temp_dir, 'out')

        result = FinalExecutor([output], 'jobs.monthly_weather', output_path,
                               stations=StationDirectory({0: 'Colombo'})).execute()

        assert result['success'] is True
        assert result['totals_file'] is None
        with open(result['output_file']) as f:
            assert f.read().startswith('Colombo had a total precipitation of 10 hours')

    def test_run_without_totals_removes_stale_totals(self, temp_dir):
        output = write_intermediate(os.path.join(temp_dir, 'reduce-0.txt'), [
            ([1, 2019], FinalAggregate(120.0, 0.0, 2).to_dict()),
        ])
        output_path = os.path.join(temp_dir, 'out')

        first = FinalExecutor([output], 'jobs.max_precipitation', output_path, emit_totals=True).execute()
        assert os.path.exists(first['totals_file'])

        second = FinalExecutor([output], 'jobs.max_precipitation', output_path).execute()

        assert second['success'] is True
        assert second['totals_file'] is None
        assert os.listdir(output_path) == ['part-0.txt']

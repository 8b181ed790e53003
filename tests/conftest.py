"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil


WEATHER_HEADER = ("location_id,date,weather_code (wmo code),temperature_2m_max (°C),"
                  "temperature_2m_mean (°C),precipitation_sum (mm),precipitation_hours (h)")

LOCATION_HEADER = ("location_id,latitude,longitude,elevation,utc_offset_seconds,"
                   "timezone,timezone_abbreviation,city_name")


def weather_row(station, date, temperature, hours):
    """Observation line in WEATHER_HEADER column order"""
    return f"{station},{date},61,{temperature + 4},{temperature},{hours * 2},{hours}"


def location_row(station, name):
    return f"{station},6.9,79.8,5,19800,Asia/Colombo,+0530,{name}"


def write_file(path, lines):
    with open(path, 'w', encoding='utf-8') as f:
        for line in lines:
            f.write(line + '\n')
    return path


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_rows():
    """Observation rows covering filters, key collapse and malformed input"""
    return [
        weather_row(0, '1/5/2014', 26.0, 4.0),
        weather_row(0, '1/6/2020', 28.0, 6.0),
        weather_row(0, '2/1/2015', 27.0, 1.5),
        weather_row(1, '6/10/2015', 24.0, 10.0),
        weather_row(1, '6/11/2020', 22.0, 12.0),
        weather_row(1, '12/31/2013', 25.0, 100.0),   # before 2014
        weather_row(25, '6/10/2015', 18.0, 50.0),    # Welimada
        weather_row(26, '6/10/2015', 19.0, 50.0),    # Bandarawela
        weather_row(7, '11/2/2016', 30.0, 2.0),      # not in the location file
        '0,1/7/2020,61,30.0',                        # too few fields
        '0,2020-01-07,61,30.0,26.0,2.0,1.0',         # wrong date format
        '0,1/8/2020,61,30.0,warm,2.0,1.0',           # bad temperature
    ]


@pytest.fixture
def sample_weather_file(temp_dir, sample_rows):
    """Observation CSV with a header and sample_rows"""
    return write_file(os.path.join(temp_dir, 'weatherData.csv'), [WEATHER_HEADER] + sample_rows)


@pytest.fixture
def sample_locations_file(temp_dir):
    """Location CSV for stations 0, 1, 25 and 26"""
    return write_file(os.path.join(temp_dir, 'locationData.csv'), [
        LOCATION_HEADER,
        location_row(0, 'Colombo'),
        location_row(1, 'Badulla'),
        location_row(25, 'Welimada'),
        location_row(26, 'Bandarawela'),
    ])


@pytest.fixture
def make_row():
    """Factory for observation lines: make_row(station, 'm/d/yyyy', temperature, hours)"""
    return weather_row


@pytest.fixture
def make_weather_file(temp_dir):
    """Factory writing an observation CSV: make_weather_file(rows, name='weather.csv', header=...)"""
    def _make(rows, name='weather.csv', header=WEATHER_HEADER):
        lines = ([header] if header is not None else []) + list(rows)
        return write_file(os.path.join(temp_dir, name), lines)
    return _make


@pytest.fixture
def weather_header():
    return WEATHER_HEADER

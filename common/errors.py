"""
Error types shared by the coordinator, workers and job modules
"""


class WeatherJobError(Exception):
    """Base class for every error raised by a weather MapReduce job"""


class SkippableRecordError(WeatherJobError):
    """A single input line could not be used; the line is dropped and the pass continues"""

    def __init__(self, reason: str, line: str = ''):
        super().__init__(reason)
        self.reason = reason
        self.line = line


class MalformedRecordError(SkippableRecordError):
    """Line is structurally broken: too few fields, bad number or bad date"""


class FilteredRecordError(SkippableRecordError):
    """Line is valid but excluded by a job filter (station, year range)"""


class ReferenceLoadError(WeatherJobError):
    """Reference data needed before aggregation could not be loaded"""


class SchemaError(ReferenceLoadError):
    """Input header does not provide every required column"""


class ConfigurationError(WeatherJobError):
    """Invalid command line or environment configuration"""


class JobFailedError(WeatherJobError):
    """A map, reduce or final task reported failure"""

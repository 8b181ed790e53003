"""
Job configuration from environment variables and command line overrides
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from common.errors import ConfigurationError

DEFAULT_STATIONS_PATH = '/input/locationData.csv'


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    value = raw.strip().lower()
    if value in ('1', 'true', 'yes', 'on'):
        return True
    if value in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{raw}'")


@dataclass(frozen=True)
class JobConfig:
    """Settings for one local job run"""
    stations_path: str = DEFAULT_STATIONS_PATH
    work_dir: Optional[str] = None
    num_map_tasks: int = 4
    num_reduce_tasks: int = 2
    max_workers: int = 4
    use_combiner: bool = True
    keep_intermediate: bool = False
    emit_totals: bool = False

    @classmethod
    def from_env(cls) -> 'JobConfig':
        config = cls(
            stations_path=os.getenv('WEATHER_STATIONS_PATH') or DEFAULT_STATIONS_PATH,
            work_dir=os.getenv('WEATHER_WORK_DIR') or None,
            num_map_tasks=_env_int('WEATHER_NUM_MAP_TASKS', 4),
            num_reduce_tasks=_env_int('WEATHER_NUM_REDUCE_TASKS', 2),
            max_workers=_env_int('WEATHER_MAX_WORKERS', 4),
            use_combiner=_env_bool('WEATHER_USE_COMBINER', True),
        )
        config.validate()
        return config

    def override(self, **changes) -> 'JobConfig':
        """Copy with every non-None change applied"""
        config = replace(self, **{k: v for k, v in changes.items() if v is not None})
        config.validate()
        return config

    def validate(self):
        for name in ('num_map_tasks', 'num_reduce_tasks', 'max_workers'):
            value = getattr(self, name)
            if value < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")

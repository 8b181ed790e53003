"""
Station id -> station name reference data
"""

import logging
from typing import Dict, Optional

from common.errors import ReferenceLoadError
from common.storage import read_lines

logger = logging.getLogger(__name__)

ID_FIELD = 0
NAME_FIELD = 7


class StationDirectory:
    """Read-only lookup of station names, loaded once before results are finalized"""

    def __init__(self, names: Optional[Dict[int, str]] = None):
        self._names = dict(names or {})

    @classmethod
    def load(cls, path: str) -> 'StationDirectory':
        """
        Load station names from the location CSV.

        The first line is a header. Each row holds the station id in its
        first column and the station name in its eighth; shorter rows are
        ignored.

        Raises:
            ReferenceLoadError: If the file is missing or unreadable
        """
        names = {}
        try:
            lines = read_lines(path)
            next(lines, None)  # header
            for line in lines:
                fields = [field.strip() for field in line.split(',')]
                if len(fields) <= NAME_FIELD:
                    continue
                try:
                    station_id = int(fields[ID_FIELD])
                except ValueError:
                    logger.warning(f"Ignoring location row with non-integer id: {line}")
                    continue
                names[station_id] = fields[NAME_FIELD]
        except OSError as e:
            raise ReferenceLoadError(f"Error reading station reference {path}: {e}") from e

        logger.info(f"Loaded {len(names)} locations from {path}")
        return cls(names)

    def resolve(self, station_id: int) -> str:
        return self._names.get(station_id, f"Location_{station_id}")

    def __contains__(self, station_id: int) -> bool:
        return station_id in self._names

    def __len__(self) -> int:
        return len(self._names)

"""
Line-oriented file storage used by the coordinator and workers.

Everything the pipeline reads or writes goes through these helpers: the
input CSV (whole or as a byte-range split), the reference CSV, the
JSON-lines intermediate files and the final report.
"""

import os
import json
import logging
from typing import Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

ENCODING = 'utf-8'


def _decode(raw: bytes) -> str:
    return raw.decode(ENCODING, errors='replace').rstrip('\r\n')


def read_header(path: str) -> Optional[str]:
    """Return the first line of a file, or None if the file is empty"""
    with open(path, 'rb') as f:
        raw = f.readline()
    if not raw:
        return None
    return _decode(raw).lstrip('\ufeff')


def read_split(path: str, start_offset: int, end_offset: int) -> Iterator[Tuple[int, str]]:
    """
    Yield (byte_offset, line) for every line that starts inside [start, end)

    A split that begins mid-line skips forward to the next line start; the
    line it skipped belongs to the previous split.
    """
    with open(path, 'rb') as f:
        if start_offset > 0:
            # Align to line boundary: a split starting exactly on a line
            # start only consumes the preceding newline here
            f.seek(start_offset - 1)
            f.readline()

        while True:
            offset = f.tell()
            if offset >= end_offset:
                break
            raw = f.readline()
            if not raw:
                break
            yield offset, _decode(raw)


def read_lines(path: str) -> Iterator[str]:
    with open(path, 'r', encoding=ENCODING, errors='replace') as f:
        for line in f:
            yield line.rstrip('\r\n')


def write_lines(path: str, lines: Iterable[str]) -> int:
    """Write lines to path, creating parent directories. Returns the line count."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    count = 0
    with open(path, 'w', encoding=ENCODING) as f:
        for line in lines:
            f.write(line + '\n')
            count += 1
    return count


def write_json_lines(path: str, records: Iterable[Tuple[object, dict]]) -> int:
    """Write (key, value) pairs as {'key': ..., 'value': ...} JSON lines"""
    return write_lines(
        path,
        (json.dumps({'key': list(key), 'value': value}) for key, value in records),
    )


def read_json_lines(path: str) -> Iterator[Tuple[tuple, dict]]:
    """
    Read (key, value) pairs written by write_json_lines.

    Malformed lines are logged and skipped. A missing file raises
    FileNotFoundError.
    """
    for line in read_lines(path):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
            yield tuple(record['key']), record['value']
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed line in {path}: {e}")

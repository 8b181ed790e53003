"""
Logging setup for the command line entry points
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(debug: bool = False) -> None:
    """
    Configure the root logger once for a CLI run.

    Args:
        debug: Log at DEBUG instead of INFO; filtered records are only
               visible at DEBUG
    """
    root = logging.getLogger()

    # Remove any existing handlers to avoid duplication
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

"""Utility functions for check-log"""

import logging
import os
from pathlib import Path

import psutil


STATE_FILE_NAME = '.check-log.state'

# Lines buffered per worker before the producer blocks
DEFAULT_QUEUE_FACTOR = 4

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_int_env(key: str) -> int:
    """Get integer value from environment variable, return 0 if not set or invalid."""
    val = os.getenv(key)
    if val is None:
        return 0
    try:
        return int(val)
    except ValueError:
        return 0


def get_str_env(key: str, default: str) -> str:
    """
    Get string from environment variable, return default if not set.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        String value or default
    """
    return os.getenv(key, default)


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging on stderr.

    Level comes from CHECKLOG_LOG_LEVEL (default WARNING) so that a plugin run
    keeps stdout to the single status line. ``verbose`` forces DEBUG.
    """
    level_name = get_str_env('CHECKLOG_LOG_LEVEL', 'WARNING').upper()
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def get_worker_count(requested: int | None = None) -> int:
    """Number of classification workers for a scan.

    Priority:
    1. ``requested`` argument (if positive)
    2. CHECKLOG_WORKERS environment variable (if positive)
    3. Logical CPU count

    Returns:
        Worker count, never below 1
    """
    if requested and requested > 0:
        return requested
    from_env = get_int_env('CHECKLOG_WORKERS')
    if from_env > 0:
        return from_env
    return max(1, psutil.cpu_count(logical=True) or 1)


def get_queue_factor() -> int:
    """Queue capacity multiplier per worker (CHECKLOG_QUEUE_FACTOR, default 4)."""
    factor = get_int_env('CHECKLOG_QUEUE_FACTOR')
    return factor if factor > 0 else DEFAULT_QUEUE_FACTOR


def get_default_state_dir() -> Path:
    """Directory holding the default state file.

    The home directory is used when it exists; daemon users often have none,
    in which case the current directory is used.
    """
    home = os.environ.get('HOME')
    if not home:
        try:
            home = str(Path.home())
        except RuntimeError:
            home = None
    if home and os.path.isdir(home):
        return Path(home)
    return Path('.')


def get_default_state_file() -> Path:
    """Default state file location: ``<home>/.check-log.state``."""
    return get_default_state_dir() / STATE_FILE_NAME


def is_valid_state_file(filename: str) -> bool:
    """Check whether ``filename`` can serve as a state file.

    Valid when the file already exists, or when its parent directory exists
    and is writable. An existing directory is never valid.
    """
    if not filename:
        return False
    if os.path.isdir(filename):
        return False
    if os.path.isfile(filename):
        return True
    parent = os.path.dirname(os.path.abspath(filename))
    return os.path.isdir(parent) and os.access(parent, os.W_OK)

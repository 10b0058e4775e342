"""File identity lookup used to detect rotation and truncation.

A stored offset is only meaningful for the file it was recorded against.
A file is considered the same as long as its device and serial number are
unchanged and it has not shrunk (append-only logs only grow).

The stat primitive is chosen once at import time:
- POSIX: st_dev / st_ino
- Windows: os.stat fills st_dev / st_ino with the volume serial and file index

Filesystems that report no serial (st_ino == 0) get a size-only identity,
which can only detect a file that shrank.
"""

import logging
import os
from typing import Callable

from checklog.models import FileIdentity


logger = logging.getLogger(__name__)


def _stat_identity(path: str) -> FileIdentity:
    st = os.stat(path)
    if not st.st_ino:
        logger.debug(f'No file serial available for {path}, using size-only identity')
        return FileIdentity(size=st.st_size)
    return FileIdentity(size=st.st_size, device_id=st.st_dev, file_serial=st.st_ino)


def _size_only_identity(path: str) -> FileIdentity:
    return FileIdentity(size=os.stat(path).st_size)


_PROVIDERS: dict[str, Callable[[str], FileIdentity]] = {
    'posix': _stat_identity,
    'nt': _stat_identity,
}

identity_provider: Callable[[str], FileIdentity] = _PROVIDERS.get(os.name, _size_only_identity)


def identity_of(path: str) -> FileIdentity:
    """Stat ``path`` and return its identity.

    Raises:
        OSError: If the path does not exist or cannot be stat-ed
    """
    return identity_provider(path)


def same_state(a: FileIdentity, b: FileIdentity | None) -> bool:
    """True if ``b`` is the same physical file as ``a``, possibly grown."""
    if b is None:
        return False
    if b.size < a.size:
        return False
    return a.device_id == b.device_id and a.file_serial == b.file_serial


def same_file(a: FileIdentity | None, path: str) -> bool:
    """Compare a recorded identity with the file currently at ``path``.

    Never raises: an unreadable path is simply not the same file.
    """
    if a is None:
        return False
    try:
        current = identity_of(path)
    except OSError as e:
        logger.debug(f'Cannot stat {path}: {e}')
        return False
    return same_state(a, current)

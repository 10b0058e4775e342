"""Logfile argument expansion"""

import glob
import logging


logger = logging.getLogger(__name__)


def glob_files(logfile: str) -> list[str]:
    """Expand a logfile argument that may contain glob wildcards.

    Matches are returned in sorted order so that files are always scanned in
    the same sequence. A pattern matching nothing gives an empty list.

    Args:
        logfile: Path or glob pattern (e.g. ``/var/log/app/*.log``)

    Returns:
        List of matching paths
    """
    if not logfile:
        return []
    if not glob.has_magic(logfile):
        # Plain path: keep it even if missing so the open failure gets reported
        return [logfile]

    matches = sorted(glob.glob(logfile))
    if not matches:
        logger.warning(f'No files match {logfile}')
    return matches

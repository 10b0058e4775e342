"""Persistent offset store.

Offsets are tracked per (file path, match pattern, ignore pattern), so that
several checks with different patterns can share one state file per log.

Store behavior:
- Unknown path, unknown pattern pair or changed file identity -> offset 0
- A file identity change discards every offset recorded for that path
- Load never fails on a missing or corrupt file: an empty store is used
- Save is best-effort: failures are logged, not raised

Concurrent runs against the same state file are not coordinated; the last
writer wins.
"""

import json
import logging
import os
import stat
import tempfile
from datetime import datetime
from pathlib import Path

from checklog.errors import StateLocationError
from checklog.file_identity import identity_of, same_file, same_state
from checklog.models import STATE_VERSION, FileRecord, OffsetEntry, StateDocument
from checklog.utils import get_default_state_file, is_valid_state_file


logger = logging.getLogger(__name__)

# NamedTemporaryFile creates 0600 files
STATE_FILE_MODE = 0o644


def resolve_state_file(location: str | None) -> Path:
    """Resolve the state file location.

    Args:
        location: Explicit location, or empty/None for the default

    Returns:
        Path of the state file

    Raises:
        StateLocationError: If an explicit location is neither an existing
            file nor inside an existing, writable directory
    """
    if not location:
        return get_default_state_file()
    if not is_valid_state_file(location):
        raise StateLocationError(f'Unusable state file location: {location}')
    return Path(location)


class OffsetStore:
    """Offsets for (file, pattern, ignore pattern) triples bound to a state file."""

    def __init__(self, state_file: str | Path, files: dict[str, FileRecord] | None = None):
        self.state_file = Path(state_file)
        self.files: dict[str, FileRecord] = files if files is not None else {}
        self.timestamp: datetime = datetime.now()

    @classmethod
    def load(cls, location: str | None = None) -> 'OffsetStore':
        """Load the store bound to ``location`` (default location when empty).

        A missing file gives an empty store. A file that cannot be read or
        decoded is logged and also gives an empty store, so the next scan
        starts every file from the beginning.

        Raises:
            StateLocationError: If an explicit location is unusable
        """
        state_file = resolve_state_file(location)
        store = cls(state_file)

        if not state_file.exists():
            logger.debug(f'No state file at {state_file}, starting empty')
            return store

        try:
            with open(state_file, encoding='utf-8') as f:
                data = json.load(f)

            if data.get('version') != STATE_VERSION:
                logger.error(f'State file {state_file} has unsupported version {data.get("version")!r}, ignoring it')
                return store

            document = StateDocument.model_validate(data)
        except (OSError, json.JSONDecodeError, ValueError, AttributeError) as e:
            logger.error(f'Failed to load state file {state_file}: {type(e).__name__}: {e}')
            return store

        store.files = document.files
        store.timestamp = document.timestamp
        logger.debug(f'Loaded state for {len(store.files)} files from {state_file}')
        return store

    def get(self, file_path: str, pattern: str, ignore_pattern: str) -> int:
        """Offset to resume ``file_path`` from for this pattern pair.

        Returns 0 when nothing usable is recorded, including when the file
        at ``file_path`` is no longer the file the offset was recorded for.
        """
        record = self.files.get(file_path)
        if record is None:
            return 0

        if record.identity is None:
            return 0

        if not same_file(record.identity, file_path):
            logger.info(f'{file_path} was rotated or truncated, reading from the start')
            return 0

        entry = record.get_entry(pattern, ignore_pattern)
        if entry is None:
            return 0
        return entry.offset

    def set(self, file_path: str, pattern: str, ignore_pattern: str, offset: int) -> None:
        """Record ``offset`` for this pattern pair.

        The file is stat-ed again. If it is no longer the same file as the
        recorded one, every offset for the path is discarded before the new
        one is stored. If it cannot be stat-ed the offset is kept under the
        previously recorded identity.
        """
        record = self.files.get(file_path)
        if record is None:
            record = FileRecord()
            self.files[file_path] = record

        try:
            current = identity_of(file_path)
        except OSError as e:
            logger.warning(f'Could not access metadata of {file_path}: {e}')
            current = None

        if current is not None:
            if record.identity is not None and not same_state(record.identity, current):
                logger.info(f'Identity of {file_path} changed, discarding {len(record.patterns)} stored patterns')
                record.patterns = {}
            record.identity = current

        record.patterns.setdefault(pattern, {})[ignore_pattern] = OffsetEntry(
            offset=offset,
            file_identity=record.identity,
            last_updated=datetime.now(),
        )

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(os.stat(self.state_file).st_mode)
        except FileNotFoundError:
            return STATE_FILE_MODE

    def to_document(self) -> StateDocument:
        return StateDocument(timestamp=self.timestamp, state_file=str(self.state_file), files=self.files)

    def save(self) -> bool:
        """Write the store to its state file.

        The document is written to a temporary file next to the target and
        moved into place, so a failed write never leaves a half-written store.
        The permissions of an existing state file are kept; a new one gets
        STATE_FILE_MODE.

        Returns:
            True if saved successfully, False otherwise
        """
        self.timestamp = datetime.now()
        directory = self.state_file.parent
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=directory, prefix=f'{self.state_file.name}.', suffix='.tmp', delete=False
            ) as f:
                tmp_name = f.name
                json.dump(self.to_document().model_dump(mode='json'), f, indent=2)
            os.chmod(tmp_name, self._file_mode())
            os.replace(tmp_name, self.state_file)
        except Exception as e:
            logger.error(f'Could not save state file {self.state_file}: {type(e).__name__}: {e}')
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug(f'Could not remove temporary state file {tmp_name}')
            return False

        logger.debug(f'Saved state for {len(self.files)} files to {self.state_file}')
        return True

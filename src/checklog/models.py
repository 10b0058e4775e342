"""Pydantic models for state persistence and scan results"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


STATE_VERSION = 1


class FileIdentity(BaseModel):
    """Snapshot of a file's physical identity

    Attributes:
        size: File size in bytes at the time of the stat
        device_id: Device the file lives on (st_dev, volume serial on Windows)
        file_serial: Per-device file serial (inode number, file index on Windows)
    """

    model_config = ConfigDict(frozen=True)

    size: int = Field(..., ge=0, examples=[1024], description='File size in bytes')
    device_id: int = Field(0, examples=[2049], description='Device identifier (0 when unavailable)')
    file_serial: int = Field(0, examples=[131], description='Inode or file index (0 when unavailable)')


class OffsetEntry(BaseModel):
    """Stored read position for one (file, pattern, ignore pattern) triple"""

    offset: int = Field(..., ge=0, description='Byte position where the next scan resumes')
    file_identity: FileIdentity | None = Field(None, description='Identity the offset was recorded under')
    last_updated: datetime = Field(default_factory=datetime.now)


class FileRecord(BaseModel):
    """All offsets tracked for a single path

    The identity is shared by every pattern entry: a change of identity
    invalidates all of them together.
    """

    identity: FileIdentity | None = None
    patterns: dict[str, dict[str, OffsetEntry]] = Field(
        default_factory=dict, description='match pattern -> ignore pattern -> offset entry'
    )

    def get_entry(self, pattern: str, ignore_pattern: str) -> OffsetEntry | None:
        return self.patterns.get(pattern, {}).get(ignore_pattern)


class StateDocument(BaseModel):
    """On-disk representation of the offset store"""

    version: int = STATE_VERSION
    timestamp: datetime = Field(default_factory=datetime.now)
    state_file: str = ''
    files: dict[str, FileRecord] = Field(default_factory=dict)


class ScanRequest(BaseModel):
    """Input for a single scan run"""

    files: list[str] = Field(default_factory=list, description='Paths to scan, in order')
    pattern: str = Field(..., examples=['ERROR'], description='Match pattern (regular expression)')
    ignore_pattern: str = Field('', examples=['ERROR: harmless'], description='Ignore pattern, empty for none')
    state_file: str | None = Field(None, description='State file override, default location when None')


class FileStatus(str, Enum):
    SCANNED = 'scanned'
    OPEN_FAILED = 'open_failed'
    READ_FAILED = 'read_failed'


class FileScanStats(BaseModel):
    """What the producer did with one file"""

    path: str
    status: FileStatus = FileStatus.SCANNED
    start_offset: int = 0
    end_offset: int = 0
    lines_read: int = 0
    error: str | None = None

    @property
    def bytes_read(self) -> int:
        return max(0, self.end_offset - self.start_offset)


class ScanResult(BaseModel):
    """Outcome of a scan run

    Attributes:
        matches: Lines matching the pattern and not the ignore pattern
        files: Per-file statistics in scan order
        workers: Number of classification workers used
        state_file: Location the offset store was bound to
        state_saved: Whether the store was persisted successfully
        duration_seconds: Wall time of the run
    """

    matches: int = Field(0, ge=0)
    files: list[FileScanStats] = Field(default_factory=list)
    workers: int = 1
    state_file: str = ''
    state_saved: bool = False
    duration_seconds: float = 0.0

    @property
    def lines_read(self) -> int:
        return sum(f.lines_read for f in self.files)

    @property
    def failed_files(self) -> list[FileScanStats]:
        return [f for f in self.files if f.status != FileStatus.SCANNED]

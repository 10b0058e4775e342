"""check-log: incremental, rotation-aware log scanning for monitoring checks"""

from checklog.__version__ import __version__
from checklog.pipeline import ScanPipeline, check_logs
from checklog.state import OffsetStore


__all__ = ['OffsetStore', 'ScanPipeline', '__version__', 'check_logs']

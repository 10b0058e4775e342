"""Concurrent scan pipeline.

One producer thread reads the files in the given order and feeds non-empty
lines into a bounded queue. A fixed pool of worker threads classifies the
lines against the compiled patterns and keeps local counts. The calling
thread waits for every worker and sums their totals.

Shutdown order matters:
1. Producer finishes all files and records each file's offset
2. Producer saves the offset store (exactly once, also on errors)
3. Producer enqueues one end-of-stream marker per worker (its last action)
4. Each worker drains the queue, sees its marker and returns its count (or
   re-raises its first classification error, after draining)
5. The aggregator sums the worker counts once all of them have returned
"""

import logging
import queue
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from time import time

from checklog import prometheus as prom
from checklog.errors import PatternError
from checklog.models import FileScanStats, FileStatus, ScanRequest, ScanResult
from checklog.state import OffsetStore
from checklog.utils import get_queue_factor, get_worker_count


logger = logging.getLogger(__name__)

# End-of-stream marker, one per worker
_END = object()


def compile_patterns(pattern: str, ignore_pattern: str = '') -> tuple[re.Pattern, re.Pattern | None]:
    """Compile the match pattern and the optional ignore pattern.

    Args:
        pattern: Regular expression a line must match
        ignore_pattern: Regular expression excluding matched lines; empty for none

    Returns:
        Tuple of (match regex, ignore regex or None)

    Raises:
        PatternError: If either pattern is not a valid regular expression
    """
    try:
        match_rx = re.compile(pattern)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e

    ignore_rx = None
    if ignore_pattern:
        try:
            ignore_rx = re.compile(ignore_pattern)
        except re.error as e:
            raise PatternError(ignore_pattern, str(e)) from e

    return match_rx, ignore_rx


class ScanPipeline:
    """Counts new matching lines in a list of files.

    Patterns are compiled on construction, so an invalid pattern is reported
    before any state is loaded or any file is opened.
    """

    def __init__(
        self,
        pattern: str,
        ignore_pattern: str = '',
        workers: int | None = None,
        queue_factor: int | None = None,
    ):
        """Initialize the pipeline.

        Args:
            pattern: Match pattern
            ignore_pattern: Ignore pattern, empty for none
            workers: Number of classification workers (default: logical CPUs)
            queue_factor: Queue capacity per worker (default: CHECKLOG_QUEUE_FACTOR or 4)
        """
        self.pattern = pattern
        self.ignore_pattern = ignore_pattern or ''
        self.match_rx, self.ignore_rx = compile_patterns(self.pattern, self.ignore_pattern)
        self.workers = get_worker_count(workers)
        self.queue_size = self.workers * (queue_factor if queue_factor and queue_factor > 0 else get_queue_factor())

    def run(self, files: list[str], state_file: str | None = None) -> ScanResult:
        """Scan ``files`` from their stored offsets and count new matches.

        Args:
            files: Paths to scan, in order
            state_file: State file override (default location when None)

        Returns:
            ScanResult with the match total and per-file statistics

        Raises:
            StateLocationError: If ``state_file`` is not a usable location
        """
        start_time = time()
        try:
            store = OffsetStore.load(state_file)
            lines: queue.Queue = queue.Queue(maxsize=self.queue_size)

            logger.debug(
                f'Scanning {len(files)} files for {self.pattern!r} '
                f'(ignore {self.ignore_pattern!r}) with {self.workers} workers'
            )

            with ThreadPoolExecutor(max_workers=self.workers + 1, thread_name_prefix='checklog') as executor:
                producer = executor.submit(self._produce, files, store, lines)
                worker_futures = [executor.submit(self._classify, lines) for _ in range(self.workers)]
                matches = self._aggregate(worker_futures)
                file_stats, saved = producer.result()
        except Exception:
            prom.record_scan('error', time() - start_time)
            raise

        duration = time() - start_time
        prom.record_scan('success', duration, matches=matches, workers=self.workers)
        if not saved:
            prom.state_save_failures_total.inc()

        logger.debug(f'Found {matches} matches in {len(files)} files in {duration:.3f}s')

        return ScanResult(
            matches=matches,
            files=file_stats,
            workers=self.workers,
            state_file=str(store.state_file),
            state_saved=saved,
            duration_seconds=duration,
        )

    def scan(self, request: ScanRequest) -> ScanResult:
        """Run ``request`` through this pipeline; its patterns must be the compiled ones."""
        if (request.pattern, request.ignore_pattern or '') != (self.pattern, self.ignore_pattern):
            raise ValueError(f'Request for {request.pattern!r} does not match pipeline for {self.pattern!r}')
        return self.run(request.files, state_file=request.state_file)

    def _produce(self, files: list[str], store: OffsetStore, lines: queue.Queue) -> tuple[list[FileScanStats], bool]:
        file_stats: list[FileScanStats] = []
        saved = False
        try:
            try:
                for path in files:
                    stats = self._read_file(path, store, lines)
                    prom.record_file(stats.status.value, stats.bytes_read, stats.lines_read)
                    file_stats.append(stats)
            finally:
                saved = store.save()
        finally:
            # Must stay the last thing the producer does: workers stop on the marker
            for _ in range(self.workers):
                lines.put(_END)
        return file_stats, saved

    def _read_file(self, path: str, store: OffsetStore, lines: queue.Queue) -> FileScanStats:
        """Stream one file from its stored offset into the queue.

        The offset reached is recorded in the store unless the file could not
        be opened at all.
        """
        offset = store.get(path, self.pattern, self.ignore_pattern)
        stats = FileScanStats(path=path, start_offset=offset, end_offset=offset)

        try:
            f = open(path, 'rb')
        except OSError as e:
            logger.error(f'Failed to open {path}: {e}')
            stats.status = FileStatus.OPEN_FAILED
            stats.error = str(e)
            return stats

        with f:
            try:
                f.seek(offset)
            except (OSError, ValueError) as e:
                logger.warning(f'Failed to seek {path} to position {offset}: {e}')
            position = f.tell()
            stats.start_offset = position

            try:
                for raw in f:
                    position += len(raw)
                    line = raw.rstrip(b'\r\n')
                    if line:
                        lines.put(line.decode('utf-8', errors='replace'))
                        stats.lines_read += 1
            except OSError as e:
                logger.error(f'Failed to finish reading {path} at position {position}: {e}')
                stats.status = FileStatus.READ_FAILED
                stats.error = str(e)

        stats.end_offset = position
        store.set(path, self.pattern, self.ignore_pattern, position)
        return stats

    def _classify(self, lines: queue.Queue) -> int:
        """Count matching lines until this worker's end marker.

        A worker that fails keeps draining the queue up to its marker before
        re-raising, so the producer never blocks on a full queue.
        """
        found = 0
        error = None
        match = self.match_rx.search
        ignore = self.ignore_rx.search if self.ignore_rx is not None else None
        while True:
            line = lines.get()
            if line is _END:
                break
            if error is not None:
                continue
            try:
                if match(line) and (ignore is None or not ignore(line)):
                    found += 1
            except Exception as e:
                logger.error(f'Worker failed to classify a line: {type(e).__name__}: {e}')
                error = e
        if error is not None:
            raise error
        return found

    @staticmethod
    def _aggregate(worker_futures) -> int:
        total = 0
        for future in as_completed(worker_futures):
            total += future.result()
        return total


def check_logs(
    files: list[str],
    pattern: str,
    ignore_pattern: str = '',
    state_file: str | None = None,
    workers: int | None = None,
) -> int:
    """Count new lines in ``files`` matching ``pattern`` but not ``ignore_pattern``.

    Returns:
        Number of matching lines read since the previous run
    """
    return ScanPipeline(pattern, ignore_pattern, workers=workers).run(files, state_file=state_file).matches

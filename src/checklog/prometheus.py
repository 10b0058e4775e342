"""Prometheus metrics for check-log

Metrics live on a dedicated registry so a run can be exported in the
textfile-collector format (node_exporter --collector.textfile) without
pulling in the process/platform collectors of the default registry.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, write_to_textfile


REGISTRY = CollectorRegistry()

# ============================================================================
# Scan Metrics
# ============================================================================

scans_total = Counter(
    'checklog_scans_total',
    'Total number of scan runs',
    ['status'],  # success, error
    registry=REGISTRY,
)

scan_duration_seconds = Histogram(
    'checklog_scan_duration_seconds',
    'Time spent in a scan run',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

active_workers = Gauge('checklog_active_workers', 'Classification workers of the last run', registry=REGISTRY)


# ============================================================================
# File Processing Metrics
# ============================================================================

files_processed_total = Counter(
    'checklog_files_processed_total',
    'Files handled by the producer',
    ['status'],  # scanned, open_failed, read_failed
    registry=REGISTRY,
)

bytes_processed_total = Counter('checklog_bytes_processed_total', 'Bytes read from log files', registry=REGISTRY)

lines_processed_total = Counter('checklog_lines_processed_total', 'Non-empty lines classified', registry=REGISTRY)


# ============================================================================
# Match & State Metrics
# ============================================================================

matches_found_total = Counter('checklog_matches_found_total', 'Lines counted as matches', registry=REGISTRY)

last_match_count = Gauge('checklog_last_match_count', 'Matches found by the last run', registry=REGISTRY)

state_save_failures_total = Counter(
    'checklog_state_save_failures_total', 'Failed attempts to persist the offset store', registry=REGISTRY
)


def record_file(status: str, bytes_read: int, lines_read: int):
    files_processed_total.labels(status=status).inc()
    bytes_processed_total.inc(bytes_read)
    lines_processed_total.inc(lines_read)


def record_scan(status: str, duration: float, matches: int = 0, workers: int = 0):
    scans_total.labels(status=status).inc()
    scan_duration_seconds.observe(duration)
    if status == 'success':
        matches_found_total.inc(matches)
        last_match_count.set(matches)
        active_workers.set(workers)


def write_metrics(path: str):
    """Write all check-log metrics to ``path`` in the textfile format."""
    write_to_textfile(path, REGISTRY)

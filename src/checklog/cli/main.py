"""CLI entry point: run check-log as a Nagios/NRPE plugin"""

import json
import logging
import sys

import click

from checklog.__version__ import __version__
from checklog.errors import CheckLogError
from checklog.file_utils import glob_files
from checklog.models import ScanRequest
from checklog.nagios import PluginOutput, match_check_result, parse_range, unknown_result
from checklog.pipeline import ScanPipeline
from checklog.prometheus import write_metrics
from checklog.utils import setup_logging


logger = logging.getLogger(__name__)


def _finish(check: PluginOutput, output_json: bool, extra: dict | None = None):
    """Print the plugin result and exit with its status code."""
    if output_json:
        output = {'status': check.status, 'message': check.message}
        if extra:
            output.update(extra)
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(check.to_output())
    sys.exit(check.exit_code)


@click.command('check-log')
@click.version_option(version=__version__, prog_name='check-log')
@click.option(
    '--logfile',
    '-F',
    default='/var/log/syslog',
    show_default=True,
    help='Logfile to check (glob patterns allowed, quote them)',
)
@click.option('--pattern', '-q', default='ERROR', show_default=True, help='Pattern to match (regular expression)')
@click.option('--warning', '-w', default='1', show_default=True, help='Warning threshold range')
@click.option('--critical', '-c', default='1', show_default=True, help='Critical threshold range')
@click.option(
    '--state-file',
    '-O',
    envvar='CHECKLOG_STATE_FILE',
    default=None,
    help='Alternate state file location (default: ~/.check-log.state)',
)
@click.option('--ignore', '-i', 'ignore_pattern', default='', help='Pattern to ignore after a match')
@click.option('--workers', type=int, default=None, help='Classification workers (default: logical CPUs)')
@click.option('--json', 'output_json', is_flag=True, help='Output the result as JSON')
@click.option(
    '--metrics-file',
    type=click.Path(dir_okay=False),
    default=None,
    help='Write Prometheus metrics of this run to a textfile-collector file',
)
@click.option('--verbose', '-v', is_flag=True, help='Log debug output to stderr')
def check_command(
    logfile: str,
    pattern: str,
    warning: str,
    critical: str,
    state_file: str | None,
    ignore_pattern: str,
    workers: int | None,
    output_json: bool,
    metrics_file: str | None,
    verbose: bool,
):
    """
    Count new lines matching PATTERN in log files since the last run.

    Read positions are remembered per logfile, pattern and ignore pattern,
    so each run only looks at lines appended since the previous one.
    Rotated or truncated files are detected and read from the start.

    \b
    Examples:
        check-log -F /var/log/syslog -q ERROR -w 1 -c 5
        check-log -F '/var/log/app/*.log' -q 'timeout|refused' -i 'healthcheck'
        check-log -F /var/log/messages -q 'I/O error' -O /var/lib/nagios/check-log.state

    \b
    Thresholds use Nagios range syntax:
        10      alert if more than 10 matches
        5:      alert if fewer than 5 matches
        @0:3    alert if between 0 and 3 matches
    """
    setup_logging(verbose)

    try:
        warning_range = parse_range(warning)
        critical_range = parse_range(critical)
        pipeline = ScanPipeline(pattern, ignore_pattern, workers=workers)
        request = ScanRequest(
            files=glob_files(logfile),
            pattern=pattern,
            ignore_pattern=ignore_pattern,
            state_file=state_file,
        )
        result = pipeline.scan(request)
    except CheckLogError as e:
        _finish(unknown_result(str(e)), output_json)
    except Exception as e:
        logger.exception(f'Unexpected error while checking {logfile}')
        _finish(unknown_result(f'{type(e).__name__}: {e}'), output_json)

    for stats in result.failed_files:
        click.echo(f'Warning: {stats.path}: {stats.error}', err=True)

    if metrics_file:
        try:
            write_metrics(metrics_file)
        except OSError as e:
            logger.warning(f'Failed to write metrics to {metrics_file}: {e}')

    check = match_check_result(result.matches, pattern, logfile, warning_range, critical_range)
    _finish(check, output_json, extra={'result': result.model_dump(mode='json')})


def main():
    """Entry point for the CLI"""
    check_command()


if __name__ == '__main__':
    main()

"""Nagios plugin glue built on the nagiosplugin library.

Thresholds use the Nagios range syntax understood by ``nagiosplugin.Range``:

    10      alert if < 0 or > 10
    10:     alert if < 10
    ~:10    alert if > 10
    10:20   alert if < 10 or > 20
    @10:20  alert if >= 10 and <= 20

The check is evaluated in-process (``Check.__call__``) instead of through
``Check.main``, which would install its own runtime, timeout handler and exit.
"""

from dataclasses import dataclass, field

import nagiosplugin
from nagiosplugin.state import ServiceState

from checklog.errors import ThresholdError


CHECK_NAME = 'CHECK_LOG'
METRIC_NAME = 'matches'


def parse_range(text: str) -> nagiosplugin.Range:
    """Parse a threshold range.

    Args:
        text: Range in Nagios syntax; empty means no upper bound

    Returns:
        nagiosplugin.Range

    Raises:
        ThresholdError: If the range is malformed
    """
    try:
        return nagiosplugin.Range(text.strip())
    except ValueError as e:
        raise ThresholdError(f'Invalid threshold range {text!r}: {e}') from None


class MatchCount(nagiosplugin.Resource):
    """Exposes the match total of a finished scan as a metric."""

    def __init__(self, found: int):
        self.found = found

    def probe(self):
        return [nagiosplugin.Metric(METRIC_NAME, self.found, uom='n', min=0, context=METRIC_NAME)]


class MatchSummary(nagiosplugin.Summary):
    def __init__(self, message: str):
        self.message = message

    def ok(self, results):
        return self.message

    def problem(self, results):
        return self.message


@dataclass
class PluginOutput:
    """State, summary and perf-data of one plugin run."""

    state: ServiceState
    message: str
    perfdata: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return self.state.text.upper()

    @property
    def exit_code(self) -> int:
        return self.state.code

    def to_output(self) -> str:
        line = f'{CHECK_NAME} {self.status} - {self.message}'
        if self.perfdata:
            line += ' | ' + ' '.join(self.perfdata)
        return line


def match_check_result(
    found: int,
    pattern: str,
    logfile: str,
    warning: nagiosplugin.Range | None,
    critical: nagiosplugin.Range | None,
) -> PluginOutput:
    """Evaluate a match count against the thresholds."""
    message = f'Found {found} matches for {pattern} in {logfile}'
    check = nagiosplugin.Check(
        MatchCount(found),
        nagiosplugin.ScalarContext(METRIC_NAME, warning=warning, critical=critical),
        MatchSummary(message),
    )
    check.name = CHECK_NAME
    check()
    return PluginOutput(state=check.state, message=check.summary_str, perfdata=[str(p) for p in check.perfdata])


def unknown_result(message: str) -> PluginOutput:
    return PluginOutput(state=nagiosplugin.Unknown, message=message)

"""Exceptions raised by check-log"""


class CheckLogError(Exception):
    """Base class for check-log errors."""


class PatternError(CheckLogError, ValueError):
    """A match or ignore pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f'Invalid pattern {pattern!r}: {reason}')


class StateLocationError(CheckLogError, ValueError):
    """An explicit state file location cannot be used."""


class ThresholdError(CheckLogError, ValueError):
    """A warning or critical threshold range cannot be parsed."""

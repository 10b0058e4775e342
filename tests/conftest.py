"""Pytest configuration and shared fixtures for check-log tests.

This module provides auto-use fixtures that ensure test isolation,
particularly for the default state file location.
"""

import shutil
import tempfile

import pytest


@pytest.fixture(autouse=True)
def isolate_home_directory(monkeypatch):
    """Auto-use fixture that isolates HOME (and so the default state file) for each test.

    This fixture:
    1. Creates a temporary directory used as HOME
    2. Clears CHECKLOG_* environment variables that could leak from the shell
    3. Cleans up the directory after the test completes

    This ensures:
    - Tests never read or write the user's ~/.check-log.state
    - Tests don't interfere with each other through shared state files
    """
    temp_home = tempfile.mkdtemp(prefix='checklog_test_home_')

    monkeypatch.setenv('HOME', temp_home)
    for key in ('CHECKLOG_STATE_FILE', 'CHECKLOG_WORKERS', 'CHECKLOG_QUEUE_FACTOR', 'CHECKLOG_LOG_LEVEL'):
        monkeypatch.delenv(key, raising=False)

    yield temp_home

    shutil.rmtree(temp_home, ignore_errors=True)


@pytest.fixture
def temp_home(isolate_home_directory):
    """Path of the isolated HOME directory for this test."""
    return isolate_home_directory


@pytest.fixture
def log_dir(tmp_path):
    """Directory for log files and state files of a test."""
    return tmp_path


@pytest.fixture
def state_file(tmp_path):
    """Explicit state file location inside the test directory."""
    return str(tmp_path / 'state.json')

"""Tests for environment-driven configuration helpers."""

import logging
from pathlib import Path

from checklog.utils import (
    DEFAULT_QUEUE_FACTOR,
    get_default_state_file,
    get_int_env,
    get_queue_factor,
    get_str_env,
    get_worker_count,
    is_valid_state_file,
    setup_logging,
)


class TestEnvHelpers:
    """Test reading typed values from the environment."""

    def test_get_int_env(self, monkeypatch):
        monkeypatch.setenv('CHECKLOG_TEST_INT', '42')
        assert get_int_env('CHECKLOG_TEST_INT') == 42

    def test_get_int_env_invalid_or_missing(self, monkeypatch):
        monkeypatch.setenv('CHECKLOG_TEST_INT', 'many')
        assert get_int_env('CHECKLOG_TEST_INT') == 0
        assert get_int_env('CHECKLOG_TEST_UNSET') == 0

    def test_get_str_env(self, monkeypatch):
        monkeypatch.setenv('CHECKLOG_TEST_STR', 'value')
        assert get_str_env('CHECKLOG_TEST_STR', 'default') == 'value'
        assert get_str_env('CHECKLOG_TEST_UNSET', 'default') == 'default'


class TestWorkerCount:
    """Test worker count resolution."""

    def test_explicit_value_wins(self, monkeypatch):
        monkeypatch.setenv('CHECKLOG_WORKERS', '7')
        assert get_worker_count(2) == 2

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('CHECKLOG_WORKERS', '7')
        assert get_worker_count() == 7

    def test_defaults_to_cpu_count(self, monkeypatch):
        monkeypatch.setattr('checklog.utils.psutil.cpu_count', lambda logical=True: 6)
        assert get_worker_count() == 6

    def test_never_below_one(self, monkeypatch):
        monkeypatch.setattr('checklog.utils.psutil.cpu_count', lambda logical=True: None)
        assert get_worker_count(0) == 1

    def test_queue_factor(self, monkeypatch):
        assert get_queue_factor() == DEFAULT_QUEUE_FACTOR
        monkeypatch.setenv('CHECKLOG_QUEUE_FACTOR', '16')
        assert get_queue_factor() == 16


class TestStateFileLocation:
    """Test default state file location and validation."""

    def test_default_in_home(self, temp_home):
        assert get_default_state_file() == Path(temp_home) / '.check-log.state'

    def test_default_without_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv('HOME', str(tmp_path / 'missing'))
        assert get_default_state_file() == Path('.') / '.check-log.state'

    def test_valid_existing_file(self, tmp_path):
        path = tmp_path / 'state'
        path.write_text('')
        assert is_valid_state_file(str(path)) is True

    def test_valid_new_file(self, tmp_path):
        assert is_valid_state_file(str(tmp_path / 'state')) is True

    def test_invalid_locations(self, tmp_path):
        assert is_valid_state_file('') is False
        assert is_valid_state_file(str(tmp_path / 'missing' / 'state')) is False

    def test_existing_directory_is_invalid(self, tmp_path):
        """A directory sits in a writable parent but can never hold the store."""
        state_dir = tmp_path / 'statedir'
        state_dir.mkdir()
        assert is_valid_state_file(str(state_dir)) is False


class TestSetupLogging:
    """Test logging configuration."""

    def test_level_from_environment(self, monkeypatch):
        calls = []
        monkeypatch.setattr('checklog.utils.logging.basicConfig', lambda **kwargs: calls.append(kwargs))
        monkeypatch.setenv('CHECKLOG_LOG_LEVEL', 'info')

        setup_logging()

        assert calls[0]['level'] == logging.INFO

    def test_verbose_forces_debug(self, monkeypatch):
        calls = []
        monkeypatch.setattr('checklog.utils.logging.basicConfig', lambda **kwargs: calls.append(kwargs))

        setup_logging(verbose=True)

        assert calls[0]['level'] == logging.DEBUG

    def test_unknown_level_falls_back_to_warning(self, monkeypatch):
        calls = []
        monkeypatch.setattr('checklog.utils.logging.basicConfig', lambda **kwargs: calls.append(kwargs))
        monkeypatch.setenv('CHECKLOG_LOG_LEVEL', 'chatty')

        setup_logging()

        assert calls[0]['level'] == logging.WARNING

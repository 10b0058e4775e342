"""Tests for logfile argument expansion."""

import logging

from checklog.file_utils import glob_files


class TestGlobFiles:
    """Test glob expansion of the logfile argument."""

    def test_glob_matches_sorted(self, tmp_path):
        for name in ['b.log', 'a.log', 'c.log', 'ignored.txt']:
            (tmp_path / name).write_text('x\n')

        assert glob_files(str(tmp_path / '*.log')) == [
            str(tmp_path / 'a.log'),
            str(tmp_path / 'b.log'),
            str(tmp_path / 'c.log'),
        ]

    def test_plain_path_kept(self, tmp_path):
        path = str(tmp_path / 'app.log')
        assert glob_files(path) == [path]

    def test_missing_plain_path_kept(self, tmp_path):
        """A missing file is still scanned so that the failure is reported."""
        path = str(tmp_path / 'missing.log')
        assert glob_files(path) == [path]

    def test_glob_without_matches(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger='checklog.file_utils'):
            assert glob_files(str(tmp_path / '*.log')) == []
        assert 'No files match' in caplog.text

    def test_empty_argument(self):
        assert glob_files('') == []

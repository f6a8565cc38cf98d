"""
Unit tests for directory pre-flight checks.
"""

import os
import sys

import pytest

from waitfordir.utils.exceptions import ErrorCode, InvalidDirectoryError, NoDirectoriesError
from waitfordir.utils.paths import dir_exists, verify_dirs


class TestDirExists:
    """Tests for dir_exists."""

    def test_existing_directory(self, empty_dir):
        """Test an existing directory is accepted."""
        assert dir_exists(str(empty_dir)) is True

    def test_surrounding_whitespace_ignored(self, empty_dir):
        """Test the path is trimmed before checking."""
        assert dir_exists(f"  {empty_dir}\n") is True

    def test_missing(self, tmp_path):
        """Test a missing path is rejected."""
        assert dir_exists(str(tmp_path / "missing")) is False

    def test_regular_file(self, tmp_path):
        """Test a regular file is not a directory."""
        regular = tmp_path / "file.txt"
        regular.write_text("x")

        assert dir_exists(str(regular)) is False

    def test_blank(self):
        """Test blank paths are rejected."""
        assert dir_exists("") is False
        assert dir_exists("   ") is False

    @pytest.mark.skipif(
        sys.platform == "win32" or os.geteuid() == 0,
        reason="needs POSIX permissions enforced",
    )
    def test_unreadable_parent_counts_as_existing(self, tmp_path):
        """Test stat failures other than not-found are left to probing."""
        parent = tmp_path / "locked"
        child = parent / "child"
        child.mkdir(parents=True)
        parent.chmod(0)
        try:
            assert dir_exists(str(child)) is True
        finally:
            parent.chmod(0o755)


class TestVerifyDirs:
    """Tests for verify_dirs."""

    def test_all_valid(self, empty_dir, populated_dir):
        """Test valid directories pass silently."""
        verify_dirs([str(empty_dir), str(populated_dir)])

    def test_empty_set(self):
        """Test an empty path list is rejected."""
        with pytest.raises(NoDirectoriesError) as exc_info:
            verify_dirs([])

        assert exc_info.value.error_code == ErrorCode.NO_DIRECTORIES

    def test_first_invalid_reported(self, empty_dir, tmp_path):
        """Test the offending path is named in the error."""
        missing = str(tmp_path / "missing")

        with pytest.raises(InvalidDirectoryError) as exc_info:
            verify_dirs([str(empty_dir), missing])

        assert exc_info.value.directory == missing
        assert missing in exc_info.value.message

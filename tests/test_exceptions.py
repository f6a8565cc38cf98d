"""
Unit tests for the exception hierarchy.
"""

from waitfordir.utils.exceptions import (
    Cancelled,
    ConfigurationError,
    DirectoryError,
    ErrorCode,
    InvalidDirectoryError,
    NoDirectoriesError,
    ProbeError,
    SubscriptionError,
    TimeoutExceeded,
    WaitForDirError,
    WaitInterrupted,
)


class TestWaitForDirError:
    """Tests for the base exception."""

    def test_str_with_details_and_cause(self):
        """Test the formatted message includes details and cause."""
        error = WaitForDirError(
            "boom",
            details={"directory": "/data"},
            cause=PermissionError("denied"),
        )

        assert str(error) == (
            "[UNKNOWN_ERROR] boom | Details: {'directory': '/data'} "
            "| Caused by: PermissionError: denied"
        )

    def test_to_dict(self):
        """Test serialization for structured logs."""
        error = ProbeError("/data", cause=OSError("io"))

        data = error.to_dict()

        assert data["error_type"] == "ProbeError"
        assert data["error_code"] == ErrorCode.PROBE_FAILED.value
        assert data["error_name"] == "PROBE_FAILED"
        assert data["details"] == {"directory": "/data"}
        assert data["cause"] == "io"


class TestHierarchy:
    """Tests for the concrete exception types."""

    def test_configuration_error_details(self):
        """Test config key and expected type land in details."""
        error = ConfigurationError("bad", config_key="timeout", expected_type="duration")

        assert error.error_code == ErrorCode.CONFIGURATION_ERROR
        assert error.details == {"config_key": "timeout", "expected_type": "duration"}

    def test_no_directories(self):
        """Test the default message."""
        error = NoDirectoriesError()

        assert error.message == "no directories given"
        assert error.error_code == ErrorCode.NO_DIRECTORIES

    def test_directory_errors(self):
        """Test directory errors carry the path."""
        for error, code in (
            (InvalidDirectoryError("/a"), ErrorCode.INVALID_DIRECTORY),
            (ProbeError("/a"), ErrorCode.PROBE_FAILED),
            (SubscriptionError("cannot watch", directory="/a"), ErrorCode.SUBSCRIPTION_FAILED),
        ):
            assert isinstance(error, DirectoryError)
            assert error.directory == "/a"
            assert error.error_code == code

    def test_broken_subscription_code(self):
        """Test a subscription error can be marked as broken."""
        error = SubscriptionError("gone", directory="/a", error_code=ErrorCode.SUBSCRIPTION_BROKEN)

        assert error.error_code == ErrorCode.SUBSCRIPTION_BROKEN

    def test_interruptions(self):
        """Test timeout and cancellation share a base class."""
        timeout = TimeoutExceeded(1.5)
        cancelled = Cancelled()

        assert isinstance(timeout, WaitInterrupted)
        assert isinstance(cancelled, WaitInterrupted)
        assert timeout.timeout == 1.5
        assert timeout.details["timeout_seconds"] == 1.5
        assert "1.5s" in timeout.message
        assert cancelled.error_code == ErrorCode.CANCELLED

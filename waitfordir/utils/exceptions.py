"""
Custom Exceptions
=================

Defines the exception hierarchy for waitfordir.
All exceptions include error codes for programmatic handling.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001

    # Directory errors (1100-1199)
    NO_DIRECTORIES = 1100
    INVALID_DIRECTORY = 1101
    PROBE_FAILED = 1102

    # Watch errors (1200-1299)
    SUBSCRIPTION_FAILED = 1200
    SUBSCRIPTION_BROKEN = 1201

    # Interruption (1300-1399)
    TIMEOUT_EXCEEDED = 1300
    CANCELLED = 1301


class WaitForDirError(Exception):
    """Base exception for all waitfordir errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Programmatic error code.
            details: Additional context as key-value pairs.
            cause: Original exception if wrapping another error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(WaitForDirError):
    """Raised when there's a configuration problem.

    Examples:
        - Invalid configuration file format
        - Unparseable timeout duration
        - Unknown event filter name
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class NoDirectoriesError(WaitForDirError):
    """Raised when the set of directories to watch is empty."""

    def __init__(self, message: str = "no directories given", **kwargs):
        super().__init__(message, error_code=ErrorCode.NO_DIRECTORIES, **kwargs)


class DirectoryError(WaitForDirError):
    """Base for errors tied to one specific directory."""

    def __init__(
        self,
        message: str,
        directory: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INVALID_DIRECTORY,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if directory is not None:
            details["directory"] = directory
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )
        self.directory = directory


class InvalidDirectoryError(DirectoryError):
    """Raised at pre-flight when a path is missing or not a directory."""

    def __init__(self, directory: str, **kwargs):
        super().__init__(
            f"directory does not exist or is not a directory: {directory}",
            directory=directory,
            error_code=ErrorCode.INVALID_DIRECTORY,
            **kwargs
        )


class ProbeError(DirectoryError):
    """Raised when a directory's contents cannot be listed.

    Examples:
        - Permission denied
        - Directory removed between pre-flight and probing
        - Path turned out not to be a directory
    """

    def __init__(self, directory: str, **kwargs):
        super().__init__(
            f"cannot list directory contents: {directory}",
            directory=directory,
            error_code=ErrorCode.PROBE_FAILED,
            **kwargs
        )


class SubscriptionError(DirectoryError):
    """Raised when a filesystem watch fails to attach or breaks mid-watch."""

    def __init__(
        self,
        message: str,
        directory: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.SUBSCRIPTION_FAILED,
        **kwargs
    ):
        super().__init__(
            message,
            directory=directory,
            error_code=error_code,
            **kwargs
        )


class WaitInterrupted(WaitForDirError):
    """Base for runs that ended before every directory was fulfilled.

    Callers distinguish the subclasses to pick their own exit code.
    """


class TimeoutExceeded(WaitInterrupted):
    """Raised when the configured deadline passes before completion."""

    def __init__(self, timeout: float, **kwargs):
        details = kwargs.pop("details", {})
        details["timeout_seconds"] = timeout
        super().__init__(
            f"timed out after {timeout:g}s waiting for directory contents",
            error_code=ErrorCode.TIMEOUT_EXCEEDED,
            details=details,
            **kwargs
        )
        self.timeout = timeout


class Cancelled(WaitInterrupted):
    """Raised when the wait is cancelled by an external shutdown request."""

    def __init__(self, message: str = "cancelled by shutdown request", **kwargs):
        super().__init__(message, error_code=ErrorCode.CANCELLED, **kwargs)

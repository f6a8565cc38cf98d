"""Utilities module for waitfordir."""

from .logging_config import setup_logging, get_logger, LoggingConfig
from .exceptions import (
    WaitForDirError,
    ConfigurationError,
    NoDirectoriesError,
    InvalidDirectoryError,
    ProbeError,
    SubscriptionError,
    WaitInterrupted,
    TimeoutExceeded,
    Cancelled,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "WaitForDirError",
    "ConfigurationError",
    "NoDirectoriesError",
    "InvalidDirectoryError",
    "ProbeError",
    "SubscriptionError",
    "WaitInterrupted",
    "TimeoutExceeded",
    "Cancelled",
]

"""
Logging Configuration
=====================

Provides colored console logging or structured JSON logging for waitfordir.
Supports an optional rotating log file with configurable log levels.
"""

import logging
import logging.handlers
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field


ROOT_LOGGER_NAME = "waitfordir"

# Fields that may be attached to a record through ``extra=``
STRUCTURED_FIELDS = (
    "directory",
    "dirs",
    "event",
    "outcome",
    "signal",
    "error_code",
    "reason",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored console formatter."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """Format with colors for console output."""
        color = self.COLORS.get(record.levelname, '') if self.use_color else ''
        reset = self.RESET if self.use_color else ''
        timestamp = datetime.now().strftime('%H:%M:%S')

        msg = f"{color}[{timestamp}] {record.levelname:8}{reset} "
        msg += f"{record.name}: {record.getMessage()}"

        fields = [
            f"{name}={getattr(record, name)}"
            for name in STRUCTURED_FIELDS
            if hasattr(record, name)
        ]
        if fields:
            msg += " " + " ".join(fields)

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


@dataclass
class LoggingConfig:
    """Configuration for the logging system."""
    level: str = "INFO"
    json_format: bool = False
    console_output: bool = True
    file_output: bool = False
    log_dir: Path = field(default_factory=lambda: Path.home() / ".waitfordir" / "logs")
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    @classmethod
    def from_dict(cls, data: dict) -> "LoggingConfig":
        """Create LoggingConfig from dictionary."""
        if not data:
            return cls()
        defaults = cls()
        log_dir = data.get("log_dir")
        return cls(
            level=str(data.get("level", defaults.level)).upper(),
            json_format=bool(data.get("json_format", defaults.json_format)),
            console_output=bool(data.get("console_output", defaults.console_output)),
            file_output=bool(data.get("file_output", defaults.file_output)),
            log_dir=Path(log_dir).expanduser() if log_dir else defaults.log_dir,
            max_file_size=int(data.get("max_file_size", defaults.max_file_size)),
            backup_count=int(data.get("backup_count", defaults.backup_count)),
        )


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Set up the logging system.

    Args:
        config: Logging configuration. Uses defaults if not provided.

    Returns:
        The configured application root logger.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    # Remove existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        if config.json_format:
            console_handler.setFormatter(JSONFormatter())
        else:
            use_color = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
            console_handler.setFormatter(ConsoleFormatter(use_color=use_color))
        root_logger.addHandler(console_handler)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = config.log_dir / "waitfordir.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Prevent propagation to root logger
    root_logger.propagate = False
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Name of the module (typically __name__).

    Returns:
        Logger instance under the application namespace.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

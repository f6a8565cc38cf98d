"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
Command-line flags are layered on top of the file values by the CLI.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict, Iterable, Union
import yaml
import logging

from waitfordir.monitoring.watcher import DEFAULT_EVENT_FILTER, EVENT_FILTERS
from waitfordir.utils.exceptions import ConfigurationError
from waitfordir.utils.logging_config import LoggingConfig

logger = logging.getLogger(__name__)


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: Union[str, int, float, None]) -> float:
    """Parse a duration into seconds.

    Accepts unit-suffixed duration strings (``"1.5s"``, ``"500ms"``, ``"1h2m3s"``),
    bare numbers meaning seconds, and ``None`` or ``""`` meaning zero.

    Args:
        value: The duration to parse.

    Returns:
        Duration in seconds.

    Raises:
        ConfigurationError: If the value is negative or cannot be parsed.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}", config_key="timeout")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if not text:
            return 0.0
        try:
            seconds = float(text)
        except ValueError:
            seconds = _parse_unit_duration(text)

    if seconds < 0:
        raise ConfigurationError(
            f"Duration must not be negative: {value!r}",
            config_key="timeout",
        )
    return seconds


def _parse_unit_duration(text: str) -> float:
    sign = 1.0
    body = text
    if body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(body):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(body):
        raise ConfigurationError(
            f"Invalid duration: {text!r} (examples: 30s, 1m30s, 500ms)",
            config_key="timeout",
            expected_type="duration",
        )
    return sign * total


def paths_from_env_var(name: Optional[str], environ: Optional[Dict[str, str]] = None) -> List[str]:
    """Read colon-separated paths from an environment variable.

    Args:
        name: Variable name. Empty or None yields no paths.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        The paths, in order. An unset or blank variable yields ``[]``.
    """
    if not name:
        return []
    if environ is None:
        environ = os.environ
    value = environ.get(name)
    if value is None:
        return []
    value = value.strip()
    if not value:
        return []
    return value.split(":")


def split_directory_args(values: Optional[Iterable[str]]) -> List[str]:
    """Flatten repeated and comma-separated directory arguments."""
    paths: List[str] = []
    for value in values or []:
        paths.extend(part for part in value.split(",") if part)
    return paths


@dataclass
class WaiterConfig:
    """Directory waiter configuration.

    Attributes:
        directories: Directories to watch.
        env_var: Environment variable with extra colon-separated paths.
        timeout: Seconds to wait before giving up; 0 waits forever.
        exit_on_watch_failure: Abort the run on the first watch error.
        event_filter: Name of the event qualification predicate.
        poll_interval: Seconds between driver loop wake-ups.
    """
    directories: List[str] = field(default_factory=list)
    env_var: Optional[str] = None
    timeout: float = 0.0
    exit_on_watch_failure: bool = False
    event_filter: str = DEFAULT_EVENT_FILTER
    poll_interval: float = 0.2

    def __post_init__(self):
        if self.event_filter not in EVENT_FILTERS:
            raise ConfigurationError(
                f"Unknown event filter: {self.event_filter!r}",
                config_key="event_filter",
            )
        if self.timeout < 0:
            raise ConfigurationError("Timeout must not be negative", config_key="timeout")
        if self.poll_interval <= 0:
            raise ConfigurationError("Poll interval must be positive", config_key="poll_interval")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaiterConfig":
        """Create WaiterConfig from dictionary."""
        if not data:
            return cls()

        directories = data.get("directories", [])
        if isinstance(directories, str):
            directories = [directories]
        if not isinstance(directories, list):
            raise ConfigurationError(
                "directories must be a list of paths",
                config_key="directories",
                expected_type="list",
            )

        return cls(
            directories=split_directory_args(str(d) for d in directories),
            env_var=data.get("env_var"),
            timeout=parse_duration(data.get("timeout")),
            exit_on_watch_failure=bool(data.get("exit_on_watch_failure", False)),
            event_filter=data.get("event_filter", DEFAULT_EVENT_FILTER),
            poll_interval=float(data.get("poll_interval", 0.2)),
        )

    def resolve_paths(self, environ: Optional[Dict[str, str]] = None) -> List[str]:
        """Directories from config/flags followed by those from the env var."""
        return list(self.directories) + paths_from_env_var(self.env_var, environ)


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    waiter: WaiterConfig = field(default_factory=WaiterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        waitfordir.yaml in the current directory and falls
                        back to defaults when it is absent.

        Returns:
            Config instance with loaded settings.

        Raises:
            ConfigurationError: If an explicitly given file is missing or
                the file is not valid YAML.
        """
        explicit = config_path is not None
        if config_path is None:
            config_path = Path("waitfordir.yaml")
        config_path = Path(config_path)

        if not config_path.exists():
            if explicit:
                raise ConfigurationError(
                    f"Config file not found: {config_path}",
                    details={"path": str(config_path)},
                )
            logger.debug(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise ConfigurationError(
                f"Failed to parse config file: {config_path}",
                details={"path": str(config_path)},
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}",
                details={"path": str(config_path)},
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file must contain a mapping: {config_path}",
                expected_type="mapping",
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            waiter=WaiterConfig.from_dict(data.get("waiter", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        data = {
            "waiter": {
                "directories": list(self.waiter.directories),
                "env_var": self.waiter.env_var,
                "timeout": self.waiter.timeout,
                "exit_on_watch_failure": self.waiter.exit_on_watch_failure,
                "event_filter": self.waiter.event_filter,
                "poll_interval": self.waiter.poll_interval,
            },
            "logging": {
                "level": self.logging.level,
                "json_format": self.logging.json_format,
                "console_output": self.logging.console_output,
                "file_output": self.logging.file_output,
                "log_dir": str(self.logging.log_dir),
                "max_file_size": self.logging.max_file_size,
                "backup_count": self.logging.backup_count,
            },
        }

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")

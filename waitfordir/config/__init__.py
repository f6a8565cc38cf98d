"""Configuration module for waitfordir."""

from .settings import (
    Config,
    WaiterConfig,
    parse_duration,
    paths_from_env_var,
    split_directory_args,
)

__all__ = [
    "Config",
    "WaiterConfig",
    "parse_duration",
    "paths_from_env_var",
    "split_directory_args",
]

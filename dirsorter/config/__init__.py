"""Configuration module for the directory sorter."""

from .settings import (
    Config,
    WatcherConfig,
    RetryConfig,
)
from .paths import resolve_target_directory, home_directory

__all__ = [
    "Config",
    "WatcherConfig",
    "RetryConfig",
    "resolve_target_directory",
    "home_directory",
]

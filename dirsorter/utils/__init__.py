"""Utilities module for the directory sorter."""

from .logging_config import setup_logging, get_logger, LoggingConfig
from .exceptions import (
    ErrorCode,
    DirSorterError,
    ConfigurationError,
    DirectoryListError,
    WatchRegistrationError,
    FileHandlingError,
    UnclassifiableFileError,
    DirectoryCreateError,
    MoveError,
    ChannelError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "ErrorCode",
    "DirSorterError",
    "ConfigurationError",
    "DirectoryListError",
    "WatchRegistrationError",
    "FileHandlingError",
    "UnclassifiableFileError",
    "DirectoryCreateError",
    "MoveError",
    "ChannelError",
]

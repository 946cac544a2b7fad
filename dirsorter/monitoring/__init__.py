"""Monitoring module: startup backload and live filesystem watching."""

from .backload import backload, BackloadReport
from .watcher import (
    DirectoryWatcher,
    QueueingEventHandler,
    WatchEvent,
)

__all__ = [
    "backload",
    "BackloadReport",
    "DirectoryWatcher",
    "QueueingEventHandler",
    "WatchEvent",
]

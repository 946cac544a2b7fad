"""
Filesystem Watcher
==================

Watches the target directory (non-recursively) and sorts every file
created in it. Watchdog delivers events from its observer thread into a
queue; a single consumer takes them off one at a time and dispatches
them, so handling is strictly sequential.
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue
from typing import Callable, Optional, Tuple

from watchdog.events import (
    EVENT_TYPE_CREATED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from dirsorter.actions.file_operations import FileSorter
from dirsorter.utils.exceptions import (
    ChannelError,
    DirSorterError,
    WatchRegistrationError,
)
from dirsorter.utils.logging_config import get_logger

logger = get_logger(__name__)

# Put on the queue to close the channel
_CLOSED = object()


@dataclass(frozen=True)
class WatchEvent:
    """A filesystem event as seen by the dispatcher.

    Attributes:
        kind: Watchdog event type ("created", "modified", "moved", ...).
        paths: Every path the event refers to.
        is_directory: Whether the event is about a directory.
    """

    kind: str
    paths: Tuple[Path, ...]
    is_directory: bool = False

    @property
    def is_file_created(self) -> bool:
        """True for file (not directory) creation events."""
        return self.kind == EVENT_TYPE_CREATED and not self.is_directory

    @classmethod
    def from_watchdog(cls, event: FileSystemEvent) -> "WatchEvent":
        """Translate a watchdog event.

        Moved events carry both the source and destination paths.
        """
        paths = [Path(os.fsdecode(event.src_path))]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(Path(os.fsdecode(dest_path)))
        return cls(
            kind=event.event_type,
            paths=tuple(paths),
            is_directory=event.is_directory
        )


class QueueingEventHandler(FileSystemEventHandler):
    """Watchdog handler that forwards every event onto a queue.

    Only translated events travel through the queue. Delivery faults do
    not: a dead observer or emitter is detected by the consumer on its
    poll timeout (see DirectoryWatcher.channel_fault), which is where
    a ChannelError is built and logged.
    """

    def __init__(self, events: Queue):
        super().__init__()
        self.events = events

    def on_any_event(self, event: FileSystemEvent) -> None:
        self.events.put(WatchEvent.from_watchdog(event))


class DirectoryWatcher:
    """Live watch loop over a single directory.

    Usage:
        watcher = DirectoryWatcher(target, sorter)
        watcher.start()   # raises WatchRegistrationError
        watcher.run()     # blocks until stop() or watchdog stops delivering
    """

    def __init__(
        self,
        target_directory: Path,
        sorter: FileSorter,
        poll_interval: float = 1.0,
        observer_factory: Callable[[], object] = Observer
    ):
        """Initialize the watcher.

        Args:
            target_directory: Directory to watch.
            sorter: Sorter invoked for each created file.
            poll_interval: Seconds to wait on the queue before checking
                           that watchdog is still delivering events.
            observer_factory: Builds the watchdog observer.
        """
        self.target_directory = Path(target_directory)
        self.sorter = sorter
        self.poll_interval = poll_interval
        self.events: Queue = Queue()
        self.handler = QueueingEventHandler(self.events)
        self._observer_factory = observer_factory
        self._observer = None
        self._stopping = threading.Event()

    @property
    def is_running(self) -> bool:
        """Return whether the observer is active."""
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Register a non-recursive watch on the target directory.

        Raises:
            WatchRegistrationError: If the directory cannot be watched.
        """
        if not self.target_directory.is_dir():
            raise WatchRegistrationError(
                "Target directory does not exist or is not a directory",
                directory=str(self.target_directory)
            )

        observer = self._observer_factory()
        try:
            observer.schedule(self.handler, str(self.target_directory), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchRegistrationError(
                f"Failed to watch directory: {e}",
                directory=str(self.target_directory),
                cause=e
            )

        self._observer = observer
        logger.info(
            f"Watching '{self.target_directory}' (recursive=False)",
            extra={"directory": str(self.target_directory)}
        )

    def stop(self) -> None:
        """Close the event channel and stop the observer."""
        self._stopping.set()
        self.events.put(_CLOSED)
        self._shutdown_observer()

    def request_stop(self) -> None:
        """Ask run() to return at its next poll.

        Only sets a flag, so it is safe to call from a signal handler.
        """
        self._stopping.set()

    def _shutdown_observer(self) -> None:
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        observer.join(timeout=5.0)
        logger.info("Watcher stopped.", extra={"directory": str(self.target_directory)})

    def run(self) -> None:
        """Consume events until the channel is closed.

        Starts the observer first if start() has not been called. The
        channel closes on stop()/request_stop(), or when the notification
        mechanism dies; the latter is logged as a ChannelError.
        """
        if self._observer is None and not self._stopping.is_set():
            self.start()

        try:
            while True:
                item = self._next_item()
                if item is _CLOSED:
                    break
                try:
                    self.dispatch(item)
                except Exception:
                    logger.exception(f"Error handling event {item}. Skipping event...")
        finally:
            self._shutdown_observer()
        logger.info(
            "Event channel closed, watch ended",
            extra={"directory": str(self.target_directory)}
        )

    def channel_fault(self) -> Optional[ChannelError]:
        """Check whether watchdog can still deliver events.

        The observer thread outlives its per-directory emitters: when the
        watched directory is removed the emitter stops while the observer
        keeps running, so both are checked.

        Returns:
            A ChannelError describing the fault, or None if healthy.
        """
        observer = self._observer
        if observer is None:
            return None
        if not observer.is_alive():
            return ChannelError(
                "Observer thread stopped unexpectedly",
                details={"directory": str(self.target_directory)}
            )
        emitters = list(getattr(observer, "emitters", ()))
        if emitters and not any(emitter.is_alive() for emitter in emitters):
            return ChannelError(
                "Event emitter stopped, directory is no longer watched",
                details={"directory": str(self.target_directory)}
            )
        return None

    def _next_item(self):
        """Block until the next queue item, or close on a dead channel."""
        while True:
            try:
                return self.events.get(timeout=self.poll_interval)
            except Empty:
                if self._stopping.is_set():
                    return _CLOSED
                fault = self.channel_fault()
                if fault is not None:
                    logger.error(
                        f"Unexpected error receiving events: {fault}",
                        extra=fault.log_extra()
                    )
                    return _CLOSED

    def dispatch(self, event: WatchEvent) -> int:
        """Handle one event.

        File creation events are sorted path by path; a failure on one
        path does not prevent the others. All other events are ignored.

        Returns:
            Number of files moved.
        """
        if not event.is_file_created:
            logger.debug(f"Event {event.kind} on {list(map(str, event.paths))} encountered. Skipping...")
            return 0

        moved = 0
        for path in event.paths:
            logger.info(f"Handling file {path}...", extra={"file_path": str(path)})
            try:
                if self.sorter.process(path) is not None:
                    moved += 1
            except DirSorterError as e:
                logger.error(
                    f"Error handling file {path}: {e}. Skipping...",
                    extra={"file_path": str(path), **e.log_extra()}
                )
        return moved

"""
Unit tests for the live watch loop.
"""

import shutil
import sys
import threading
import time

import pytest
from pathlib import Path
from queue import Queue

from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from dirsorter.actions.file_operations import FileSorter
from dirsorter.monitoring.watcher import (
    DirectoryWatcher,
    QueueingEventHandler,
    WatchEvent,
)
from dirsorter.utils.exceptions import (
    ChannelError,
    MoveError,
    WatchRegistrationError,
)


class FakeEmitter:
    """Stands in for a watchdog emitter thread."""

    def __init__(self, alive=True):
        self.alive = alive

    def is_alive(self):
        return self.alive


class FakeObserver:
    """Stands in for watchdog's Observer."""

    def __init__(self, alive=True, fail_on_schedule=False, emitters_alive=True):
        self.alive_after_start = alive
        self.fail_on_schedule = fail_on_schedule
        self.emitters_alive = emitters_alive
        self.emitters = []
        self.scheduled = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        if self.fail_on_schedule:
            raise OSError("inotify watch limit reached")
        self.scheduled.append((handler, path, recursive))
        self.emitters.append(FakeEmitter(alive=self.emitters_alive))

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

    def is_alive(self):
        return self.started and self.alive_after_start and not self.stopped


class RecordingSorter(FileSorter):
    """Sorter that records calls and fails for chosen names."""

    def __init__(self, target_directory, fail_names=()):
        super().__init__(target_directory)
        self.fail_names = set(fail_names)
        self.calls = []

    def handle(self, path):
        self.calls.append(Path(path))
        if Path(path).name in self.fail_names:
            raise MoveError("denied", file_path=str(path))
        return super().handle(path)


def created(*paths):
    return WatchEvent(kind="created", paths=tuple(Path(p) for p in paths))


class TestWatchEvent:
    """Tests for translating watchdog events."""

    def test_file_created(self, tmp_path):
        """Test a file creation event keeps its path."""
        event = WatchEvent.from_watchdog(FileCreatedEvent(str(tmp_path / "a.txt")))

        assert event.kind == "created"
        assert event.paths == (tmp_path / "a.txt",)
        assert event.is_file_created is True

    def test_directory_created(self, tmp_path):
        """Test directory creation is not a file creation."""
        event = WatchEvent.from_watchdog(DirCreatedEvent(str(tmp_path / "png")))

        assert event.is_directory is True
        assert event.is_file_created is False

    def test_moved_carries_both_paths(self, tmp_path):
        """Test moved events report source and destination."""
        event = WatchEvent.from_watchdog(
            FileMovedEvent(str(tmp_path / "a.txt"), str(tmp_path / "txt" / "a.txt"))
        )

        assert event.kind == "moved"
        assert event.paths == (tmp_path / "a.txt", tmp_path / "txt" / "a.txt")


class TestQueueingEventHandler:
    """Tests for the watchdog handler."""

    def test_forwards_events(self, tmp_path):
        """Test every event is put on the queue."""
        events = Queue()
        handler = QueueingEventHandler(events)

        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))
        handler.dispatch(FileModifiedEvent(str(tmp_path / "a.txt")))

        assert events.get_nowait().kind == "created"
        assert events.get_nowait().kind == "modified"
        assert events.empty()


class TestDispatch:
    """Tests for DirectoryWatcher.dispatch."""

    def test_created_event_moves_file(self, tmp_path):
        """Test a created file is sorted."""
        (tmp_path / "photo.png").write_bytes(b"png")
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path))

        moved = watcher.dispatch(created(tmp_path / "photo.png"))

        assert moved == 1
        assert (tmp_path / "png" / "photo.png").exists()

    def test_each_path_handled_once(self, tmp_path):
        """Test a multi-path event handles every path exactly once."""
        names = ["a.txt", "b.md", "c.pdf"]
        for name in names:
            (tmp_path / name).write_text(name)
        sorter = RecordingSorter(tmp_path)
        watcher = DirectoryWatcher(tmp_path, sorter)

        watcher.dispatch(created(*(tmp_path / n for n in names)))

        assert sorter.calls == [tmp_path / n for n in names]

    def test_failure_does_not_block_next_path(self, tmp_path):
        """Test a failure on one path does not stop the following paths."""
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "b.txt").write_text("b")
        sorter = RecordingSorter(tmp_path, fail_names={"a.txt"})
        watcher = DirectoryWatcher(tmp_path, sorter)

        moved = watcher.dispatch(created(tmp_path / "a.txt", tmp_path / "archive", tmp_path / "b.txt"))

        assert moved == 1
        assert (tmp_path / "a.txt").exists()
        assert (tmp_path / "txt" / "b.txt").exists()
        assert len(sorter.calls) == 3

    def test_created_directory_path_is_noop(self, tmp_path):
        """Test a created event pointing at a directory mutates nothing."""
        (tmp_path / "folder.d").mkdir()
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path))

        moved = watcher.dispatch(created(tmp_path / "folder.d"))

        assert moved == 0
        assert (tmp_path / "folder.d").is_dir()
        assert not (tmp_path / "d" / "folder.d").exists()

    @pytest.mark.parametrize("kind", ["modified", "deleted", "moved", "closed"])
    def test_other_events_ignored(self, tmp_path, kind):
        """Test non-creation events are discarded."""
        (tmp_path / "a.txt").write_text("a")
        sorter = RecordingSorter(tmp_path)
        watcher = DirectoryWatcher(tmp_path, sorter)

        watcher.dispatch(WatchEvent(kind=kind, paths=(tmp_path / "a.txt",)))

        assert sorter.calls == []
        assert (tmp_path / "a.txt").exists()

    def test_directory_created_ignored(self, tmp_path):
        """Test directory creation events are discarded."""
        sorter = RecordingSorter(tmp_path)
        watcher = DirectoryWatcher(tmp_path, sorter)

        watcher.dispatch(WatchEvent(kind="created", paths=(tmp_path / "x.y",), is_directory=True))

        assert sorter.calls == []


class TestLifecycle:
    """Tests for start/run/stop."""

    def test_start_schedules_non_recursive_watch(self, tmp_path):
        """Test the observer watches only the target directory."""
        observer = FakeObserver()
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path), observer_factory=lambda: observer)

        watcher.start()

        assert observer.scheduled == [(watcher.handler, str(tmp_path), False)]
        assert watcher.is_running is True
        watcher.stop()
        assert observer.stopped is True

    def test_start_missing_directory(self, tmp_path):
        """Test watching a missing directory is a registration error."""
        missing = tmp_path / "missing"
        watcher = DirectoryWatcher(missing, FileSorter(missing), observer_factory=FakeObserver)

        with pytest.raises(WatchRegistrationError) as exc_info:
            watcher.start()

        assert exc_info.value.fatal is True

    def test_start_schedule_failure(self, tmp_path):
        """Test observer failures are registration errors."""
        watcher = DirectoryWatcher(
            tmp_path,
            FileSorter(tmp_path),
            observer_factory=lambda: FakeObserver(fail_on_schedule=True)
        )

        with pytest.raises(WatchRegistrationError):
            watcher.start()

    def test_run_drains_queue_until_closed(self, tmp_path):
        """Test run handles queued events in order then returns on close."""
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "b.pdf").write_text("b")
        sorter = RecordingSorter(tmp_path)
        watcher = DirectoryWatcher(tmp_path, sorter, poll_interval=0.05, observer_factory=FakeObserver)
        watcher.start()

        watcher.events.put(created(tmp_path / "a.txt"))
        watcher.events.put(WatchEvent(kind="modified", paths=(tmp_path / "b.pdf",)))
        watcher.events.put(created(tmp_path / "b.pdf"))
        watcher.stop()

        watcher.run()

        assert sorter.calls == [tmp_path / "a.txt", tmp_path / "b.pdf"]
        assert (tmp_path / "txt" / "a.txt").exists()
        assert (tmp_path / "pdf" / "b.pdf").exists()

    def test_run_returns_when_observer_dies(self, tmp_path):
        """Test a dead observer closes the channel."""
        watcher = DirectoryWatcher(
            tmp_path,
            FileSorter(tmp_path),
            poll_interval=0.01,
            observer_factory=lambda: FakeObserver(alive=False)
        )

        watcher.run()

        assert watcher.is_running is False

    def test_request_stop_from_other_thread(self, tmp_path):
        """Test request_stop makes run return at the next poll."""
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path), poll_interval=0.01, observer_factory=FakeObserver)
        watcher.start()
        thread = threading.Thread(target=watcher.run, daemon=True)
        thread.start()

        watcher.request_stop()
        thread.join(timeout=5)

        assert not thread.is_alive()


    def test_channel_fault_healthy(self, tmp_path):
        """Test a running observer with live emitters reports no fault."""
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path), observer_factory=FakeObserver)
        watcher.start()

        assert watcher.channel_fault() is None
        watcher.stop()

    def test_channel_fault_dead_emitter(self, tmp_path):
        """Test a stopped emitter is a channel fault even if the observer lives."""
        watcher = DirectoryWatcher(
            tmp_path,
            FileSorter(tmp_path),
            observer_factory=lambda: FakeObserver(emitters_alive=False)
        )
        watcher.start()

        fault = watcher.channel_fault()

        assert isinstance(fault, ChannelError)
        assert fault.details["directory"] == str(tmp_path)
        watcher.stop()

    def test_run_returns_when_emitter_dies(self, tmp_path):
        """Test a dead emitter closes the channel."""
        watcher = DirectoryWatcher(
            tmp_path,
            FileSorter(tmp_path),
            poll_interval=0.01,
            observer_factory=lambda: FakeObserver(emitters_alive=False)
        )
        thread = threading.Thread(target=watcher.run, daemon=True)
        thread.start()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert watcher.is_running is False


class TestLiveWatch:
    """Tests against a real watchdog observer."""

    def test_new_file_is_sorted(self, tmp_path):
        """Test a file created while watching lands in its bucket."""
        watcher = DirectoryWatcher(tmp_path, FileSorter(tmp_path), poll_interval=0.05)
        watcher.start()
        thread = threading.Thread(target=watcher.run, daemon=True)
        thread.start()

        try:
            (tmp_path / "photo.png").write_bytes(b"\x89PNG")
            destination = tmp_path / "png" / "photo.png"
            deadline = time.time() + 10
            while not destination.exists() and time.time() < deadline:
                time.sleep(0.05)

            assert destination.exists()
            assert not (tmp_path / "photo.png").exists()
        finally:
            watcher.stop()
            thread.join(timeout=5)

        assert not thread.is_alive()

    @pytest.mark.skipif(
        not sys.platform.startswith("linux"),
        reason="inotify stops the emitter when the watched directory is removed"
    )
    def test_removed_target_ends_watch(self, tmp_path):
        """Test run returns once the watched directory disappears."""
        inbox = tmp_path / "inbox"
        inbox.mkdir()
        watcher = DirectoryWatcher(inbox, FileSorter(inbox), poll_interval=0.05)
        watcher.start()
        thread = threading.Thread(target=watcher.run, daemon=True)
        thread.start()

        try:
            shutil.rmtree(inbox)
            thread.join(timeout=10)

            assert not thread.is_alive()
            assert watcher.is_running is False
        finally:
            if thread.is_alive():
                watcher.stop()
                thread.join(timeout=5)

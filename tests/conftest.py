"""Shared fixtures and helpers for the pollwatch test suite."""

import os
import threading
from pathlib import Path

import pytest
from pollwatch.listeners import Listener


class RecordingListener(Listener):
    """Listener that records every callback as ``(name, path)``."""

    def __init__(self, log=None):
        self.events = log if log is not None else []
        self.hooks = []
        self.received = threading.Event()
        self._lock = threading.Lock()

    def _record(self, name, path):
        with self._lock:
            self.events.append((name, Path(path)))
        self.received.set()

    def on_start(self, observer):
        self.hooks.append(("start", observer.root))

    def on_stop(self, observer):
        self.hooks.append(("stop", observer.root))

    def on_directory_create(self, path):
        self._record("dir_create", path)

    def on_directory_delete(self, path):
        self._record("dir_delete", path)

    def on_file_create(self, path):
        self._record("file_create", path)

    def on_file_change(self, path):
        self._record("file_change", path)

    def on_file_delete(self, path):
        self._record("file_delete", path)


def write_file(path: Path, content: str = "data", mtime: float = 1_600_000_000.0) -> Path:
    """Write ``content`` and pin the modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


def bump_mtime(path: Path, seconds: float = 10.0) -> None:
    """Advance a file's modification time without touching its content."""
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + seconds))


@pytest.fixture
def recorder():
    """A fresh recording listener."""
    return RecordingListener()


@pytest.fixture
def root(tmp_path):
    """An existing, empty watched directory."""
    watched = tmp_path / "watched"
    watched.mkdir()
    return watched

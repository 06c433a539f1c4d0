"""Listener interface and the default textual change reporter."""
from __future__ import annotations

import os
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, TextIO, Tuple

from .events import EntryKind, EventType, FileEvent

if TYPE_CHECKING:  # pragma: no cover
    from .observer import Observer


class Listener:
    """Consumer of change notifications.

    Every callback is a no-op, so subclasses override only what they need.
    One listener may be registered on many observers, including observers
    driven by different monitors, in which case its callbacks can run
    concurrently.
    """

    def on_start(self, observer: "Observer") -> None:
        """Called before an observer delivers the events of one check."""

    def on_directory_create(self, path: Path) -> None:
        pass

    def on_directory_delete(self, path: Path) -> None:
        pass

    def on_file_create(self, path: Path) -> None:
        pass

    def on_file_change(self, path: Path) -> None:
        pass

    def on_file_delete(self, path: Path) -> None:
        pass

    def on_stop(self, observer: "Observer") -> None:
        """Called after an observer delivered the events of one check."""


_CALLBACKS: Dict[Tuple[EventType, EntryKind], str] = {
    (EventType.CREATED, EntryKind.DIRECTORY): "on_directory_create",
    (EventType.DELETED, EntryKind.DIRECTORY): "on_directory_delete",
    (EventType.CREATED, EntryKind.FILE): "on_file_create",
    (EventType.MODIFIED, EntryKind.FILE): "on_file_change",
    (EventType.DELETED, EntryKind.FILE): "on_file_delete",
}

EVENT_CODES: Dict[EventType, str] = {
    EventType.CREATED: "C",
    EventType.MODIFIED: "M",
    EventType.DELETED: "D",
}


def dispatch(listener: Listener, event: FileEvent) -> None:
    """Invoke the callback of ``listener`` that matches ``event``."""

    name = _CALLBACKS.get((event.event_type, event.kind))
    if name is None:
        raise ValueError(f"No listener callback for {event.kind.value} {event.event_type.value}")
    getattr(listener, name)(event.path)


def format_line(event_type: EventType, path: Path) -> str:
    return f"{EVENT_CODES[event_type]} {os.path.realpath(path)}"


def format_event(event: FileEvent) -> str:
    """Render ``event`` as ``C <path>``, ``M <path>`` or ``D <path>``."""

    return format_line(event.event_type, event.path)


class ChangeReporter(Listener):
    """Writes one line per change to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.Lock()

    def on_directory_create(self, path: Path) -> None:
        self._write(EventType.CREATED, path)

    def on_directory_delete(self, path: Path) -> None:
        self._write(EventType.DELETED, path)

    def on_file_create(self, path: Path) -> None:
        self._write(EventType.CREATED, path)

    def on_file_change(self, path: Path) -> None:
        self._write(EventType.MODIFIED, path)

    def on_file_delete(self, path: Path) -> None:
        self._write(EventType.DELETED, path)

    def _write(self, event_type: EventType, path: Path) -> None:
        line = format_line(event_type, path)
        stream = self._stream if self._stream is not None else sys.stdout
        with self._lock:
            stream.write(line + "\n")
            stream.flush()

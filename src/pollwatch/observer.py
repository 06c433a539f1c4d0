"""Per-root observers: snapshot diffing and listener fan-out."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from .errors import ListenerCallbackError
from .events import EntryKind, EventType, FileEvent
from .listeners import Listener, dispatch
from .snapshot import Predicate, Snapshot, accept_all, take

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[ListenerCallbackError], None]


class Observer:
    """Watches one root path and reports its changes to listeners.

    The first scan only records a baseline. Each later call to
    :meth:`check_and_notify` compares a fresh snapshot with the stored one,
    hands every change to every listener in registration order and then
    keeps the fresh snapshot, whether or not a listener failed.
    """

    def __init__(
        self,
        root: Union[str, Path],
        predicate: Optional[Predicate] = None,
        listeners: Iterable[Listener] = (),
        *,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._root = Path(os.path.abspath(root))
        self._predicate = predicate or accept_all
        self._error_handler = error_handler
        self._snapshot: Optional[Snapshot] = None
        self._listeners: List[Listener] = []
        for listener in listeners:
            self.add_listener(listener)

    def __repr__(self) -> str:
        return f"Observer(root={str(self._root)!r})"

    @property
    def root(self) -> Path:
        return self._root

    @property
    def predicate(self) -> Predicate:
        return self._predicate

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return tuple(self._listeners)

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def initialize(self) -> None:
        """Record the baseline snapshot without emitting events."""

        self._snapshot = take(self._root, self._predicate)
        if not self._snapshot.exists:
            logger.warning("Root path %s does not exist yet", self._root)
        logger.debug("Baseline for %s holds %s entries", self._root, self._snapshot.count())

    def check_and_notify(self) -> List[FileEvent]:
        """Rescan the root, notify listeners of changes and return them."""

        new_snapshot = take(self._root, self._predicate)
        previous = self._snapshot
        if previous is None:
            self._snapshot = new_snapshot
            return []

        events: List[FileEvent] = []
        try:
            events = diff(previous, new_snapshot)
            self._notify(events)
        finally:
            self._snapshot = new_snapshot
        if events:
            logger.debug("%s changes under %s", len(events), self._root)
        return events

    def _notify(self, events: List[FileEvent]) -> None:
        listeners = list(self._listeners)
        for listener in listeners:
            self._safe_invoke(listener, "on_start", listener.on_start, self)
        for event in events:
            for listener in listeners:
                self._safe_invoke(listener, event, dispatch, listener, event)
        for listener in listeners:
            self._safe_invoke(listener, "on_stop", listener.on_stop, self)

    def _safe_invoke(self, listener: Listener, subject: Any, func: Callable[..., None], *args: Any) -> None:
        try:
            func(*args)
        except Exception as exc:
            logger.exception("Listener %r failed for %s", listener, subject)
            self._report_error(ListenerCallbackError(listener, subject, exc))

    def _report_error(self, error: ListenerCallbackError) -> None:
        if self._error_handler is None:
            return
        try:
            self._error_handler(error)
        except Exception:
            logger.exception("Observer error handler failed")


@dataclass
class _Changes:
    deleted: List[FileEvent] = field(default_factory=list)
    modified: List[FileEvent] = field(default_factory=list)
    created: List[FileEvent] = field(default_factory=list)

    def ordered(self) -> List[FileEvent]:
        return self.deleted + self.modified + self.created


def diff(old: Snapshot, new: Snapshot) -> List[FileEvent]:
    """Compare two snapshots of the same root.

    Deletions come first (children before their parent), then file
    modifications, then creations (parent before its children). Each group
    follows a walk with children sorted by name. Directories are never
    reported as modified; an entry that changed kind is deleted and
    re-created. Files and directories share these groups, so the
    parent-before-child order takes the place of listing every directory
    event before every file event: a new file ``a.txt`` and a new
    directory ``b`` are reported in name order.
    """

    changes = _Changes()
    _compare(old, new, changes)
    return changes.ordered()


def _compare(old: Snapshot, new: Snapshot, changes: _Changes) -> None:
    if not old.exists:
        if new.exists:
            _record_created(new, changes)
        return
    if not new.exists:
        _record_deleted(old, changes)
        return
    if old.kind is not new.kind:
        _record_deleted(old, changes)
        _record_created(new, changes)
        return

    if new.kind is EntryKind.FILE:
        if old.mtime != new.mtime or old.size != new.size:
            changes.modified.append(_event(EventType.MODIFIED, new))
        return

    old_children = old.child_map()
    new_children = new.child_map()
    for name in sorted(set(old_children) | set(new_children)):
        old_child = old_children.get(name) or Snapshot.missing(old.path / name)
        new_child = new_children.get(name) or Snapshot.missing(new.path / name)
        _compare(old_child, new_child, changes)


def _record_created(entry: Snapshot, changes: _Changes) -> None:
    changes.created.append(_event(EventType.CREATED, entry))
    for child in entry.children:
        _record_created(child, changes)


def _record_deleted(entry: Snapshot, changes: _Changes) -> None:
    for child in entry.children:
        _record_deleted(child, changes)
    changes.deleted.append(_event(EventType.DELETED, entry))


def _event(event_type: EventType, entry: Snapshot) -> FileEvent:
    size = None if entry.is_directory else entry.size
    return FileEvent(event_type=event_type, path=entry.path, kind=entry.kind, size=size, mtime=entry.mtime)

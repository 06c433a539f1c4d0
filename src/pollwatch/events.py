"""Event models shared across monitor components."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class EntryKind(str, Enum):
    """What a snapshot entry is on disk."""

    FILE = "file"
    DIRECTORY = "directory"


class EventType(str, Enum):
    """Types of filesystem changes emitted by an observer."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileEvent:
    """A single change observed under a watched root."""

    event_type: EventType
    path: Path
    kind: EntryKind = EntryKind.FILE
    size: Optional[int] = None
    mtime: Optional[float] = None

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def __str__(self) -> str:
        return f"{self.kind.value} {self.event_type.value}: {self.path}"

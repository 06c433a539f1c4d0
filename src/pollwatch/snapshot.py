"""Point-in-time recursive snapshots of a watched path."""
from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from .errors import FileSystemReadError
from .events import EntryKind

logger = logging.getLogger(__name__)

Predicate = Callable[[Path], bool]


def accept_all(path: Path) -> bool:
    """Default inclusion predicate."""

    return True


@dataclass(frozen=True)
class Snapshot:
    """State of one entry, and for directories its whole subtree.

    ``children`` holds one listing of the directory, sorted by name. It is
    empty for files and for entries that do not exist.
    """

    path: Path
    kind: EntryKind = EntryKind.FILE
    mtime: float = 0.0
    size: int = 0
    exists: bool = True
    children: Tuple["Snapshot", ...] = ()

    @classmethod
    def missing(cls, path: Path) -> "Snapshot":
        return cls(path=path, exists=False)

    @property
    def is_directory(self) -> bool:
        return self.exists and self.kind is EntryKind.DIRECTORY

    def child_map(self) -> Dict[str, "Snapshot"]:
        return {child.path.name: child for child in self.children}

    def walk(self) -> Iterator["Snapshot"]:
        """Yield this entry and its descendants, parents first."""

        if not self.exists:
            return
        yield self
        for child in self.children:
            yield from child.walk()

    def count(self) -> int:
        return sum(1 for _ in self.walk())


def take(root: Union[str, Path], predicate: Optional[Predicate] = None) -> Snapshot:
    """Snapshot ``root`` and everything below it that ``predicate`` accepts.

    Excluded entries are left out of the tree and never recursed into. The
    root itself is not filtered. Entries that cannot be read are treated as
    absent; the walk is not atomic if the tree changes while it runs.
    """

    root_path = Path(os.path.abspath(root))
    accept = predicate or accept_all
    try:
        root_stat = _stat(root_path, follow_symlinks=True)
    except FileSystemReadError as exc:
        logger.debug("Root %s unavailable: %s", root_path, exc.cause)
        return Snapshot.missing(root_path)
    return _build(root_path, root_stat, accept)


def _build(path: Path, st: os.stat_result, accept: Predicate) -> Snapshot:
    if not stat.S_ISDIR(st.st_mode):
        return Snapshot(
            path=path,
            kind=EntryKind.FILE,
            mtime=st.st_mtime,
            size=st.st_size,
        )

    try:
        names = _list_directory(path)
    except FileSystemReadError as exc:
        logger.debug("Treating %s as empty: %s", path, exc.cause)
        names = []

    children: List[Snapshot] = []
    for name in names:
        child_path = path / name
        if not accept(child_path):
            continue
        try:
            child_stat = _stat(child_path, follow_symlinks=False)
        except FileSystemReadError as exc:
            logger.debug("Skipping %s: %s", child_path, exc.cause)
            continue
        children.append(_build(child_path, child_stat, accept))

    return Snapshot(
        path=path,
        kind=EntryKind.DIRECTORY,
        mtime=st.st_mtime,
        children=tuple(children),
    )


def _stat(path: Path, *, follow_symlinks: bool) -> os.stat_result:
    try:
        return os.stat(path, follow_symlinks=follow_symlinks)
    except OSError as exc:
        raise FileSystemReadError(path, exc) from exc


def _list_directory(path: Path) -> List[str]:
    try:
        return sorted(os.listdir(path))
    except OSError as exc:
        raise FileSystemReadError(path, exc) from exc

"""Unit tests for taking snapshots."""

import os
from pathlib import Path

import pytest
from conftest import write_file
from pollwatch import snapshot as snapshot_module
from pollwatch.errors import FileSystemReadError
from pollwatch.events import EntryKind
from pollwatch.snapshot import Snapshot, take


class TestTake:
    """Test cases for take()."""

    def test_missing_root(self, tmp_path):
        """Test that a missing root is tagged non-existent."""
        snap = take(tmp_path / "nope")

        assert snap.exists is False
        assert snap.children == ()
        assert snap.is_directory is False
        assert list(snap.walk()) == []

    def test_tree_structure(self, root):
        """Test kinds, sizes and sorted children."""
        write_file(root / "b.txt", content="12345", mtime=1_500_000_000.0)
        write_file(root / "a" / "inner.txt")
        (root / "c").mkdir()

        snap = take(root)

        assert snap.exists
        assert snap.is_directory
        assert [child.path.name for child in snap.children] == ["a", "b.txt", "c"]
        b_entry = snap.child_map()["b.txt"]
        assert b_entry.kind is EntryKind.FILE
        assert b_entry.size == 5
        assert b_entry.mtime == 1_500_000_000.0
        assert snap.child_map()["a"].children[0].path == root / "a" / "inner.txt"
        assert snap.count() == 5

    def test_relative_root_is_made_absolute(self, root, monkeypatch):
        """Test that snapshot paths are absolute."""
        monkeypatch.chdir(root.parent)
        snap = take(root.name)
        assert snap.path == Path(os.path.abspath(root.name))
        assert snap.path.is_absolute()

    def test_predicate_excludes_and_prunes(self, root):
        """Test that rejected entries are neither included nor walked."""
        write_file(root / "keep.txt")
        write_file(root / "skip" / "hidden.txt")
        visited = []

        def predicate(path):
            visited.append(path)
            return path.name != "skip"

        snap = take(root, predicate)

        assert [child.path.name for child in snap.children] == ["keep.txt"]
        assert root / "skip" / "hidden.txt" not in visited

    def test_root_is_not_filtered(self, root):
        """Test that the predicate only applies below the root."""
        snap = take(root, lambda path: False)
        assert snap.exists
        assert snap.children == ()

    def test_unreadable_child_is_absent(self, root, monkeypatch):
        """Test that a stat failure on a child drops that child only."""
        write_file(root / "ok.txt")
        write_file(root / "locked.txt")
        real_stat = snapshot_module._stat

        def flaky_stat(path, *, follow_symlinks):
            if path.name == "locked.txt":
                raise FileSystemReadError(path, PermissionError("denied"))
            return real_stat(path, follow_symlinks=follow_symlinks)

        monkeypatch.setattr(snapshot_module, "_stat", flaky_stat)

        snap = take(root)

        assert [child.path.name for child in snap.children] == ["ok.txt"]

    def test_unlistable_directory_has_no_children(self, root, monkeypatch):
        """Test that a listing failure keeps the directory but empties it."""
        write_file(root / "sub" / "f.txt")
        real_list = snapshot_module._list_directory

        def flaky_list(path):
            if path.name == "sub":
                raise FileSystemReadError(path, PermissionError("denied"))
            return real_list(path)

        monkeypatch.setattr(snapshot_module, "_list_directory", flaky_list)

        snap = take(root)

        sub = snap.child_map()["sub"]
        assert sub.is_directory
        assert sub.children == ()

    def test_read_errors_wrap_os_errors(self, tmp_path):
        """Test the FileSystemReadError raised by the internal helpers."""
        with pytest.raises(FileSystemReadError) as exc_info:
            snapshot_module._list_directory(tmp_path / "missing")

        assert exc_info.value.path == tmp_path / "missing"
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinks_are_not_followed(self, root):
        """Test that a link back to the root does not recurse."""
        try:
            os.symlink(root, root / "loop")
        except OSError:
            pytest.skip("cannot create symlinks here")

        snap = take(root)

        loop = snap.child_map()["loop"]
        assert loop.kind is EntryKind.FILE
        assert loop.children == ()


class TestSnapshot:
    """Test cases for the Snapshot value type."""

    def test_missing_factory(self):
        """Test Snapshot.missing()."""
        snap = Snapshot.missing(Path("/gone"))
        assert snap.exists is False
        assert snap.count() == 0

    def test_snapshots_are_immutable(self):
        """Test that snapshots cannot be mutated."""
        snap = Snapshot(path=Path("/w"))
        with pytest.raises(AttributeError):
            snap.mtime = 3.0

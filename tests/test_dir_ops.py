"""Tests for DirOps — mkdir, rmdir, readdir, stat, get_uri, reindex."""

from __future__ import annotations

import pytest

from handlefs.fs import dir_ops
from handlefs.fs.exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    NotDirectoryError,
    PathNotFoundError,
)
from handlefs.fs.file_ops import write_file
from handlefs.fs.types import Encoding, EntryKind

# ---------------------------------------------------------------------------
# mkdir
# ---------------------------------------------------------------------------


class TestMkdir:
    async def test_nested(self, grant, root):
        await dir_ops.mkdir(grant, "a/b/c", "DOCS")
        assert (root / "DOCS" / "a" / "b" / "c").is_dir()
        paths = await grant.store.all_paths()
        assert {"/DOCS", "/DOCS/a", "/DOCS/a/b", "/DOCS/a/b/c"} <= paths

    async def test_existing_is_noop(self, grant):
        await dir_ops.mkdir(grant, "a", "DOCS")
        before = await dir_ops.stat(grant, "a", "DOCS")
        await dir_ops.mkdir(grant, "a", "DOCS")
        after = await dir_ops.stat(grant, "a", "DOCS")
        assert after.created_at == before.created_at

    async def test_non_recursive_still_creates_ancestors(self, grant, root):
        await dir_ops.mkdir(grant, "x/y", "DOCS", recursive=False)
        assert (root / "DOCS" / "x" / "y").is_dir()

    async def test_file_in_the_way(self, grant):
        await write_file(grant, "f.txt", "x", "DOCS", Encoding.UTF8)
        with pytest.raises(NotDirectoryError):
            await dir_ops.mkdir(grant, "f.txt/sub", "DOCS")

    async def test_invalid_directory_name(self, grant):
        with pytest.raises(InvalidPathError):
            await dir_ops.mkdir(grant, "a", "..")


# ---------------------------------------------------------------------------
# rmdir
# ---------------------------------------------------------------------------


class TestRmdir:
    async def test_empty(self, grant, root):
        await dir_ops.mkdir(grant, "empty", "DOCS")
        await dir_ops.rmdir(grant, "empty", "DOCS")
        assert not (root / "DOCS" / "empty").exists()
        assert await grant.store.get("/DOCS/empty") is None

    async def test_not_empty_then_recursive(self, grant, root):
        await write_file(grant, "tree/a.txt", "a", "DOCS", Encoding.UTF8)
        await write_file(grant, "tree/sub/b.txt", "b", "DOCS", Encoding.UTF8)

        with pytest.raises(DirectoryNotEmptyError):
            await dir_ops.rmdir(grant, "tree", "DOCS")
        assert (root / "DOCS" / "tree" / "a.txt").exists()

        await dir_ops.rmdir(grant, "tree", "DOCS", recursive=True)
        with pytest.raises(PathNotFoundError):
            await dir_ops.stat(grant, "tree", "DOCS")
        paths = await grant.store.all_paths()
        assert not any(p.startswith("/DOCS/tree") for p in paths)

    async def test_drops_cache_only_descendants(self, grant):
        await write_file(grant, "tree/a.txt", "a", "DOCS", Encoding.UTF8)
        await write_file(grant, "treehouse.txt", "t", "DOCS", Encoding.UTF8)
        await grant.store.put_directories(["/DOCS/tree/ghost", "/DOCS/tree/ghost/deeper"])

        await dir_ops.rmdir(grant, "tree", "DOCS", recursive=True)

        paths = await grant.store.all_paths()
        assert paths == {"/DOCS", "/DOCS/treehouse.txt"}

    async def test_missing(self, grant):
        with pytest.raises(PathNotFoundError):
            await dir_ops.rmdir(grant, "nope", "DOCS")

    async def test_file(self, grant):
        await write_file(grant, "f.txt", "x", "DOCS", Encoding.UTF8)
        with pytest.raises(NotDirectoryError):
            await dir_ops.rmdir(grant, "f.txt", "DOCS")

    async def test_granted_root_refused(self, grant):
        with pytest.raises(InvalidPathError):
            await dir_ops.rmdir(grant, "", recursive=True)


# ---------------------------------------------------------------------------
# readdir / stat / get_uri
# ---------------------------------------------------------------------------


class TestReaddir:
    async def test_direct_children(self, grant):
        await write_file(grant, "b.txt", "bee", "DOCS", Encoding.UTF8)
        await write_file(grant, "sub/deep.txt", "x", "DOCS", Encoding.UTF8)
        await write_file(grant, "a.txt", "a", "DOCS", Encoding.UTF8)

        entries = await dir_ops.readdir(grant, "", "DOCS")
        assert [e.name for e in entries] == ["a.txt", "b.txt", "sub"]
        by_name = {e.name: e for e in entries}
        assert by_name["b.txt"].uri == "/DOCS/b.txt"
        assert by_name["b.txt"].size == 3
        assert by_name["b.txt"].kind is EntryKind.FILE
        assert by_name["sub"].uri == "/DOCS/sub/"
        assert by_name["sub"].kind is EntryKind.DIRECTORY
        assert by_name["sub"].size == 0

    async def test_untracked_entries_listed(self, grant, root):
        (root / "DOCS").mkdir()
        (root / "DOCS" / "ext.md").write_bytes(b"12345")
        entries = await dir_ops.readdir(grant, "", "DOCS")
        assert [(e.name, e.size) for e in entries] == [("ext.md", 5)]
        assert entries[0].created_at is not None

    async def test_empty(self, grant):
        await dir_ops.mkdir(grant, "empty", "DOCS")
        assert await dir_ops.readdir(grant, "empty", "DOCS") == []

    async def test_missing(self, grant):
        with pytest.raises(PathNotFoundError):
            await dir_ops.readdir(grant, "nope", "DOCS")

    async def test_file(self, grant):
        await write_file(grant, "f.txt", "x", "DOCS", Encoding.UTF8)
        with pytest.raises(NotDirectoryError):
            await dir_ops.readdir(grant, "f.txt", "DOCS")


class TestStat:
    async def test_file(self, grant):
        await write_file(grant, "f.txt", "hello", "DOCS", Encoding.UTF8)
        info = await dir_ops.stat(grant, "f.txt", "DOCS")
        assert info.kind is EntryKind.FILE
        assert info.is_directory is False
        assert info.size == 5
        assert info.uri == "/DOCS/f.txt"
        assert info.created_at <= info.modified_at

    async def test_directory(self, grant):
        await dir_ops.mkdir(grant, "sub", "DOCS")
        info = await dir_ops.stat(grant, "sub", "DOCS")
        assert info.is_directory is True
        assert info.size == 0
        assert info.uri == "/DOCS/sub/"

    async def test_missing(self, grant):
        with pytest.raises(PathNotFoundError):
            await dir_ops.stat(grant, "nope", "DOCS")


class TestGetUri:
    async def test_tracked_file(self, grant):
        await write_file(grant, "f.txt", "x", "DOCS", Encoding.UTF8)
        assert await dir_ops.get_uri(grant, "f.txt", "DOCS") == "/DOCS/f.txt"

    async def test_tracked_directory(self, grant):
        await dir_ops.mkdir(grant, "sub", "DOCS")
        assert await dir_ops.get_uri(grant, "sub", "DOCS") == "/DOCS/sub/"

    async def test_untracked_directory(self, grant, root):
        (root / "DOCS" / "ext").mkdir(parents=True)
        assert await dir_ops.get_uri(grant, "ext", "DOCS") == "/DOCS/ext/"

    async def test_missing_falls_back_to_requested_path(self, grant):
        assert await dir_ops.get_uri(grant, "a/../b.txt", "DOCS") == "/DOCS/b.txt"

    async def test_device_like_name(self, grant):
        assert await dir_ops.get_uri(grant, "aux.txt", "DOCS") == "/DOCS/aux.txt"


# ---------------------------------------------------------------------------
# reindex
# ---------------------------------------------------------------------------


class TestReindex:
    async def test_brings_cache_in_line(self, grant, root):
        await write_file(grant, "a.txt", "a", "DOCS", Encoding.UTF8)
        (root / "DOCS" / "a.txt").unlink()
        (root / "DOCS" / "ext").mkdir()
        (root / "DOCS" / "ext" / "n.md").write_bytes(b"note")

        result = await dir_ops.reindex(grant)
        assert result.created == 2
        assert result.deleted == 1

        record = await grant.store.get("/DOCS/ext/n.md")
        assert record is not None
        assert record.encoding is None
        assert record.size == 4
        assert await grant.store.get("/DOCS/a.txt") is None

    async def test_second_pass_is_clean(self, grant):
        await write_file(grant, "a/b.txt", "x", "DOCS", Encoding.UTF8)
        await dir_ops.reindex(grant)
        result = await dir_ops.reindex(grant)
        assert (result.created, result.deleted) == (0, 0)

    async def test_rebuilds_after_clear(self, grant):
        await write_file(grant, "a/b.txt", "x", "DOCS", Encoding.UTF8)
        await grant.store.clear()
        result = await dir_ops.reindex(grant)
        assert result.created == 3
        assert await grant.store.all_paths() == {"/DOCS", "/DOCS/a", "/DOCS/a/b.txt"}

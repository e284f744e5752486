"""Handle tree — capabilities over the granted root and the segment walker.

A handle is an immutable capability for one location under a granted
root directory. Handles are only obtained by walking from the root one
segment at a time; every segment is its own suspend point and nothing
is cached between calls.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    IsDirectoryError,
    NotDirectoryError,
    PathNotFoundError,
    PermissionDeniedError,
    StorageError,
)
from .types import EntryKind
from .utils import segments

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import TypeVar

    T = TypeVar("T")

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".handlefs-tmp-"


def _os_error(e: OSError, path: str) -> Exception:
    """Map an OSError raised by disk access to the handlefs taxonomy."""
    if isinstance(e, FileNotFoundError):
        return PathNotFoundError(f"Not found: {path}")
    if isinstance(e, IsADirectoryError):
        return IsDirectoryError(f"Path is a directory: {path}")
    if isinstance(e, NotADirectoryError):
        return NotDirectoryError(f"Not a directory: {path}")
    if e.errno in (errno.ENOTEMPTY, errno.EEXIST) and os.path.isdir(e.filename or ""):
        return DirectoryNotEmptyError(f"Folder is not empty: {path}")
    if isinstance(e, PermissionError):
        return PermissionDeniedError(f"Permission denied: {path}")
    logger.error("Disk access failed for %s: %s", path, e, exc_info=True)
    return StorageError(f"Disk access failed for {path}: {e}")


async def _run(fn: Callable[[], T], path: str) -> T:
    try:
        return await asyncio.to_thread(fn)
    except OSError as e:
        raise _os_error(e, path) from e


def _check_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\x00" in name:
        raise InvalidPathError(f"Invalid entry name: {name!r}")


@dataclass(frozen=True)
class Handle:
    """Capability for one location under a granted root."""

    root: Path
    parts: tuple[str, ...] = ()

    kind = EntryKind.FILE

    @property
    def name(self) -> str:
        return self.parts[-1] if self.parts else ""

    @property
    def path(self) -> str:
        """Full path of this handle, leading slash."""
        return "/" + "/".join(self.parts)

    @property
    def disk_path(self) -> Path:
        return self.root.joinpath(*self.parts)

    async def stat(self) -> os.stat_result:
        return await _run(self.disk_path.stat, self.path)


@dataclass(frozen=True)
class FileHandle(Handle):
    """Capability for a file."""

    kind = EntryKind.FILE

    async def read_bytes(self) -> bytes:
        return await _run(self.disk_path.read_bytes, self.path)

    async def write_bytes(self, data: bytes, temp_prefix: str = TEMP_PREFIX) -> None:
        """Replace the file content atomically (temp file + rename)."""
        target = self.disk_path

        def _do_write() -> None:
            fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=temp_prefix)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                Path(tmp_path).replace(target)
            except Exception:
                tmp = Path(tmp_path)
                if tmp.exists():
                    tmp.unlink()
                raise

        await _run(_do_write, self.path)


@dataclass(frozen=True)
class DirectoryHandle(Handle):
    """Capability for a directory."""

    kind = EntryKind.DIRECTORY

    @classmethod
    def open_root(cls, root: str | Path) -> DirectoryHandle:
        """Wrap a granted root directory."""
        resolved = Path(root).expanduser().resolve()
        if not resolved.exists():
            raise PathNotFoundError(f"Root directory does not exist: {resolved}")
        if not resolved.is_dir():
            raise NotDirectoryError(f"Root path is not a directory: {resolved}")
        return cls(root=resolved)

    def _child(self, name: str) -> tuple[Path, tuple[str, ...]]:
        _check_name(name)
        parts = (*self.parts, name)
        child = self.root.joinpath(*parts)
        return child, parts

    async def get_directory_handle(self, name: str, *, create: bool = False) -> DirectoryHandle:
        """Acquire (or create) the child directory *name*."""
        child, parts = self._child(name)
        vpath = "/" + "/".join(parts)

        def _resolve() -> bool:
            if child.is_symlink():
                raise PermissionDeniedError(f"Symlinks not allowed: {vpath}")
            if child.is_dir():
                return False
            if child.exists():
                raise NotDirectoryError(f"Not a directory: {vpath}")
            if not create:
                raise PathNotFoundError(f"Not found: {vpath}")
            child.mkdir(exist_ok=True)
            return True

        if await _run(_resolve, vpath):
            logger.debug("Created directory %s", vpath)
        return DirectoryHandle(root=self.root, parts=parts)

    async def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:
        """Acquire (or create, empty) the child file *name*."""
        child, parts = self._child(name)
        vpath = "/" + "/".join(parts)

        def _resolve() -> None:
            if child.is_symlink():
                raise PermissionDeniedError(f"Symlinks not allowed: {vpath}")
            if child.is_dir():
                raise IsDirectoryError(f"Path is a directory: {vpath}")
            if child.exists():
                return
            if not create:
                raise PathNotFoundError(f"Not found: {vpath}")
            child.touch(exist_ok=True)

        await _run(_resolve, vpath)
        return FileHandle(root=self.root, parts=parts)

    async def get_handle(self, name: str) -> Handle:
        """Acquire the child *name* as whichever kind exists."""
        child, parts = self._child(name)
        vpath = "/" + "/".join(parts)

        def _kind() -> EntryKind:
            if child.is_symlink():
                raise PermissionDeniedError(f"Symlinks not allowed: {vpath}")
            if child.is_dir():
                return EntryKind.DIRECTORY
            if child.exists():
                return EntryKind.FILE
            raise PathNotFoundError(f"Not found: {vpath}")

        kind = await _run(_kind, vpath)
        if kind is EntryKind.DIRECTORY:
            return DirectoryHandle(root=self.root, parts=parts)
        return FileHandle(root=self.root, parts=parts)

    async def entries(self, temp_prefix: str = TEMP_PREFIX) -> list[Handle]:
        """Direct children, sorted by name. Temp files and symlinks are skipped."""

        def _scan() -> list[tuple[str, bool]]:
            items = []
            with os.scandir(self.disk_path) as it:
                for entry in it:
                    if entry.name.startswith(temp_prefix) or entry.is_symlink():
                        continue
                    items.append((entry.name, entry.is_dir()))
            items.sort()
            return items

        items = await _run(_scan, self.path)
        return [
            (DirectoryHandle if is_dir else FileHandle)(root=self.root, parts=(*self.parts, name))
            for name, is_dir in items
        ]

    async def remove_entry(self, name: str) -> None:
        """Remove the child *name*: a file, or an empty directory."""
        child, parts = self._child(name)
        vpath = "/" + "/".join(parts)

        def _remove() -> None:
            if child.is_dir() and not child.is_symlink():
                child.rmdir()
            else:
                child.unlink()

        await _run(_remove, vpath)


# =============================================================================
# Walker
# =============================================================================


async def resolve_directory(
    root: DirectoryHandle,
    path: str,
    *,
    create: bool = False,
    created: list[str] | None = None,
) -> DirectoryHandle:
    """Walk *path* from *root* one directory segment at a time.

    With ``create`` missing segments are created, and the full path of
    every directory created is appended to *created*.
    """
    handle = root
    for name in segments(path):
        if not create:
            handle = await handle.get_directory_handle(name)
            continue
        try:
            handle = await handle.get_directory_handle(name)
        except PathNotFoundError:
            handle = await handle.get_directory_handle(name, create=True)
            if created is not None:
                created.append(handle.path)
    return handle


async def resolve_file(
    root: DirectoryHandle,
    path: str,
    *,
    create: bool = False,
    created: list[str] | None = None,
) -> FileHandle:
    """Resolve all but the last segment as directories, then the file itself."""
    parts = segments(path)
    if not parts:
        raise IsDirectoryError("Path is a directory: /")
    parent = await resolve_directory(
        root, "/".join(parts[:-1]), create=create, created=created
    )
    return await parent.get_file_handle(parts[-1], create=create)


async def resolve_any(root: DirectoryHandle, path: str) -> Handle:
    """Resolve *path* to its handle, whatever kind the terminal segment is."""
    parts = segments(path)
    if not parts:
        return root
    parent = await resolve_directory(root, "/".join(parts[:-1]))
    return await parent.get_handle(parts[-1])

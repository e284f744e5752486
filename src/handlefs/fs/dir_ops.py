"""DirOps — mkdir, rmdir, readdir, stat and get_uri.

Listings and stat come from the handle tree, which is authoritative.
Cached records supply creation time and size in the stored encoding;
entries without a record fall back to what the disk reports.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .exceptions import (
    DirectoryNotEmptyError,
    InvalidPathError,
    NotDirectoryError,
    PathNotFoundError,
    TypeMismatchError,
)
from .file_ops import delete_file
from .handles import DirectoryHandle, resolve_any, resolve_directory
from .types import DirEntry, EntryKind, ReindexResult, StatResult
from .utils import checked_full_path, make_uri, split_path

if TYPE_CHECKING:
    from handlefs.models.entries import EntryBase

    from .access import StorageGrant
    from .handles import Handle

logger = logging.getLogger(__name__)


async def _describe(
    handle: Handle,
    record: EntryBase | None,
) -> tuple[int, datetime, datetime]:
    """Return ``(size, created_at, modified_at)`` for *handle*."""
    if record is not None and record.kind == handle.kind.value:
        size = 0 if handle.kind is EntryKind.DIRECTORY else record.size
        return size, record.created_at, record.modified_at

    st = await handle.stat()
    size = 0 if handle.kind is EntryKind.DIRECTORY else st.st_size
    return (
        size,
        datetime.fromtimestamp(st.st_ctime, tz=UTC),
        datetime.fromtimestamp(st.st_mtime, tz=UTC),
    )


async def mkdir(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
    recursive: bool = True,
) -> None:
    """Create a directory and any missing ancestors.

    *recursive* is advisory: ancestors are always created. Callers that
    need "fail if the parent is missing" must check with ``stat`` first.
    An existing directory is left as is.

    Raises:
        NotDirectoryError: a file sits somewhere on the path.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    created: list[str] = []
    await resolve_directory(grant.root, full, create=True, created=created)
    await grant.store.put_directories(created)
    if created:
        logger.debug("mkdir %s created %s", full, created)


async def rmdir(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
    recursive: bool = False,
) -> None:
    """Remove a directory.

    Recursive removal is depth-first: files are deleted, subdirectories
    recursed into, then the directory itself goes. The first failure
    aborts the call; whatever was already removed stays removed.

    Raises:
        PathNotFoundError: nothing exists at *path*.
        NotDirectoryError: *path* is a file.
        DirectoryNotEmptyError: it has children and *recursive* is false.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    if full == "/":
        raise InvalidPathError("Cannot remove the storage root")

    handle = await resolve_any(grant.root, full)
    if not isinstance(handle, DirectoryHandle):
        raise NotDirectoryError(f"Requested path is not a directory: {full}")

    children = await handle.entries(grant.config.temp_prefix)
    if children and not recursive:
        raise DirectoryNotEmptyError(f"Folder is not empty: {full}")

    for child in children:
        if isinstance(child, DirectoryHandle):
            await rmdir(grant, child.path, recursive=recursive)
        else:
            await delete_file(grant, child.path)

    parent_path, name = split_path(full)
    parent = await resolve_directory(grant.root, parent_path)
    await parent.remove_entry(name)

    # Records the tree no longer backs, at any depth
    dropped = await grant.store.delete_tree(full)
    if dropped:
        logger.debug("Dropped %d cached records for %s", dropped, full)
    logger.debug("Removed directory %s", full)


async def readdir(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
) -> list[DirEntry]:
    """List the direct children of a directory.

    Raises:
        PathNotFoundError: the directory does not exist.
        NotDirectoryError: *path* is a file.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    handle = await resolve_directory(grant.root, full)
    children = await handle.entries(grant.config.temp_prefix)
    records = {r.path: r for r in await grant.store.list_children(full)}

    entries: list[DirEntry] = []
    for child in children:
        size, created_at, modified_at = await _describe(child, records.get(child.path))
        entries.append(
            DirEntry(
                name=child.name,
                kind=child.kind,
                size=size,
                uri=make_uri(child.path, child.kind),
                created_at=created_at,
                modified_at=modified_at,
            )
        )
    return entries


async def stat(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
) -> StatResult:
    """Report kind, size, timestamps and URI for a file or directory.

    Raises:
        PathNotFoundError: nothing exists at *path*.
        NotDirectoryError: an ancestor on the path is a file.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    handle = await resolve_any(grant.root, full)
    size, created_at, modified_at = await _describe(handle, await grant.store.get(full))
    return StatResult(
        kind=handle.kind,
        size=size,
        uri=make_uri(full, handle.kind),
        created_at=created_at,
        modified_at=modified_at,
    )


async def get_uri(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
) -> str:
    """Best-known URI for *path*.

    Tries the cached record (with and without a trailing separator), then
    the handle tree, then falls back to the requested path.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    record = await grant.store.get(full) or await grant.store.get(full + "/")
    if record is not None:
        return make_uri(record.path, EntryKind(record.kind))
    try:
        handle = await resolve_any(grant.root, full)
    except (PathNotFoundError, TypeMismatchError):
        return full
    return make_uri(handle.path, handle.kind)


async def reindex(grant: StorageGrant) -> ReindexResult:
    """Walk the handle tree and bring the record cache back in line.

    Entries on disk with no record get one (encoding unknown, times from
    the disk). Records whose path no longer exists are dropped.
    """
    grant.require_active()
    result = ReindexResult()
    known = await grant.store.all_paths()
    on_disk: set[str] = set()

    pending: list[DirectoryHandle] = [grant.root]
    while pending:
        current = pending.pop()
        for child in await current.entries(grant.config.temp_prefix):
            on_disk.add(child.path)
            if isinstance(child, DirectoryHandle):
                pending.append(child)
            if child.path in known:
                continue
            size, created_at, modified_at = await _describe(child, None)
            await grant.store.put(
                grant.store.entry_model(
                    path=child.path,
                    kind=child.kind.value,
                    size=size,
                    created_at=created_at,
                    modified_at=modified_at,
                )
            )
            result.created += 1

    for path in known - on_disk:
        if await grant.store.delete(path):
            result.deleted += 1

    if result.created or result.deleted:
        logger.warning(
            "Metadata cache for %s was stale: %d created, %d deleted",
            grant.root_path,
            result.created,
            result.deleted,
        )
    return result

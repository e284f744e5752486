"""CopyMoveEngine — recursive copy and move built on FileOps and DirOps.

Neither operation is atomic. A failure part-way through a directory
leaves a partially populated destination and, for a move, a partially
emptied source. Callers verify post-conditions themselves.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .dir_ops import mkdir, readdir, rmdir, stat
from .exceptions import (
    CannotOverwriteDirectoryError,
    DirectoryCollisionError,
    HandleFSError,
    InvalidPathError,
    ParentNotDirectoryError,
    PathConflictError,
    PathNotFoundError,
    TypeMismatchError,
)
from .file_ops import delete_file, read_stored, write_file
from .metadata import next_timestamp
from .types import EntryKind
from .utils import checked_full_path, is_ancestor, make_uri, segments, split_path

if TYPE_CHECKING:
    from .access import StorageGrant
    from .types import StatResult

logger = logging.getLogger(__name__)


async def _carry_times(grant: StorageGrant, path: str, source: StatResult) -> None:
    """Give the entry at *path* the timestamps of the moved *source*."""
    record = await grant.store.get(path)
    if record is None:
        now = next_timestamp()
        record = grant.store.entry_model(path=path, kind=source.kind.value, size=source.size)
        record.created_at = now
        record.modified_at = now
    if source.created_at is not None:
        record.created_at = source.created_at
    if source.modified_at is not None:
        record.modified_at = source.modified_at
    await grant.store.put(record)


async def _check_destination(
    grant: StorageGrant,
    dest: str,
    to_path: str,
) -> StatResult | None:
    """Stat *dest*; when absent, make sure whatever contains it is a directory."""
    try:
        return await stat(grant, dest)
    except (PathNotFoundError, TypeMismatchError):
        pass

    if len(segments(to_path)) > 1:
        parent_path, _ = split_path(dest)
        try:
            parent = await stat(grant, parent_path)
        except TypeMismatchError as e:
            raise ParentNotDirectoryError(f"Parent directory of the to path is a file: {dest}") from e
        if parent.kind is not EntryKind.DIRECTORY:
            raise ParentNotDirectoryError(f"Parent directory of the to path is a file: {dest}")
    return None


async def copy_or_move(
    grant: StorageGrant,
    from_path: str,
    to_path: str,
    directory: str | None = None,
    to_directory: str | None = None,
    *,
    move: bool = False,
) -> str:
    """Copy or move *from_path* to *to_path*, recursing into directories.

    *to_directory* defaults to *directory*. Returns the destination URI.

    Raises:
        PathConflictError: the destination lies inside the source.
        CannotOverwriteDirectoryError: the destination is a directory.
        ParentNotDirectoryError: the destination's container is a file.
        DirectoryCollisionError: a directory source meets an existing destination.
        PathNotFoundError: the source (or the destination's parent) is missing.
    """
    grant.require_active()
    if not from_path or not to_path:
        raise InvalidPathError("Both to and from must be provided")
    if to_directory is None:
        to_directory = directory

    src = checked_full_path(directory, from_path)
    dest = checked_full_path(to_directory, to_path)

    if src == dest:
        return (await stat(grant, src)).uri
    if is_ancestor(src, dest):
        raise PathConflictError(f"To path cannot contain the from path: {dest} is inside {src}")

    dest_stat = await _check_destination(grant, dest, to_path)
    if dest_stat is not None and dest_stat.is_directory:
        raise CannotOverwriteDirectoryError(f"Cannot overwrite a directory: {dest}")

    src_stat = await stat(grant, src)

    if src_stat.kind is EntryKind.FILE:
        content, encoding = await read_stored(grant, src)
        if move:
            await delete_file(grant, src)
        result = await write_file(grant, dest, content, encoding=encoding)
        if move:
            await _carry_times(grant, dest, src_stat)
        return result.uri

    if dest_stat is not None:
        raise DirectoryCollisionError(f"Cannot move a directory over an existing object: {dest}")

    await mkdir(grant, dest, recursive=False)
    if move:
        await _carry_times(grant, dest, src_stat)

    try:
        for child in await readdir(grant, src):
            await copy_or_move(
                grant,
                f"{src}/{child.name}",
                f"{dest}/{child.name}",
                move=move,
            )
    except HandleFSError:
        logger.warning(
            "%s of %s to %s stopped part-way; destination left partially populated",
            "Move" if move else "Copy",
            src,
            dest,
        )
        raise

    if move:
        await rmdir(grant, src)
    return make_uri(dest, EntryKind.DIRECTORY)


async def copy(
    grant: StorageGrant,
    from_path: str,
    to_path: str,
    directory: str | None = None,
    to_directory: str | None = None,
) -> str:
    """Copy a file or directory tree. Returns the destination URI."""
    return await copy_or_move(grant, from_path, to_path, directory, to_directory, move=False)


async def move(
    grant: StorageGrant,
    from_path: str,
    to_path: str,
    directory: str | None = None,
    to_directory: str | None = None,
) -> None:
    """Move (rename) a file or directory tree; timestamps travel with it."""
    await copy_or_move(grant, from_path, to_path, directory, to_directory, move=True)


rename = move

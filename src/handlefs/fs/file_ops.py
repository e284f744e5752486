"""FileOps — read, write, append and delete file content.

Each function takes the caller's ``StorageGrant`` explicitly. Handles are
resolved from the grant's root on every call; records are kept in step
through the grant's ``MetadataStore``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .encoding import (
    content_size,
    decode_payload,
    detect_encoding,
    encode_payload,
    encoding_from_tag,
    encoding_tag,
    is_base64,
    merge_payload,
    sniff_stored,
)
from .exceptions import InvalidEncodingError, IsDirectoryError, PathNotFoundError
from .handles import DirectoryHandle, FileHandle, resolve_any, resolve_directory, resolve_file
from .metadata import next_timestamp
from .types import Encoding, EntryKind, ReadResult, WriteResult
from .utils import checked_full_path, make_uri, split_path

if TYPE_CHECKING:
    from handlefs.models.entries import EntryBase

    from .access import StorageGrant

logger = logging.getLogger(__name__)


async def _file_record(grant: StorageGrant, path: str) -> EntryBase | None:
    """The cached record for a file, ignoring stale directory records."""
    entry = await grant.store.get(path)
    if entry is None or entry.is_directory:
        return None
    return entry


async def read_stored(grant: StorageGrant, path: str) -> tuple[str, Encoding | None]:
    """Read the file at full *path* in its stored encoding.

    Tagged files decode with their tag. Untagged files (created outside
    the adapter) come back as UTF-8 text when they decode, else base64.
    """
    handle = await resolve_file(grant.root, path)
    data = await handle.read_bytes()
    entry = await _file_record(grant, path)
    if entry is not None and entry.encoding is not None:
        encoding = encoding_from_tag(entry.encoding)
        return decode_payload(data, encoding), encoding
    return sniff_stored(data)


async def read_file(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
    encoding: Encoding | None = None,
) -> ReadResult:
    """Read a file.

    With *encoding* the bytes are decoded with that codec; without it the
    content comes back in the encoding it was stored with.

    Raises:
        PathNotFoundError: nothing exists at *path*.
        IsDirectoryError: *path* is a directory (a ``TypeMismatchError``).
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    if encoding is None:
        content, stored = await read_stored(grant, full)
        return ReadResult(content=content, encoding=stored)

    handle = await resolve_file(grant.root, full)
    data = await handle.read_bytes()
    return ReadResult(content=decode_payload(data, encoding), encoding=encoding)


async def write_file(
    grant: StorageGrant,
    path: str,
    content: str,
    directory: str | None = None,
    encoding: Encoding | None = None,
    *,
    create_parents: bool = True,
) -> WriteResult:
    """Create or overwrite a file, creating missing ancestors.

    Without *encoding*, content that passes the base64 round-trip check
    is stored as binary and anything else as UTF-8 text.

    Raises:
        IsDirectoryError: *path* is an existing directory.
        PathNotFoundError: the parent is missing and ``create_parents`` is false.
        InvalidEncodingError: *content* cannot be encoded with *encoding*.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    parent_path, name = split_path(full)
    if not name:
        raise IsDirectoryError(f"Path is a directory: {full}")

    if encoding is None:
        encoding = detect_encoding(content)
    data = encode_payload(content, encoding)

    created_dirs: list[str] = []
    parent = await resolve_directory(
        grant.root, parent_path, create=create_parents, created=created_dirs
    )
    await grant.store.put_directories(created_dirs)
    handle = await parent.get_file_handle(name, create=True)

    existing = await _file_record(grant, full)
    await handle.write_bytes(data, grant.config.temp_prefix)

    now = next_timestamp(existing.modified_at if existing else None)
    await grant.store.put(
        grant.store.entry_model(
            path=full,
            kind=EntryKind.FILE.value,
            size=content_size(content),
            encoding=encoding_tag(encoding),
            created_at=existing.created_at if existing else now,
            modified_at=now,
        )
    )
    logger.debug("Wrote %d bytes to %s", len(data), full)
    return WriteResult(uri=make_uri(full, EntryKind.FILE), created=existing is None)


async def append_file(
    grant: StorageGrant,
    path: str,
    content: str,
    directory: str | None = None,
    encoding: Encoding | None = None,
) -> None:
    """Append to a file, creating it (and its missing ancestors) if needed.

    Binary content merges as bytes, text as text. Mixing the two fails.

    Raises:
        IsDirectoryError: *path* is a directory; nothing is changed.
        InvalidEncodingError: no *encoding* and *content* is not base64, or
            the new content's kind does not match the stored file's.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    parent_path, name = split_path(full)

    try:
        occupied = await resolve_any(grant.root, full)
    except PathNotFoundError:
        occupied = None
    if isinstance(occupied, DirectoryHandle):
        raise IsDirectoryError(f"The supplied path is a directory: {full}")

    if encoding is None and not is_base64(content):
        raise InvalidEncodingError("The supplied data is not valid base64 content.")

    entry = None
    existing = b""
    if isinstance(occupied, FileHandle):
        entry = await _file_record(grant, full)
        existing = await occupied.read_bytes()
    data, tag, size = merge_payload(
        existing, entry.encoding if entry else None, content, encoding
    )

    created_dirs: list[str] = []
    parent = await resolve_directory(grant.root, parent_path, create=True, created=created_dirs)
    await grant.store.put_directories(created_dirs)
    handle = await parent.get_file_handle(name, create=True)
    await handle.write_bytes(data, grant.config.temp_prefix)

    now = next_timestamp(entry.modified_at if entry else None)
    await grant.store.put(
        grant.store.entry_model(
            path=full,
            kind=EntryKind.FILE.value,
            size=size,
            encoding=tag,
            created_at=entry.created_at if entry else now,
            modified_at=now,
        )
    )
    logger.debug("Appended to %s (%d bytes total)", full, len(data))


async def delete_file(
    grant: StorageGrant,
    path: str,
    directory: str | None = None,
) -> None:
    """Delete a file.

    Directories are rejected outright; remove them with ``rmdir``.

    Raises:
        PathNotFoundError: nothing exists at *path*.
        IsDirectoryError: *path* is a directory.
    """
    grant.require_active()
    full = checked_full_path(directory, path)
    handle = await resolve_any(grant.root, full)
    if isinstance(handle, DirectoryHandle):
        raise IsDirectoryError(f"Path is a directory, use rmdir: {full}")

    parent_path, name = split_path(full)
    parent = await resolve_directory(grant.root, parent_path)
    await parent.remove_entry(name)
    await grant.store.delete(full)
    logger.debug("Deleted %s", full)

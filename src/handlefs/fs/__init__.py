"""Filesystem layer — handle tree, metadata cache, file/dir ops, copy/move."""

from handlefs.fs.access import AccessBroker, StorageGrant, static_picker
from handlefs.fs.config import FilesystemConfig
from handlefs.fs.exceptions import (
    CannotOverwriteDirectoryError,
    DirectoryCollisionError,
    DirectoryNotEmptyError,
    HandleFSError,
    InvalidEncodingError,
    InvalidPathError,
    IsDirectoryError,
    NotDirectoryError,
    ParentNotDirectoryError,
    PathConflictError,
    PathNotFoundError,
    PermissionDeniedError,
    StorageError,
    TypeMismatchError,
    UnavailableError,
)
from handlefs.fs.filesystem import HandleFileSystem
from handlefs.fs.handles import DirectoryHandle, FileHandle
from handlefs.fs.metadata import MetadataStore
from handlefs.fs.types import (
    AccessResult,
    AccessState,
    DirEntry,
    Encoding,
    EntryKind,
    ReadResult,
    ReindexResult,
    StatResult,
    WriteResult,
)
from handlefs.fs.utils import full_path, is_ancestor, normalize

__all__ = [
    "AccessBroker",
    "AccessResult",
    "AccessState",
    "CannotOverwriteDirectoryError",
    "DirEntry",
    "DirectoryCollisionError",
    "DirectoryHandle",
    "DirectoryNotEmptyError",
    "Encoding",
    "EntryKind",
    "FileHandle",
    "FilesystemConfig",
    "HandleFSError",
    "HandleFileSystem",
    "InvalidEncodingError",
    "InvalidPathError",
    "IsDirectoryError",
    "MetadataStore",
    "NotDirectoryError",
    "ParentNotDirectoryError",
    "PathConflictError",
    "PathNotFoundError",
    "PermissionDeniedError",
    "ReadResult",
    "ReindexResult",
    "StatResult",
    "StorageError",
    "StorageGrant",
    "TypeMismatchError",
    "UnavailableError",
    "WriteResult",
    "full_path",
    "is_ancestor",
    "normalize",
    "static_picker",
]

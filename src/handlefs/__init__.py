"""handlefs: a path-addressed filesystem over a user-granted storage root.

CRUD, recursive copy and move for note-like files and folders, with a
SQL metadata cache for fast listing and stat.
"""

__version__ = "0.1.0"

from handlefs.fs import (
    AccessBroker,
    AccessResult,
    AccessState,
    DirEntry,
    Encoding,
    EntryKind,
    FilesystemConfig,
    HandleFileSystem,
    HandleFSError,
    ReadResult,
    StatResult,
    StorageGrant,
    WriteResult,
    static_picker,
)

__all__ = [
    "AccessBroker",
    "AccessResult",
    "AccessState",
    "DirEntry",
    "Encoding",
    "EntryKind",
    "FilesystemConfig",
    "HandleFSError",
    "HandleFileSystem",
    "ReadResult",
    "StatResult",
    "StorageGrant",
    "WriteResult",
    "__version__",
    "static_picker",
]

"""Custom exception hierarchy for the handlefs filesystem layer."""


class HandleFSError(Exception):
    """Base exception for all handlefs filesystem errors."""


class PathNotFoundError(HandleFSError):
    """Raised when a file or directory path does not exist."""


class TypeMismatchError(HandleFSError):
    """Raised when an operation expects a file but got a directory, or vice versa."""


class IsDirectoryError(TypeMismatchError):
    """Raised when a file operation targets a directory."""


class NotDirectoryError(TypeMismatchError):
    """Raised when a directory operation targets a file."""


class DirectoryNotEmptyError(HandleFSError):
    """Raised when removing a non-empty directory without ``recursive``."""


class InvalidEncodingError(HandleFSError):
    """Raised on an append encoding mismatch or content that cannot be encoded."""


class InvalidPathError(HandleFSError):
    """Raised when a path or directory name fails validation."""


class PathConflictError(HandleFSError):
    """Raised when a copy/move destination lies inside its source."""


class CannotOverwriteDirectoryError(HandleFSError):
    """Raised when a copy/move destination is an existing directory."""


class ParentNotDirectoryError(HandleFSError):
    """Raised when the containing entry of a copy/move destination is a file."""


class DirectoryCollisionError(HandleFSError):
    """Raised when a directory is copied/moved over an existing entry."""


class UnavailableError(HandleFSError):
    """Raised when the host cannot grant access to a storage root."""


class PermissionDeniedError(HandleFSError):
    """Raised when the user declines the access grant, or no grant is held."""


class StorageError(HandleFSError):
    """Raised on storage backend failures (DB connection, disk I/O, etc.)."""

"""Path utilities: normalization, containment, full-path and URI helpers."""

from __future__ import annotations

from .exceptions import InvalidPathError
from .types import EntryKind

MAX_PATH_LENGTH = 4096
MAX_NAME_LENGTH = 255


# =============================================================================
# Path Utilities
# =============================================================================


def normalize(path: str) -> str:
    """Normalize a relative path expression.

    - Drops empty and ``.`` segments
    - ``..`` pops the previous segment; with nothing to pop it is discarded
    - Never escapes above the root and never has a leading slash

    Examples:
        normalize("a/./b/../c") -> "a/c"
        normalize("../a") -> "a"
        normalize("/foo//bar/") -> "foo/bar"
        normalize("") -> ""
    """
    kept: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if kept and kept[-1] != "..":
                kept.pop()
            continue
        kept.append(segment)
    return "/".join(kept)


def is_ancestor(parent: str, child: str) -> bool:
    """True iff *child*'s segments strictly extend *parent*'s.

    Examples:
        is_ancestor("a/b", "a/b/c") -> True
        is_ancestor("a/b", "a/bc") -> False
        is_ancestor("a/b", "a/b") -> False
    """
    parent = normalize(parent)
    child = normalize(child)
    if parent == child:
        return False
    parent_parts = parent.split("/") if parent else []
    child_parts = child.split("/") if child else []
    if len(parent_parts) >= len(child_parts):
        return False
    return all(a == b for a, b in zip(parent_parts, child_parts))


def full_path(directory: str | None, path: str | None) -> str:
    """Build the full normalized path ``/<directory>/<path>``.

    ``directory=None`` addresses the granted root directly.

    Examples:
        full_path("DOCS", "a/b.txt") -> "/DOCS/a/b.txt"
        full_path("DOCS", "") -> "/DOCS"
        full_path(None, "a") -> "/a"
        full_path(None, "") -> "/"
    """
    parts = [p for p in (directory or "", normalize(path or "")) if p]
    return "/" + "/".join(parts)


def segments(path: str) -> list[str]:
    """Split a full or relative path into its normalized segments."""
    norm = normalize(path)
    return norm.split("/") if norm else []


def split_path(path: str) -> tuple[str, str]:
    """Split a full path into (parent_folder, name).

    Examples:
        split_path("/foo/bar.txt") -> ("/foo", "bar.txt")
        split_path("/foo.txt") -> ("/", "foo.txt")
        split_path("/") -> ("/", "")
    """
    parts = segments(path)
    if not parts:
        return "/", ""
    return "/" + "/".join(parts[:-1]), parts[-1]


def parent_folder(path: str) -> str:
    """Return the full path of the folder containing *path*."""
    return split_path(path)[0]


def make_uri(path: str, kind: EntryKind) -> str:
    """Return the URI for *path*; directory URIs carry a trailing slash."""
    if kind is EntryKind.DIRECTORY and not path.endswith("/"):
        return path + "/"
    return path


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for security and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f) except \t, \n, \r
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F and ch not in ("\t", "\n", "\r"):
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > MAX_PATH_LENGTH:
        return False, f"Path too long (max {MAX_PATH_LENGTH} characters)"

    for name in segments(path):
        if len(name) > MAX_NAME_LENGTH:
            return False, f"Filename too long (max {MAX_NAME_LENGTH} characters)"

    return True, ""


def validate_directory_name(directory: str | None) -> tuple[bool, str]:
    """Validate a logical root name: a single plain path segment."""
    if directory is None:
        return True, ""
    if not directory or directory in (".", "..") or "/" in directory:
        return False, f"Invalid directory name: {directory!r}"
    return validate_path(directory)


def checked_full_path(directory: str | None, path: str | None) -> str:
    """Validate *directory* and *path*, then return the full path.

    Raises:
        InvalidPathError: if either part fails validation.
    """
    valid, error = validate_directory_name(directory)
    if valid:
        valid, error = validate_path(path or "")
    if not valid:
        raise InvalidPathError(error)
    return full_path(directory, path)

"""Result types: ReadResult, WriteResult, StatResult, DirEntry, etc."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .access import StorageGrant


class Encoding(str, Enum):
    """Text encodings accepted by read/write/append.

    Passing no encoding means the content is a base64 payload.
    """

    UTF8 = "utf8"
    ASCII = "ascii"
    UTF16 = "utf16"


class EntryKind(str, Enum):
    """Kind of an entry in the tree."""

    FILE = "file"
    DIRECTORY = "directory"


class AccessState(str, Enum):
    """State of the storage-root grant."""

    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@dataclass
class StatResult:
    """File/directory metadata."""

    kind: EntryKind
    size: int
    uri: str
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass
class DirEntry:
    """One direct child returned by readdir."""

    name: str
    kind: EntryKind
    size: int
    uri: str
    created_at: datetime | None = None
    modified_at: datetime | None = None


@dataclass
class ReadResult:
    """Result of a read operation."""

    content: str
    encoding: Encoding | None = None


@dataclass
class WriteResult:
    """Result of a write operation."""

    uri: str
    created: bool = False


@dataclass
class ReindexResult:
    """Result of rebuilding the metadata cache from the handle tree."""

    created: int = 0
    deleted: int = 0


@dataclass
class AccessResult:
    """Result of an access request."""

    state: AccessState
    grant: StorageGrant | None = None

    @property
    def granted(self) -> bool:
        return self.state is AccessState.GRANTED

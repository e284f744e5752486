"""Entry model — one record per file or directory under a granted root.

Provides ``EntryBase`` as a non-table base class. Subclass with
``table=True`` and a custom ``__tablename__`` to use a different table name.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class EntryBase(SQLModel):
    """Base fields for a tracked entry. Subclass with ``table=True`` for a concrete table."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(index=True, unique=True)
    parent_folder: str = Field(default="/", index=True)
    name: str = Field(default="")
    kind: str = Field(default="file")
    size: int = Field(default=0)
    encoding: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )
    modified_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )

    @property
    def is_directory(self) -> bool:
        return self.kind == "directory"


class Entry(EntryBase, table=True):
    """Default entry table — ``handlefs_entries``."""

    __tablename__ = "handlefs_entries"

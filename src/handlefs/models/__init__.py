"""SQLModel tables backing the metadata cache."""

from handlefs.models.entries import Entry, EntryBase

__all__ = ["Entry", "EntryBase"]

"""Shared fixtures for handlefs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from handlefs.fs.access import AccessBroker, static_picker
from handlefs.fs.config import FilesystemConfig
from handlefs.fs.filesystem import HandleFileSystem
from handlefs.fs.metadata import MetadataStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from handlefs.fs.access import StorageGrant

MEMORY_URL = "sqlite+aiosqlite://"


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """An empty directory standing in for the user-granted storage root."""
    granted = tmp_path / "granted"
    granted.mkdir()
    return granted


@pytest.fixture
def config() -> FilesystemConfig:
    """Config keeping the metadata cache in an in-memory SQLite database."""
    return FilesystemConfig(database_url=MEMORY_URL)


@pytest.fixture
def fs(root: Path, config: FilesystemConfig) -> HandleFileSystem:
    """Filesystem whose picker always grants *root*."""
    return HandleFileSystem(picker=static_picker(root), config=config)


@pytest.fixture
async def grant(root: Path, config: FilesystemConfig) -> AsyncIterator[StorageGrant]:
    """A live grant over *root*, released after each test."""
    broker = AccessBroker(static_picker(root), config)
    g = await broker.open_grant(root)
    yield g
    await g.close()


@pytest.fixture
async def store() -> AsyncIterator[MetadataStore]:
    """A standalone in-memory metadata store."""
    s = await MetadataStore.open(MEMORY_URL)
    yield s
    await s.close()

"""HandleFileSystem — the operation surface over a granted storage root.

Every content operation takes ``grant=`` explicitly, the same way the
storage services take a session: there is no ambient root.

Example::

    fs = HandleFileSystem(picker=static_picker("~/Notes"))
    access = await fs.request_access()
    async with access.grant as grant:
        await fs.write_file("inbox/todo.md", "- milk", "ICLOUD", Encoding.UTF8, grant=grant)
        entries = await fs.readdir("inbox", "ICLOUD", grant=grant)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from . import copy_move, dir_ops, file_ops
from .access import AccessBroker

if TYPE_CHECKING:
    from .access import DirectoryPicker, StorageGrant
    from .config import FilesystemConfig
    from .types import (
        AccessResult,
        AccessState,
        DirEntry,
        Encoding,
        ReadResult,
        ReindexResult,
        StatResult,
        WriteResult,
    )


class HandleFileSystem:
    """Path-addressed CRUD, copy and move over a user-granted root.

    ``directory`` names a logical root below the granted directory;
    ``path`` is the slash-separated tail under it. The full path of an
    entry is ``/<directory>/<path>``.
    """

    def __init__(
        self,
        picker: DirectoryPicker | None = None,
        config: FilesystemConfig | None = None,
    ) -> None:
        self.access = AccessBroker(picker, config)

    @property
    def config(self) -> FilesystemConfig:
        return self.access.config

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    async def request_access(self) -> AccessResult:
        return await self.access.request_access()

    async def pick_directory(self) -> StorageGrant:
        return await self.access.pick_directory()

    async def check_access(self, grant: StorageGrant | None = None) -> AccessState:
        return await self.access.check_access(grant)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def read_file(
        self,
        path: str,
        directory: str | None = None,
        encoding: Encoding | None = None,
        *,
        grant: StorageGrant,
    ) -> ReadResult:
        return await file_ops.read_file(grant, path, directory, encoding)

    async def write_file(
        self,
        path: str,
        content: str,
        directory: str | None = None,
        encoding: Encoding | None = None,
        *,
        grant: StorageGrant,
        create_parents: bool = True,
    ) -> WriteResult:
        return await file_ops.write_file(
            grant, path, content, directory, encoding, create_parents=create_parents
        )

    async def append_file(
        self,
        path: str,
        content: str,
        directory: str | None = None,
        encoding: Encoding | None = None,
        *,
        grant: StorageGrant,
    ) -> None:
        await file_ops.append_file(grant, path, content, directory, encoding)

    async def delete_file(
        self,
        path: str,
        directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> None:
        await file_ops.delete_file(grant, path, directory)

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    async def mkdir(
        self,
        path: str,
        directory: str | None = None,
        recursive: bool = True,
        *,
        grant: StorageGrant,
    ) -> None:
        await dir_ops.mkdir(grant, path, directory, recursive)

    async def rmdir(
        self,
        path: str,
        directory: str | None = None,
        recursive: bool = False,
        *,
        grant: StorageGrant,
    ) -> None:
        await dir_ops.rmdir(grant, path, directory, recursive)

    async def readdir(
        self,
        path: str,
        directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> list[DirEntry]:
        return await dir_ops.readdir(grant, path, directory)

    async def stat(
        self,
        path: str,
        directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> StatResult:
        return await dir_ops.stat(grant, path, directory)

    async def get_uri(
        self,
        path: str,
        directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> str:
        return await dir_ops.get_uri(grant, path, directory)

    # ------------------------------------------------------------------
    # Copy / move
    # ------------------------------------------------------------------

    async def copy(
        self,
        from_path: str,
        to_path: str,
        directory: str | None = None,
        to_directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> str:
        return await copy_move.copy(grant, from_path, to_path, directory, to_directory)

    async def move(
        self,
        from_path: str,
        to_path: str,
        directory: str | None = None,
        to_directory: str | None = None,
        *,
        grant: StorageGrant,
    ) -> None:
        await copy_move.move(grant, from_path, to_path, directory, to_directory)

    rename = move

    # ------------------------------------------------------------------
    # Cache maintenance
    # ------------------------------------------------------------------

    async def clear(self, *, grant: StorageGrant) -> None:
        """Drop every cached record. The handle tree is untouched."""
        grant.require_active()
        await grant.store.clear()

    async def reindex(self, *, grant: StorageGrant) -> ReindexResult:
        return await dir_ops.reindex(grant)

"""Access grants — the explicit capability context threaded into every call.

There is no process-wide root. A caller asks an ``AccessBroker`` for
access once, receives a ``StorageGrant`` and passes it to every
operation. Closing the grant releases the metadata store.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .config import FilesystemConfig
from .exceptions import PermissionDeniedError, UnavailableError
from .handles import DirectoryHandle
from .metadata import MetadataStore
from .types import AccessResult, AccessState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    DirectoryPicker = Callable[[], Awaitable["str | Path | None"]]

logger = logging.getLogger(__name__)


@dataclass
class StorageGrant:
    """A granted storage root plus the metadata store that mirrors it."""

    root: DirectoryHandle
    store: MetadataStore
    config: FilesystemConfig = field(default_factory=FilesystemConfig)
    _closed: bool = field(default=False, repr=False)

    @property
    def root_path(self) -> Path:
        return self.root.root

    @property
    def active(self) -> bool:
        return not self._closed

    def require_active(self) -> None:
        if self._closed:
            raise PermissionDeniedError(f"Access to {self.root_path} has been released")

    async def close(self) -> None:
        """Release the grant and dispose of the metadata store."""
        if self._closed:
            return
        self._closed = True
        await self.store.close()
        logger.info("Released access to %s", self.root_path)

    async def __aenter__(self) -> StorageGrant:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()


def static_picker(path: str | Path) -> DirectoryPicker:
    """A picker that always grants *path*, for hosts without an interactive prompt."""

    async def _pick() -> str | Path:
        return path

    return _pick


class AccessBroker:
    """Issues ``StorageGrant`` objects through a host-supplied directory picker.

    *picker* is an async callable that prompts the user and returns the
    chosen root, or returns ``None`` / raises ``PermissionDeniedError``
    when the user declines. A broker without a picker models a host that
    lacks capability-grant support: every access call raises
    ``UnavailableError``.
    """

    def __init__(
        self,
        picker: DirectoryPicker | None = None,
        config: FilesystemConfig | None = None,
    ) -> None:
        self._picker = picker
        self.config = config or FilesystemConfig()

    @property
    def supported(self) -> bool:
        return self._picker is not None

    def _require_support(self) -> DirectoryPicker:
        if self._picker is None:
            raise UnavailableError("This host doesn't support picking a storage directory.")
        return self._picker

    async def open_grant(self, root: str | Path) -> StorageGrant:
        """Open a grant for an already-chosen *root* (no prompt)."""
        handle = await asyncio.to_thread(DirectoryHandle.open_root, root)
        url = await asyncio.to_thread(self.config.database_url_for, handle.root)
        store = await MetadataStore.open(
            url,
            schema=self.config.schema,
            echo=self.config.echo_sql,
        )
        logger.info("Granted access to %s", handle.root)
        return StorageGrant(root=handle, store=store, config=self.config)

    async def pick_directory(self) -> StorageGrant:
        """Prompt for a root and return its grant; refusal raises ``PermissionDeniedError``."""
        picker = self._require_support()
        chosen = await picker()
        if chosen is None:
            raise PermissionDeniedError("No storage directory was granted")
        return await self.open_grant(chosen)

    async def request_access(self) -> AccessResult:
        """Prompt for a root. Refusal is reported as ``denied`` rather than raised."""
        try:
            grant = await self.pick_directory()
        except PermissionDeniedError:
            logger.info("Storage access denied")
            return AccessResult(state=AccessState.DENIED)
        return AccessResult(state=AccessState.GRANTED, grant=grant)

    async def check_access(self, grant: StorageGrant | None = None) -> AccessState:
        """``granted`` when *grant* is live, otherwise ``prompt``."""
        self._require_support()
        if grant is not None and grant.active:
            return AccessState.GRANTED
        return AccessState.PROMPT

"""MetadataStore — indexed entry records keyed by full path.

The record store is a derived cache of the handle tree: it holds what the
tree cannot (stable creation time, encoding tag, size in the stored
encoding) and answers one-level listings by ``parent_folder``.

Every public call runs in its own session and transaction. A read right
after a write observes it, but nothing spans several calls.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import select

from handlefs.models.entries import Entry

from .dialect import get_dialect, upsert_entry
from .exceptions import StorageError
from .types import EntryKind
from .utils import split_path

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from handlefs.models.entries import EntryBase

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def next_timestamp(previous: datetime | None = None) -> datetime:
    """Current UTC time, strictly later than *previous* when given."""
    now = datetime.now(UTC)
    if previous is not None and now <= _as_utc(previous):
        return _as_utc(previous) + timedelta(microseconds=1)
    return now


class MetadataStore:
    """Async record store over an ``EntryBase`` table.

    Receives the concrete entry model at construction so callers can
    use custom SQLModel subclasses.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        entry_model: type[EntryBase] | None = None,
        schema: str | None = None,
    ) -> None:
        self._engine = engine
        self._entry_model: type[EntryBase] = entry_model or Entry
        self.dialect = get_dialect(engine)
        self.schema = schema
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def entry_model(self) -> type[EntryBase]:
        return self._entry_model

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def open(
        cls,
        url: str,
        *,
        entry_model: type[EntryBase] | None = None,
        schema: str | None = None,
        echo: bool = False,
    ) -> MetadataStore:
        """Create the engine for *url* and make sure the entry table exists."""
        engine = create_async_engine(url, echo=echo)

        if engine.dialect.name == "sqlite" and ":memory:" not in url and not url.endswith("://"):

            @event.listens_for(engine.sync_engine, "connect")
            def _set_sqlite_pragma(dbapi_connection: object, connection_record: object) -> None:
                cursor = dbapi_connection.cursor()  # type: ignore[union-attr]
                cursor.execute("PRAGMA journal_mode=WAL")
                result = cursor.fetchone()
                if result[0].lower() != "wal":
                    logger.warning("WAL mode not active, got: %s", result[0])
                cursor.execute("PRAGMA busy_timeout=5000")
                cursor.execute("PRAGMA synchronous=FULL")
                cursor.close()

        store = cls(engine, entry_model=entry_model, schema=schema)
        table = store.entry_model.__table__  # type: ignore[attr-defined]
        try:
            async with engine.begin() as conn:
                await conn.run_sync(lambda c: table.create(c, checkfirst=True))
        except SQLAlchemyError as e:
            await engine.dispose()
            raise StorageError(f"Cannot open metadata store: {e}") from e
        return store

    async def close(self) -> None:
        """Dispose the engine and release connections."""
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Metadata store failure: %s", e, exc_info=True)
            raise StorageError(f"Metadata store failure: {e}") from e

    def _fix(self, entry: EntryBase) -> EntryBase:
        entry.created_at = _as_utc(entry.created_at)
        entry.modified_at = _as_utc(entry.modified_at)
        return entry

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def get(self, path: str) -> EntryBase | None:
        """Get an entry record by full path."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(select(model).where(model.path == path))
            entry = result.scalar_one_or_none()
        return self._fix(entry) if entry is not None else None

    async def put(self, entry: EntryBase) -> None:
        """Upsert *entry* by path."""
        values = entry.model_dump()
        values["parent_folder"], values["name"] = split_path(entry.path)
        async with self._transaction() as session:
            await upsert_entry(
                session,
                self.dialect,
                values=values,
                model=self._entry_model,
                conflict_keys=["path"],
                schema=self.schema,
            )
        logger.debug("Upserted %s record for %s", entry.kind, entry.path)

    async def put_directories(self, paths: list[str]) -> None:
        """Record freshly created directories, one upsert each."""
        for path in paths:
            now = next_timestamp()
            await self.put(
                self._entry_model(
                    path=path,
                    kind=EntryKind.DIRECTORY.value,
                    size=0,
                    created_at=now,
                    modified_at=now,
                )
            )

    async def delete(self, path: str) -> bool:
        """Delete the record for *path*. Returns whether a row was removed."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(delete(model).where(model.path == path))
        return bool(result.rowcount)

    async def delete_tree(self, path: str) -> int:
        """Delete the record for *path* and every record below it. Returns the count."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(
                delete(model).where(
                    (model.path == path) | model.path.startswith(path + "/", autoescape=True)
                )
            )
        return result.rowcount or 0

    async def list_children(self, parent: str) -> list[EntryBase]:
        """Records whose ``parent_folder`` equals *parent* exactly (one level)."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(
                select(model).where(model.parent_folder == parent).order_by(model.name)
            )
            entries = list(result.scalars().all())
        return [self._fix(e) for e in entries]

    async def all_paths(self) -> set[str]:
        """Every path in the store."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(select(model.path))
            return set(result.scalars().all())

    async def clear(self) -> int:
        """Drop every record. Returns the number removed."""
        model = self._entry_model
        async with self._transaction() as session:
            result = await session.execute(delete(model))
        return result.rowcount or 0

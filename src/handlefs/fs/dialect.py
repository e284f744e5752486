"""Dialect-aware SQL helpers — entry upsert."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


def get_dialect(engine: Engine | AsyncEngine) -> str:
    """Return 'sqlite' or 'postgresql' (other names pass through)."""
    # AsyncEngine wraps a sync engine
    sync_engine = getattr(engine, "sync_engine", engine)
    name = sync_engine.dialect.name
    if name in ("postgresql", "postgres"):
        return "postgresql"
    return name


async def upsert_entry(
    session: AsyncSession,
    dialect: str,
    values: dict[str, Any],
    model: type,
    conflict_keys: list[str] | None = None,
    schema: str | None = None,
    update_keys: list[str] | None = None,
) -> int:
    """Insert-or-overwrite one entry row keyed by *conflict_keys*. Returns rowcount.

    Uses ``INSERT ... ON CONFLICT DO UPDATE`` on SQLite and PostgreSQL.
    The primary key is never rewritten on conflict.
    """
    from sqlalchemy.dialects import sqlite as sqlite_dialect

    if dialect not in ("sqlite", "postgresql"):
        msg = f"Unsupported dialect for upsert: {dialect}"
        raise ValueError(msg)

    conflict_keys = conflict_keys or ["path"]
    dialect_module = sqlite_dialect
    if dialect == "postgresql":
        from sqlalchemy.dialects import postgresql as pg_dialect

        dialect_module = pg_dialect

    stmt = dialect_module.insert(model).values(**values)

    if update_keys is not None:
        update_cols = {k: v for k, v in values.items() if k in update_keys}
    else:
        update_cols = {
            k: v for k, v in values.items() if k not in conflict_keys and k != "id"
        }

    if update_cols:
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_keys,
            set_=update_cols,
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=conflict_keys)

    if schema:
        stmt = stmt.execution_options(schema_translate_map={None: schema})

    result = await session.execute(stmt)
    return result.rowcount  # type: ignore[return-value]

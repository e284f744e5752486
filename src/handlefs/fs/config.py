"""FilesystemConfig — where the metadata cache lives and how it is opened."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .handles import TEMP_PREFIX

DB_FILENAME = "entries.db"


def _root_slug(root: Path) -> str:
    """Derive a directory-safe slug from a granted root path."""
    try:
        relative = root.resolve().relative_to(Path.home())
    except ValueError:
        relative = Path(str(root.resolve()).lstrip("/"))
    return str(relative).replace("/", "_").strip("_") or "root"


def default_data_dir(root: Path) -> Path:
    """Return the global data directory for a given granted root."""
    return Path.home() / ".handlefs" / _root_slug(root)


@dataclass
class FilesystemConfig:
    """Configuration shared by every grant issued by an ``AccessBroker``."""

    data_dir: Path | None = None
    """Directory holding the metadata database. Defaults to ``~/.handlefs/<slug>``."""

    database_url: str | None = None
    """Explicit SQLAlchemy async URL; overrides ``data_dir`` when set."""

    echo_sql: bool = False
    """Echo SQL statements through SQLAlchemy's logger."""

    schema: str | None = None
    """Optional schema qualifying the entries table."""

    temp_prefix: str = TEMP_PREFIX
    """Prefix of atomic-write temp files; hidden from listings."""

    def __post_init__(self) -> None:
        if self.data_dir is not None:
            self.data_dir = Path(self.data_dir).expanduser()

    def database_url_for(self, root: Path) -> str:
        """Resolve the metadata database URL for *root*, creating its directory."""
        if self.database_url:
            return self.database_url
        data_dir = self.data_dir or default_data_dir(root)
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{data_dir / DB_FILENAME}"

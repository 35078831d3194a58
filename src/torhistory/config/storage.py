"""Location of the relay history database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "torhistory"
DEFAULT_DB_FILENAME: Final[str] = "torhistory.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Directory holding the SQLite database when no ``DATABASE_URI`` is given."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_filename

    def database_uri(self, *, create_dir: bool = True) -> str:
        if create_dir:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{self.database_path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _data_home() -> Path:
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("TORHISTORY_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir.expanduser().resolve())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` selects any SQLAlchemy URL; otherwise SQLite in the data dir."""

    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())

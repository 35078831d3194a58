"""SQLAlchemy adapter package for the relay history store."""

from __future__ import annotations

from .mappings import VALUE_TABLES, create_all_tables, metadata
from .repositories import SqlAlchemyImportLogRepository, SqlAlchemyRelayStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "VALUE_TABLES",
    "SqlAlchemyImportLogRepository",
    "SqlAlchemyRelayStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]

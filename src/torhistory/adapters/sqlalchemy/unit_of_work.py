"""SQLAlchemy session handling for consensus imports.

The adapter owns a single engine per process. ``startup`` binds it (migrating
the schema to head) and every :class:`SqlAlchemyUnitOfWork` opens one session
on it, so each import runs in its own transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from torhistory.adapters.sqlalchemy.migrations import upgrade_head
from torhistory.adapters.sqlalchemy.repositories import (
    SqlAlchemyImportLogRepository,
    SqlAlchemyRelayStore,
)
from torhistory.config import get_database_config
from torhistory.domain.ports.unit_of_work import RelayHistoryRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the store is used before ``startup`` or configured twice."""


@dataclass(slots=True)
class _EngineRegistry:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def clear(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None


_REGISTRY = _EngineRegistry()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the relay history database, creating or upgrading its schema."""

    if _REGISTRY.engine is not None and not force:
        raise StartupError("Relay history store already started; pass force=True to rebind")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri, future=True)
    upgrade_head(engine=engine)
    _REGISTRY.bind(engine)
    log.debug("Relay history store bound to %s", engine.url)


def configured_engine() -> Engine | None:
    return _REGISTRY.engine


def is_started() -> bool:
    return _REGISTRY.engine is not None


def shutdown() -> None:
    """Dispose the engine; a later ``startup`` may bind a different database."""

    _REGISTRY.clear()


class SqlAlchemyUnitOfWork:
    """One session spanning the relay store and the import log."""

    def __init__(self) -> None:
        if _REGISTRY.sessions is None:
            raise StartupError(
                "Relay history store not started; call "
                "torhistory.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        self._sessions = _REGISTRY.sessions
        self._session: Session | None = None
        self._repositories: RelayHistoryRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._sessions()
        self._session = session
        self._repositories = RelayHistoryRepositories(
            relays=SqlAlchemyRelayStore(session),
            imports=SqlAlchemyImportLogRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> RelayHistoryRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

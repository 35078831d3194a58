from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from torhistory.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from torhistory.domain.model import ValueClass

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _record(uow: SqlAlchemyUnitOfWork, dlts: str) -> None:
    uow.repositories.imports.record_import(
        version="8.0",
        build_revision="",
        relays_published="2023-01-01 00:00:00",
        bridges_published="",
        dlts=dlts,
    )


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_startup_from_database_uri(tmp_path: Path) -> None:
    startup(database_uri=f"sqlite+pysqlite:///{tmp_path}/history.db")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.imports.latest_dlts() is None


def test_unit_of_work_commits(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.relays.get_or_create_value_id(ValueClass.FINGERPRINT, "A" * 40)
        _record(uow, "20230101000000")
        uow.commit()

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.imports.latest_dlts() == "20230101000000"


def test_unit_of_work_rolls_back_on_error(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyUnitOfWork() as uow:
        _record(uow, "20230101000000")
        raise RuntimeError("boom")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.imports.latest_dlts() is None


def test_repositories_require_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from contact_identity.adapters.sqlalchemy import start_mappers
from contact_identity.adapters.sqlalchemy.migrations import upgrade_head
from contact_identity.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    build_engine,
    shutdown,
    startup,
)
from contact_identity.config import DatabaseConfig

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def database_config(tmp_path: Path) -> DatabaseConfig:
    return DatabaseConfig(
        uri=f"sqlite+pysqlite:///{tmp_path / 'contacts.db'}",
        lock_timeout_seconds=5.0,
        transaction_timeout_seconds=10.0,
    )


@pytest.fixture
def sqlite_engine(database_config: DatabaseConfig) -> Iterator[Engine]:
    engine = build_engine(database_config)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    database_config: DatabaseConfig,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, database=database_config, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()

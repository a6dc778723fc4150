"""SQLAlchemy-backed unit of work and store lifecycle for contact reconciliation."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, cast

from sqlalchemy import create_engine, make_url, text, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, ProgrammingError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from contact_identity.adapters.sqlalchemy.mappings import (
    WRITE_LOCK_ROW_ID,
    reconciliation_lock_table,
    start_mappers,
)
from contact_identity.adapters.sqlalchemy.migrations import upgrade_head
from contact_identity.adapters.sqlalchemy.repositories import SqlAlchemyContactRepository
from contact_identity.config import DatabaseConfig, get_database_config
from contact_identity.domain.errors import StoreUnavailableError, UnitOfWorkTimeoutError
from contact_identity.domain.model import utcnow
from contact_identity.domain.ports.unit_of_work import ContactRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import CursorResult, Engine

log = logging.getLogger(__name__)

STORE_FAILURES: tuple[type[Exception], ...] = (OperationalError, InterfaceError, PoolTimeoutError)


class StartupError(RuntimeError):
    """Raised when the store is used before initialisation or migration."""


# SQLSTATEs: lock_not_available, query_canceled (statement_timeout), undefined_table.
_LOCK_TIMEOUT_SQLSTATES = frozenset({"55P03", "57014"})
_MISSING_TABLE_SQLSTATE = "42P01"


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_lock_timeout(exc: DBAPIError) -> bool:
    if _sqlstate(exc) in _LOCK_TIMEOUT_SQLSTATES:
        return True
    # SQLite reports an expired busy timeout as "database is locked".
    return "locked" in str(exc.orig).lower()


def _is_missing_table(exc: DBAPIError) -> bool:
    if _sqlstate(exc) == _MISSING_TABLE_SQLSTATE:
        return True
    return "no such table" in str(exc.orig).lower()


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None
    database: DatabaseConfig | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call contact_identity.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory

    @property
    def settings(self) -> DatabaseConfig:
        if self.database is None:
            raise StartupError("SQLAlchemy adapter not initialised")
        return self.database


_STATE = _AdapterState()


def build_engine(database: DatabaseConfig) -> Engine:
    """Create an engine whose connection and lock waits are bounded by the config."""

    url = make_url(database.uri)
    if url.get_backend_name() == "sqlite":
        # The driver's busy timeout bounds how long a writer waits for the file lock.
        return create_engine(
            url,
            connect_args={"timeout": database.lock_timeout_seconds, "check_same_thread": False},
            future=True,
        )
    return create_engine(
        url,
        pool_timeout=database.lock_timeout_seconds,
        pool_pre_ping=True,
        future=True,
    )


def startup(
    *,
    engine: Engine | None = None,
    database: DatabaseConfig | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if database is None:
        database = (
            DatabaseConfig(uri=engine.url.render_as_string(hide_password=False))
            if engine is not None
            else get_database_config()
        )
    resolved_engine = engine or build_engine(database)
    start_mappers()
    upgrade_head(engine=resolved_engine)

    _STATE.engine = resolved_engine
    _STATE.database = database
    log.info("Contact store ready at %s", resolved_engine.url.render_as_string())


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.database = None


def ping_store() -> None:
    """Round-trip a trivial query; raise ``StoreUnavailableError`` if the store is down."""

    engine = _STATE.engine
    if engine is None:
        raise StartupError("SQLAlchemy adapter not initialised")
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except STORE_FAILURES as exc:
        raise StoreUnavailableError(f"Contact store unreachable: {exc}") from exc


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with a deadline and optional write lock.

    The deadline starts on ``__enter__`` and is checked before every repository
    statement and at commit. Driver-level connectivity failures leaving the
    ``with`` block are re-raised as ``StoreUnavailableError`` after rollback.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self.settings: DatabaseConfig = _STATE.settings
        self._session: Session | None = None
        self._deadline: float | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._deadline = time.monotonic() + self.settings.transaction_timeout_seconds
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self._rollback_quietly()
        finally:
            self.session.close()
            self.session = None
            self._deadline = None
        if isinstance(exc_value, STORE_FAILURES):
            raise StoreUnavailableError(f"Contact store unavailable: {exc_value}") from exc_value
        return False

    def acquire_write_lock(self) -> None:
        """Serialise against every other writer until this unit commits or rolls back."""

        self.check_deadline()
        session = self.session
        try:
            if session.get_bind().dialect.name == "postgresql":
                self._set_postgres_timeouts(session)
            result = cast(
                "CursorResult[Any]",
                session.execute(
                    update(reconciliation_lock_table)
                    .where(reconciliation_lock_table.c.id == WRITE_LOCK_ROW_ID)
                    .values(acquired_at=utcnow())
                ),
            )
        except PoolTimeoutError as exc:
            raise self._lock_timeout() from exc
        except (OperationalError, ProgrammingError) as exc:
            if _is_missing_table(exc):
                raise StartupError(
                    "Write lock table missing; the schema has not been migrated"
                ) from exc
            if _is_lock_timeout(exc):
                raise self._lock_timeout() from exc
            raise
        if result.rowcount != 1:
            raise StartupError("Write lock row missing; the schema has not been migrated")
        self.check_deadline()

    def _lock_timeout(self) -> UnitOfWorkTimeoutError:
        return UnitOfWorkTimeoutError(
            f"Could not acquire write access within {self.settings.lock_timeout_seconds}s"
        )

    def check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise UnitOfWorkTimeoutError(
                f"Unit of work exceeded {self.settings.transaction_timeout_seconds}s"
            )

    def commit(self) -> None:
        self.check_deadline()
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session

    def _rollback_quietly(self) -> None:
        try:
            self.rollback()
        except STORE_FAILURES:
            log.warning("Rollback failed; discarding the connection", exc_info=True)

    def _set_postgres_timeouts(self, session: Session) -> None:
        lock_ms = int(self.settings.lock_timeout_seconds * 1000)
        session.execute(
            text("SELECT set_config('lock_timeout', :value, true)"),
            {"value": f"{lock_ms}ms"},
        )
        if self._deadline is not None:
            statement_ms = max(int((self._deadline - time.monotonic()) * 1000), 1)
            session.execute(
                text("SELECT set_config('statement_timeout', :value, true)"),
                {"value": f"{statement_ms}ms"},
            )


class SqlAlchemyUnitOfWork(BaseSqlAlchemyUnitOfWork[ContactRepositories]):
    """Unit of work managing SQLAlchemy sessions for contact reconciliation."""

    def _build_repositories(self, session: Session) -> ContactRepositories:
        return ContactRepositories(
            contacts=SqlAlchemyContactRepository(session, guard=self.check_deadline),
        )


if TYPE_CHECKING:
    from contact_identity.domain.ports.unit_of_work import ContactUnitOfWork

    _uow_check: ContactUnitOfWork = SqlAlchemyUnitOfWork()

"""SQLAlchemy adapter package for the contact store."""

from __future__ import annotations

from .mappings import (
    contact_table,
    mapper_registry,
    reconciliation_lock_table,
    start_mappers,
)
from .repositories import SqlAlchemyContactRepository
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    build_engine,
    ping_store,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyContactRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_engine",
    "contact_table",
    "mapper_registry",
    "ping_store",
    "reconciliation_lock_table",
    "shutdown",
    "start_mappers",
    "startup",
]

"""Alembic environment configuration for the contact store."""

from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, pool

from contact_identity.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from contact_identity.adapters.sqlalchemy.migrations import configure_migration_logging
from contact_identity.config import get_database_config

config = context.config

configure_migration_logging(config)

start_mappers()

target_metadata = mapper_registry.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _run_contact_migrations(**target: object) -> None:
    # Batch mode: SQLite cannot ALTER constraints in place.
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=True,
        compare_type=True,
        compare_server_default=True,
        **target,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit the contact store DDL as SQL without a live connection."""

    _run_contact_migrations(url=_database_url(), literal_binds=True)


def run_migrations_online() -> None:
    """Migrate the caller's connection, or a short-lived engine of our own."""

    existing_connection = config.attributes.get("connection")
    if existing_connection is not None:
        _run_contact_migrations(connection=existing_connection)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _run_contact_migrations(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

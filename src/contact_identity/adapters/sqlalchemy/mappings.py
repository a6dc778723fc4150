"""SQLAlchemy mapping metadata for the contact model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from contact_identity.domain.model import Contact, LinkRole

log = logging.getLogger(__name__)

WRITE_LOCK_ROW_ID: Final[int] = 1


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

link_role_type = Enum(
    LinkRole,
    native_enum=False,
    length=16,
    values_callable=lambda roles: [role.value for role in roles],
    validate_strings=True,
)

contact_table = Table(
    "contact",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=True),
    Column("phone_number", String(64), nullable=True),
    Column("link_precedence", link_role_type, key="link_role", nullable=False),
    Column("linked_id", Integer, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("deleted_at", UTCDateTime(), nullable=True),
    CheckConstraint(
        "email IS NOT NULL OR phone_number IS NOT NULL",
        name="contact_info_required",
    ),
    CheckConstraint(
        "(link_precedence = 'primary' AND linked_id IS NULL)"
        " OR (link_precedence = 'secondary' AND linked_id IS NOT NULL)",
        name="linkage_matches_role",
    ),
    Index("ix_contact_email", "email"),
    Index("ix_contact_phone_number", "phone_number"),
    Index("ix_contact_linked_id", "linked_id"),
)

# Single-row table; updating its row is how an atomic unit takes write access.
reconciliation_lock_table = Table(
    "reconciliation_lock",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("acquired_at", UTCDateTime(), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Contact, contact_table)

    configure_mappers()
    return mapper_registry


"""Create contact and reconciliation_lock tables.

Revision ID: 0001_contact_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_contact_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "contact",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone_number", sa.String(length=64), nullable=True),
        sa.Column("link_precedence", sa.String(length=16), nullable=False),
        sa.Column("linked_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "email IS NOT NULL OR phone_number IS NOT NULL",
            name=op.f("ck_contact_contact_info_required"),
        ),
        sa.CheckConstraint(
            "(link_precedence = 'primary' AND linked_id IS NULL)"
            " OR (link_precedence = 'secondary' AND linked_id IS NOT NULL)",
            name=op.f("ck_contact_linkage_matches_role"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_contact")),
    )
    op.create_index("ix_contact_email", "contact", ["email"], unique=False)
    op.create_index("ix_contact_phone_number", "contact", ["phone_number"], unique=False)
    op.create_index("ix_contact_linked_id", "contact", ["linked_id"], unique=False)

    lock_table = op.create_table(
        "reconciliation_lock",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_reconciliation_lock")),
    )
    op.bulk_insert(lock_table, [{"id": 1, "acquired_at": None}])


def downgrade() -> None:
    op.drop_table("reconciliation_lock")
    op.drop_index("ix_contact_linked_id", table_name="contact")
    op.drop_index("ix_contact_phone_number", table_name="contact")
    op.drop_index("ix_contact_email", table_name="contact")
    op.drop_table("contact")

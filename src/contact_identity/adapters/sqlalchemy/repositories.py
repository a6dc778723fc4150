"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import or_, select, update

from contact_identity.adapters.sqlalchemy.mappings import contact_table
from contact_identity.domain.model import Contact, LinkRole, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session


def _no_guard() -> None:
    return None


class SqlAlchemyContactRepository:
    """Contact lookups and linkage writes.

    ``guard`` runs before every statement; the unit of work uses it to enforce
    its deadline. Cluster reads refresh already-loaded objects so a re-read
    inside a unit reflects the unit's own bulk updates.
    """

    def __init__(self, session: Session, *, guard: Callable[[], None] | None = None) -> None:
        self.session = session
        self._guard = guard or _no_guard

    def find_by_email_or_phone(self, email: str | None, phone_number: str | None) -> list[Contact]:
        conditions: list[ColumnElement[bool]] = []
        if email is not None:
            conditions.append(contact_table.c.email == email)
        if phone_number is not None:
            conditions.append(contact_table.c.phone_number == phone_number)
        if not conditions:
            return []
        return self._fetch(self._live_contacts().where(or_(*conditions)))

    def find_cluster_by_root_ids(self, root_ids: Iterable[int]) -> list[Contact]:
        ids = tuple(dict.fromkeys(root_ids))
        if not ids:
            return []
        stmt = self._live_contacts().where(
            or_(contact_table.c.id.in_(ids), contact_table.c.linked_id.in_(ids))
        )
        return self._fetch(stmt)

    def create_contact(self, contact: Contact) -> Contact:
        self._guard()
        self.session.add(contact)
        self.session.flush()
        return contact

    def update_linkage(self, ids: Iterable[int], role: LinkRole, linked_id: int | None) -> int:
        target_ids = tuple(dict.fromkeys(ids))
        if not target_ids:
            return 0
        stmt = (
            update(Contact)
            .where(contact_table.c.id.in_(target_ids))
            .where(contact_table.c.deleted_at.is_(None))
            .values(link_role=role, linked_id=linked_id, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        self._guard()
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount

    @staticmethod
    def _live_contacts() -> Select[tuple[Contact]]:
        return (
            select(Contact)
            .where(contact_table.c.deleted_at.is_(None))
            .order_by(contact_table.c.created_at, contact_table.c.id)
            .execution_options(populate_existing=True)
        )

    def _fetch(self, stmt: Select[tuple[Contact]]) -> list[Contact]:
        self._guard()
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from contact_identity.domain.ports import ContactRepository

    _session_stub = cast("Session", object())
    _repo_check: ContactRepository = SqlAlchemyContactRepository(_session_stub)

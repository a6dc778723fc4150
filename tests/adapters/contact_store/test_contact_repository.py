"""Exercise the SQLAlchemy contact repository against a migrated SQLite store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import text

from contact_identity.adapters.sqlalchemy import SqlAlchemyContactRepository
from contact_identity.domain.model import Contact, LinkRole

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

BASE_TIME = datetime(2025, 1, 1, tzinfo=UTC)


def _store(session: Session, *contacts: Contact) -> SqlAlchemyContactRepository:
    repository = SqlAlchemyContactRepository(session)
    for contact in contacts:
        repository.create_contact(contact)
    session.commit()
    return repository


def test_create_contact_assigns_increasing_ids(sqlite_session: Session) -> None:
    first = Contact.representative(email="a@x.com", phone_number=None)
    second = Contact.representative(email=None, phone_number="1")

    _store(sqlite_session, first, second)

    assert first.id is not None
    assert second.id is not None
    assert second.id > first.id


def test_find_by_email_or_phone_matches_either_field(sqlite_session: Session) -> None:
    by_email = Contact.representative(email="a@x.com", phone_number=None)
    by_phone = Contact.representative(email=None, phone_number="111")
    unrelated = Contact.representative(email="z@x.com", phone_number="999")
    repository = _store(sqlite_session, by_email, by_phone, unrelated)

    matches = repository.find_by_email_or_phone("a@x.com", "111")

    assert [contact.id for contact in matches] == [by_email.id, by_phone.id]
    assert repository.find_by_email_or_phone(None, None) == []
    assert repository.find_by_email_or_phone("A@X.COM", None) == []


def test_lookups_return_stored_order_by_creation_time(sqlite_session: Session) -> None:
    newer = Contact(email="a@x.com", created_at=BASE_TIME + timedelta(minutes=5))
    older = Contact(phone_number="1", created_at=BASE_TIME)
    repository = _store(sqlite_session, newer, older)

    matches = repository.find_by_email_or_phone("a@x.com", "1")

    assert [contact.id for contact in matches] == [older.id, newer.id]
    assert matches[0].created_at == BASE_TIME


def test_lookups_ignore_soft_deleted_contacts(sqlite_session: Session) -> None:
    deleted = Contact(email="a@x.com", deleted_at=BASE_TIME)
    repository = _store(sqlite_session, deleted)

    assert repository.find_by_email_or_phone("a@x.com", None) == []
    assert deleted.id is not None
    assert repository.find_cluster_by_root_ids((deleted.id,)) == []


def test_find_cluster_by_root_ids_loads_roots_and_their_members(sqlite_session: Session) -> None:
    rep = Contact.representative(email="a@x.com", phone_number=None)
    other = Contact.representative(email="b@x.com", phone_number=None)
    repository = _store(sqlite_session, rep, other)
    member = Contact.member_of(rep, email=None, phone_number="1")
    _store(sqlite_session, member)

    cluster = repository.find_cluster_by_root_ids([rep.require_id(), rep.require_id()])

    assert [contact.id for contact in cluster] == [rep.id, member.id]


def test_update_linkage_rewrites_role_and_target(sqlite_session: Session) -> None:
    primary = Contact.representative(email="a@x.com", phone_number=None)
    stale = Contact.representative(email=None, phone_number="111")
    repository = _store(sqlite_session, primary, stale)

    changed = repository.update_linkage([stale.require_id()], LinkRole.MEMBER, primary.id)
    sqlite_session.commit()

    assert changed == 1
    stored = sqlite_session.execute(
        text("SELECT link_precedence, linked_id, updated_at FROM contact WHERE id = :id"),
        {"id": stale.id},
    ).one()
    assert stored.link_precedence == "secondary"
    assert stored.linked_id == primary.id
    assert stored.updated_at is not None
    assert repository.update_linkage([], LinkRole.MEMBER, primary.id) == 0


def test_link_role_is_stored_as_precedence_label(sqlite_session: Session) -> None:
    rep = Contact.representative(email="a@x.com", phone_number=None)
    _store(sqlite_session, rep)

    stored = sqlite_session.execute(
        text("SELECT link_precedence FROM contact WHERE id = :id"), {"id": rep.id}
    ).scalar_one()

    assert stored == "primary"


def test_guard_runs_before_each_statement(sqlite_session: Session) -> None:
    calls: list[str] = []
    repository = SqlAlchemyContactRepository(sqlite_session, guard=lambda: calls.append("x"))

    repository.find_by_email_or_phone("a@x.com", None)
    repository.find_cluster_by_root_ids((1,))
    repository.update_linkage((1,), LinkRole.MEMBER, 2)

    assert len(calls) == 3


def test_guard_failure_stops_the_statement(sqlite_session: Session) -> None:
    class _Expired(Exception):
        pass

    def guard() -> None:
        raise _Expired

    repository = SqlAlchemyContactRepository(sqlite_session, guard=guard)

    with pytest.raises(_Expired):
        repository.create_contact(Contact.representative(email="a@x.com", phone_number=None))
    assert not sqlite_session.new


def test_update_linkage_refreshes_contacts_loaded_in_the_session(
    sqlite_session: Session,
) -> None:
    primary = Contact.representative(email="a@x.com", phone_number=None)
    stale = Contact.representative(email=None, phone_number="111")
    repository = _store(sqlite_session, primary, stale)
    younger = Contact.member_of(stale, email="c@x.com", phone_number=None)
    _store(sqlite_session, younger)
    loaded = repository.find_cluster_by_root_ids((primary.require_id(), stale.require_id()))

    repository.update_linkage(
        [stale.require_id(), younger.require_id()], LinkRole.MEMBER, primary.id
    )

    by_id = {contact.id: contact for contact in loaded}
    assert by_id[stale.id].link_role is LinkRole.MEMBER
    assert by_id[stale.id].linked_id == primary.id
    assert by_id[younger.id].linked_id == primary.id
    assert by_id[primary.id].is_representative


def test_update_linkage_skips_soft_deleted_contacts(sqlite_session: Session) -> None:
    primary = Contact.representative(email="a@x.com", phone_number=None)
    gone = Contact(phone_number="111", deleted_at=BASE_TIME)
    repository = _store(sqlite_session, primary, gone)

    changed = repository.update_linkage([gone.require_id()], LinkRole.MEMBER, primary.id)

    assert changed == 0

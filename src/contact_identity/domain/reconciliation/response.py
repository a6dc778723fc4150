"""Project a cluster into the consolidated identity returned to callers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contact_identity.domain.model import ConsolidatedIdentity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contact_identity.domain.model import Contact


def build_identity(primary: Contact, cluster: Iterable[Contact]) -> ConsolidatedIdentity:
    """Primary's own facts first, then each Member's in stored order, deduplicated.

    ``cluster`` may include the primary itself; it is skipped when walking Members.
    """

    primary_id = primary.require_id()
    members = [contact for contact in cluster if contact.id != primary_id]

    emails: dict[str, None] = {}
    phones: dict[str, None] = {}
    for contact in (primary, *members):
        if contact.email is not None:
            emails.setdefault(contact.email, None)
        if contact.phone_number is not None:
            phones.setdefault(contact.phone_number, None)

    return ConsolidatedIdentity(
        primary_contact_id=primary_id,
        emails=tuple(emails),
        phone_numbers=tuple(phones),
        secondary_contact_ids=tuple(contact.require_id() for contact in members),
    )

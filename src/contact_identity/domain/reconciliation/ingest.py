"""Append a Member when a submitted fact is new to its (merged) cluster."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contact_identity.domain.model import Contact

from .resolve import verify_membership

if TYPE_CHECKING:
    from contact_identity.domain.model import IdentifyRequest
    from contact_identity.domain.ports import ContactRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestResult:
    cluster: tuple[Contact, ...]
    created: Contact | None = None


def new_facts(request: IdentifyRequest, cluster: tuple[Contact, ...]) -> tuple[bool, bool]:
    """Return whether the submitted email and phone are absent from ``cluster``."""

    emails = {contact.email for contact in cluster if contact.email is not None}
    phones = {contact.phone_number for contact in cluster if contact.phone_number is not None}
    is_new_email = request.email is not None and request.email not in emails
    is_new_phone = request.phone_number is not None and request.phone_number not in phones
    return is_new_email, is_new_phone


def ingest_fact(
    contacts: ContactRepository,
    primary: Contact,
    request: IdentifyRequest,
) -> IngestResult:
    """Re-read the cluster and add one Member if the request carries new information.

    The re-read must happen in the same atomic unit as the merge, after it; an
    earlier or outside read would let two units both decide a fact is new.
    """

    primary_id = primary.require_id()
    cluster = tuple(contacts.find_cluster_by_root_ids((primary_id,)))
    verify_membership((primary_id,), cluster)

    is_new_email, is_new_phone = new_facts(request, cluster)
    if not (is_new_email or is_new_phone):
        log.debug("No new facts for cluster %s", primary_id)
        return IngestResult(cluster=cluster)

    member = contacts.create_contact(
        Contact.member_of(primary, email=request.email, phone_number=request.phone_number)
    )
    log.info(
        "Added member %s to cluster %s (new_email=%s, new_phone=%s)",
        member.id,
        primary_id,
        is_new_email,
        is_new_phone,
    )
    return IngestResult(cluster=(*cluster, member), created=member)

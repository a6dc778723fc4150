"""The identify operation: resolve, merge, ingest, and project one cluster.

Flow:
1) look up direct matches without write access
2) if they already describe one settled cluster holding every submitted fact,
   answer from that read
3) otherwise, in one atomic unit with write access, re-read the matches and
   either create a new Representative or merge the touched clusters and
   ingest any new fact
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from contact_identity.domain.errors import ClusterConsistencyError
from contact_identity.domain.model import Contact

from .atomic import run_atomically
from .ingest import ingest_fact, new_facts
from .merge import merge_clusters
from .primary import select_primary
from .resolve import find_inconsistency, resolve_clusters, root_ids_for, verify_membership
from .response import build_identity

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from contact_identity.domain.model import ConsolidatedIdentity, IdentifyRequest
    from contact_identity.domain.ports import (
        ContactRepositories,
        ContactRepository,
        ContactUnitOfWork,
    )

log = logging.getLogger(__name__)


@dataclass(slots=True)
class IdentifyContact:
    """Return the consolidated identity for a submitted email and/or phone number."""

    unit_of_work: Callable[[], ContactUnitOfWork]

    def run(self, request: IdentifyRequest) -> ConsolidatedIdentity:
        with self.unit_of_work() as uow:
            contacts = uow.repositories.contacts
            matches = contacts.find_by_email_or_phone(request.email, request.phone_number)
            settled = _settled_identity(contacts, matches, request) if matches else None

        if settled is not None:
            log.debug("Cluster %s already holds the submitted facts", settled.primary_contact_id)
            return settled

        return run_atomically(
            self.unit_of_work,
            partial(_reconcile, request=request, expected_match=bool(matches)),
        )


def _settled_identity(
    contacts: ContactRepository,
    matches: Sequence[Contact],
    request: IdentifyRequest,
) -> ConsolidatedIdentity | None:
    """Answer from a read-only view when nothing needs writing, else ``None``.

    These reads hold no write access and may straddle a concurrent merge, so any
    sign of a second cluster or inconsistent linkage defers to the locked path,
    which re-reads and raises on real corruption.
    """

    try:
        root_ids = root_ids_for(matches)
    except ClusterConsistencyError:
        return None
    if len(root_ids) != 1:
        return None

    cluster = tuple(contacts.find_cluster_by_root_ids(root_ids))
    if find_inconsistency(root_ids, cluster) is not None:
        return None
    if any(new_facts(request, cluster)):
        return None

    primary = next(contact for contact in cluster if contact.is_representative)
    return build_identity(primary, cluster)


def _reconcile(
    repositories: ContactRepositories,
    *,
    request: IdentifyRequest,
    expected_match: bool,
) -> ConsolidatedIdentity:
    contacts = repositories.contacts
    matches = contacts.find_by_email_or_phone(request.email, request.phone_number)

    if not matches:
        created = contacts.create_contact(
            Contact.representative(email=request.email, phone_number=request.phone_number)
        )
        log.info("Created representative contact %s", created.id)
        return build_identity(created, (created,))

    if not expected_match:
        log.warning(
            "Concurrent request created matching contact(s) %s; merging instead of creating",
            [contact.id for contact in matches],
        )

    resolved = resolve_clusters(contacts, matches)
    verify_membership(resolved.root_ids, resolved.members)
    selection = select_primary(resolved.members)
    merge_clusters(contacts, selection, resolved.members)
    ingested = ingest_fact(contacts, selection.primary, request)
    return build_identity(selection.primary, ingested.cluster)

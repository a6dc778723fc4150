"""Map directly matched contacts to the full membership of their clusters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contact_identity.domain.errors import ClusterConsistencyError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contact_identity.domain.model import Contact
    from contact_identity.domain.ports import ContactRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedClusters:
    """Union of every cluster touched by a set of matches."""

    root_ids: tuple[int, ...]
    members: tuple[Contact, ...]


def root_ids_for(matches: Iterable[Contact]) -> tuple[int, ...]:
    """Return the Representative id each match resolves to, first-seen order."""

    roots: dict[int, None] = {}
    for contact in matches:
        root_id = contact.root_id
        if root_id is None:
            raise ClusterConsistencyError(
                f"Member contact {contact.id} has no representative",
                contact_ids=(contact.require_id(),),
            )
        roots.setdefault(root_id, None)
    return tuple(roots)


def resolve_clusters(contacts: ContactRepository, matches: Sequence[Contact]) -> ResolvedClusters:
    root_ids = root_ids_for(matches)
    members = tuple(contacts.find_cluster_by_root_ids(root_ids))
    log.debug(
        "Resolved %s match(es) to roots %s (%s members)", len(matches), root_ids, len(members)
    )
    return ResolvedClusters(root_ids=root_ids, members=members)


def find_inconsistency(root_ids: Sequence[int], members: Sequence[Contact]) -> str | None:
    """Describe the first invariant violation in a loaded cluster set, if any."""

    representative_ids = {contact.id for contact in members if contact.is_representative}
    for root_id in root_ids:
        if root_id not in representative_ids:
            return f"Root {root_id} is not a live representative"
    for contact in members:
        if not contact.is_representative and contact.linked_id not in representative_ids:
            return f"Member {contact.id} links to {contact.linked_id}, not a live representative"
    return None


def verify_membership(root_ids: Sequence[int], members: Sequence[Contact]) -> None:
    """Refuse to continue when stored linkage breaks the cluster invariants."""

    problem = find_inconsistency(root_ids, members)
    if problem is not None:
        raise ClusterConsistencyError(
            problem,
            contact_ids=tuple(contact.require_id() for contact in members),
        )

"""Deterministic choice of a cluster's Representative."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from contact_identity.domain.errors import ClusterConsistencyError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contact_identity.domain.model import Contact


@dataclass(frozen=True, slots=True)
class PrimarySelection:
    primary: Contact
    stale: tuple[Contact, ...] = ()

    @property
    def needs_merge(self) -> bool:
        return bool(self.stale)


def select_primary(members: Iterable[Contact]) -> PrimarySelection:
    """Pick the oldest Representative; every other Representative is stale.

    Ordering is ``(created_at, id)`` so equal timestamps still yield one answer.
    """

    representatives = sorted(
        (contact for contact in members if contact.is_representative),
        key=lambda contact: contact.seniority_key,
    )
    if not representatives:
        raise ClusterConsistencyError("Cluster has no representative contact")
    return PrimarySelection(primary=representatives[0], stale=tuple(representatives[1:]))

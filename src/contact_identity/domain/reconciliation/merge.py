"""Collapse several clusters into the one headed by the true primary.

Must run inside an atomic unit that already holds write access: demoting the
stale Representatives and repointing their Members is one change, and no other
unit may observe it half applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contact_identity.domain.model import LinkRole

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contact_identity.domain.model import Contact
    from contact_identity.domain.ports import ContactRepository

    from .primary import PrimarySelection

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeResult:
    primary_id: int
    demoted_ids: tuple[int, ...] = ()
    repointed_ids: tuple[int, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.demoted_ids or self.repointed_ids)


def merge_clusters(
    contacts: ContactRepository,
    selection: PrimarySelection,
    members: Sequence[Contact],
) -> MergeResult:
    primary_id = selection.primary.require_id()
    if not selection.needs_merge:
        return MergeResult(primary_id=primary_id)

    demoted_ids = tuple(contact.require_id() for contact in selection.stale)
    stale_ids = set(demoted_ids)
    repointed_ids = tuple(
        contact.require_id()
        for contact in members
        if not contact.is_representative and contact.linked_id in stale_ids
    )

    contacts.update_linkage(demoted_ids, LinkRole.MEMBER, primary_id)
    if repointed_ids:
        contacts.update_linkage(repointed_ids, LinkRole.MEMBER, primary_id)

    log.info(
        "Merged clusters into %s: demoted=%s, repointed=%s",
        primary_id,
        demoted_ids,
        repointed_ids,
    )
    return MergeResult(
        primary_id=primary_id,
        demoted_ids=demoted_ids,
        repointed_ids=repointed_ids,
    )

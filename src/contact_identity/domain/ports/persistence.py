"""Ports for persisting contact records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contact_identity.domain.model import Contact, LinkRole


@runtime_checkable
class ContactRepository(Protocol):
    """Persistence contract for contact records.

    Every lookup ignores soft-deleted rows and returns contacts in stored order,
    oldest first (``created_at`` then ``id``).
    """

    def find_by_email_or_phone(
        self, email: str | None, phone_number: str | None
    ) -> Sequence[Contact]: ...

    def find_cluster_by_root_ids(self, root_ids: Iterable[int]) -> Sequence[Contact]: ...

    def create_contact(self, contact: Contact) -> Contact: ...

    def update_linkage(self, ids: Iterable[int], role: LinkRole, linked_id: int | None) -> int: ...

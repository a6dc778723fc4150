"""Contact records and the value objects exchanged with the identify boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from contact_identity.domain.errors import InvalidIdentifyRequestError
from contact_identity.domain.model.enums import LinkRole


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Contact:
    """One persisted identity fact set.

    A Representative is the canonical record of its cluster and has no
    ``linked_id``. A Member points directly at its cluster's Representative.
    ``id`` is assigned by the store on insert.
    """

    id: int | None = None
    email: str | None = None
    phone_number: str | None = None
    link_role: LinkRole = LinkRole.REPRESENTATIVE
    linked_id: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.email is None and self.phone_number is None:
            raise ValueError("Contact requires an email or a phone number")
        if self.link_role is LinkRole.REPRESENTATIVE and self.linked_id is not None:
            raise ValueError("Representative contacts cannot link to another contact")
        if self.link_role is LinkRole.MEMBER:
            if self.linked_id is None:
                raise ValueError("Member contacts must link to a representative")
            if self.id is not None and self.linked_id == self.id:
                raise ValueError("Member contacts cannot link to themselves")

    @classmethod
    def representative(cls, *, email: str | None, phone_number: str | None) -> Contact:
        return cls(email=email, phone_number=phone_number)

    @classmethod
    def member_of(
        cls,
        representative: Contact,
        *,
        email: str | None,
        phone_number: str | None,
    ) -> Contact:
        return cls(
            email=email,
            phone_number=phone_number,
            link_role=LinkRole.MEMBER,
            linked_id=representative.require_id(),
        )

    @property
    def is_representative(self) -> bool:
        return self.link_role is LinkRole.REPRESENTATIVE

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def root_id(self) -> int | None:
        """Id of the Representative this contact resolves to."""
        if self.is_representative:
            return self.id
        return self.linked_id

    @property
    def seniority_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.require_id())

    def require_id(self) -> int:
        if self.id is None:
            raise ValueError("Contact has not been persisted yet")
        return self.id


@dataclass(frozen=True, slots=True)
class IdentifyRequest:
    """A partial identity fact: an email, a phone number, or both."""

    email: str | None = None
    phone_number: str | None = None

    def __post_init__(self) -> None:
        if self.email is None and self.phone_number is None:
            raise InvalidIdentifyRequestError(
                "At least one of 'email' or 'phoneNumber' must be provided"
            )


@dataclass(frozen=True, slots=True)
class ConsolidatedIdentity:
    """The caller-facing projection of one cluster."""

    primary_contact_id: int
    emails: tuple[str, ...]
    phone_numbers: tuple[str, ...]
    secondary_contact_ids: tuple[int, ...]

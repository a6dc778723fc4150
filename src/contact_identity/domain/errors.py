"""Error taxonomy surfaced by the identity core.

Every error carries ``retryable`` so callers can tell a transient store failure
(safe to retry the whole identify call) from bad input or corrupt data.
"""

from __future__ import annotations

from typing import ClassVar


class IdentityError(Exception):
    """Base class for identity reconciliation failures."""

    retryable: ClassVar[bool] = False


class InvalidIdentifyRequestError(IdentityError, ValueError):
    """Neither an email nor a phone number was submitted."""


class StoreUnavailableError(IdentityError):
    """The contact store could not be reached or refused the unit of work."""

    retryable: ClassVar[bool] = True


class UnitOfWorkTimeoutError(StoreUnavailableError):
    """An atomic unit could not get write access or ran past its deadline."""


class ClusterConsistencyError(IdentityError):
    """Persisted linkage violates the cluster invariants (prior corruption)."""

    def __init__(self, message: str, *, contact_ids: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.contact_ids = contact_ids

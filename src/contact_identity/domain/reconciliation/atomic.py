"""Scoped transactions for the write paths of the reconciliation core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from contact_identity.domain.ports import ContactRepositories, ContactUnitOfWork


def run_atomically[T](
    unit_of_work_factory: Callable[[], ContactUnitOfWork],
    work: Callable[[ContactRepositories], T],
) -> T:
    """Run ``work`` with exclusive write access; commit on return, roll back on error.

    The unit of work rolls back on any exception leaving the ``with`` block,
    including a failed or timed-out commit, so each call ends in exactly one
    commit or one rollback.
    """

    with unit_of_work_factory() as uow:
        uow.acquire_write_lock()
        result = work(uow.repositories)
        uow.commit()
    return result

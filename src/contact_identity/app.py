"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from contact_identity.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    is_started,
    ping_store,
    startup,
)
from contact_identity.domain.ports.unit_of_work import ContactUnitOfWork
from contact_identity.domain.reconciliation import IdentifyContact

if TYPE_CHECKING:
    from contact_identity.domain.model import ConsolidatedIdentity
    from contact_identity.ui.schema import IdentifyPayload

UnitOfWorkFactory = Callable[[], ContactUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def identify_contact(
    payload: IdentifyPayload,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ConsolidatedIdentity:
    """Reconcile the submitted facts against the configured contact store."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    request = payload.to_request()
    log.debug(
        "Identify request: email=%s, phone=%s",
        request.email is not None,
        request.phone_number is not None,
    )

    identity = IdentifyContact(unit_of_work=effective_uow).run(request)

    log.info(
        "Identify resolved: primary=%s, secondaries=%s",
        identity.primary_contact_id,
        len(identity.secondary_contact_ids),
    )
    return identity


def store_health() -> None:
    """Raise ``StoreUnavailableError`` if the contact store cannot be reached."""

    _ensure_started()
    ping_store()

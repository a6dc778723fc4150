from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from contact_identity.domain.errors import (
    ClusterConsistencyError,
    StoreUnavailableError,
    UnitOfWorkTimeoutError,
)
from contact_identity.domain.model import ConsolidatedIdentity
from contact_identity.ui import cli

if TYPE_CHECKING:
    from contact_identity.ui.schema import IdentifyPayload


def _identity() -> ConsolidatedIdentity:
    return ConsolidatedIdentity(
        primary_contact_id=1,
        emails=("a@x.com",),
        phone_numbers=("1", "2"),
        secondary_contact_ids=(2,),
    )


def test_identify_prints_consolidated_contact(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: list[IdentifyPayload] = []

    def fake_identify(payload: IdentifyPayload) -> ConsolidatedIdentity:
        captured.append(payload)
        return _identity()

    monkeypatch.setattr(cli, "identify_contact", fake_identify)

    cli.main(["identify", "--email", "a@x.com", "--phone", "2"])

    assert captured[0].email == "a@x.com"
    assert captured[0].phone_number == "2"
    body = json.loads(capsys.readouterr().out)
    assert body["contact"]["primaryContactId"] == 1
    assert body["contact"]["phoneNumbers"] == ["1", "2"]


def test_identify_without_facts_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_identify(_payload: IdentifyPayload) -> ConsolidatedIdentity:
        raise AssertionError("core must not run on invalid input")

    monkeypatch.setattr(cli, "identify_contact", fake_identify)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["identify"])

    assert excinfo.value.code == 2


def test_unknown_command_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["merge-everything"])

    assert excinfo.value.code == 2


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (StoreUnavailableError("down"), 75),
        (UnitOfWorkTimeoutError("slow"), 75),
        (ClusterConsistencyError("corrupt"), 1),
        (RuntimeError("unexpected"), 1),
    ],
)
def test_identify_failures_map_to_exit_codes(
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
    code: int,
) -> None:
    def fake_identify(_payload: IdentifyPayload) -> ConsolidatedIdentity:
        raise error

    monkeypatch.setattr(cli, "identify_contact", fake_identify)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["identify", "--phone", "1"])

    assert excinfo.value.code == code


def test_health_reports_ok(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    calls: list[bool] = []
    monkeypatch.setattr(cli, "store_health", lambda: calls.append(True))

    cli.main(["health"])

    assert calls == [True]
    assert capsys.readouterr().out.strip() == "ok"


def test_health_store_down_is_retryable(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_health() -> None:
        raise StoreUnavailableError("down")

    monkeypatch.setattr(cli, "store_health", fake_health)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["health"])

    assert excinfo.value.code == 75

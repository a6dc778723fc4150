from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from alembic.config import Config

from contact_identity.adapters.sqlalchemy import migrations
from contact_identity.adapters.sqlalchemy.migrations import configure_migration_logging

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def logging_calls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    calls: list[str] = []
    monkeypatch.setattr(migrations, "configure_logging", lambda: calls.append("default"))
    monkeypatch.setattr(migrations, "fileConfig", lambda path: calls.append(f"file:{path.name}"))
    return calls


def test_programmatic_config_keeps_caller_logging(logging_calls: list[str]) -> None:
    configure_migration_logging(Config())

    assert logging_calls == []


def test_pyproject_config_falls_back_to_default_logging(
    tmp_path: Path, logging_calls: list[str]
) -> None:
    configure_migration_logging(Config(toml_file=str(tmp_path / "pyproject.toml")))

    assert logging_calls == ["default"]


def test_missing_ini_falls_back_to_default_logging(
    tmp_path: Path, logging_calls: list[str]
) -> None:
    configure_migration_logging(Config(file_=str(tmp_path / "alembic.ini")))

    assert logging_calls == ["default"]


def test_existing_ini_uses_its_logging_sections(tmp_path: Path, logging_calls: list[str]) -> None:
    ini = tmp_path / "alembic.ini"
    ini.write_text("[alembic]\nscript_location = migrations\n")

    configure_migration_logging(Config(file_=str(ini)))

    assert logging_calls == ["file:alembic.ini"]

"""Utilities for managing Alembic migrations within the SQLAlchemy adapter."""

from __future__ import annotations

from logging.config import fileConfig
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from contact_identity.config import configure_logging, get_database_config

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _build_config(database_uri: str | None = None) -> Config:
    """Return an Alembic Config pointing at the packaged migration scripts."""

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        # ConfigParser interpolation treats "%" specially.
        config.set_main_option("sqlalchemy.url", database_uri.replace("%", "%%"))
    return config


def configure_migration_logging(config: Config) -> None:
    """Set up logging for standalone `alembic` runs.

    Programmatic upgrades carry no config file and keep the caller's logging.
    """

    if config.config_file_name is not None:
        config_path = Path(config.config_file_name)
        if config_path.suffix == ".ini" and config_path.exists():
            fileConfig(config_path)
            return
        configure_logging()
    elif config.toml_file_name is not None:
        configure_logging()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    if engine is not None:
        config = _build_config()
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config = _build_config(database_uri or get_database_config().uri)
    command.upgrade(config, "head")

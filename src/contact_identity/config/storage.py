"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import positive_float_env
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "contact-identity"
DEFAULT_DB_FILENAME: Final[str] = "contacts.db"

DEFAULT_LOCK_TIMEOUT_SECONDS: Final[float] = 5.0
DEFAULT_TRANSACTION_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Where the contact store lives and how long an atomic unit may wait or run.

    ``lock_timeout_seconds`` bounds the wait for a pooled connection and for
    exclusive write access. ``transaction_timeout_seconds`` bounds the whole unit.
    """

    uri: str
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    transaction_timeout_seconds: float = DEFAULT_TRANSACTION_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.lock_timeout_seconds <= 0 or self.transaction_timeout_seconds <= 0:
            raise ConfigurationError("Store timeouts must be positive")
        if self.lock_timeout_seconds > self.transaction_timeout_seconds:
            raise ConfigurationError("Lock timeout cannot exceed the transaction timeout")


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("CONTACT_IDENTITY_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    lock_timeout = positive_float_env(
        "CONTACT_IDENTITY_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT_SECONDS
    )
    transaction_timeout = positive_float_env(
        "CONTACT_IDENTITY_TX_TIMEOUT", DEFAULT_TRANSACTION_TIMEOUT_SECONDS
    )
    env_uri = os.getenv("DATABASE_URI")
    if env_uri:
        uri = env_uri
    else:
        storage_config = storage or get_storage_config()
        uri = storage_config.database_uri()
    return DatabaseConfig(
        uri=uri,
        lock_timeout_seconds=lock_timeout,
        transaction_timeout_seconds=transaction_timeout,
    )

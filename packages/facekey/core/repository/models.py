"""Message repository configuration, records and exceptions."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RepositoryConfig(BaseModel):
    """Configuration for a message repository backend.

    Args:
        backend: ``"memory"`` keeps records in process; ``"sqlite"`` persists
            to a local SQLite file; ``"json"`` persists to a local JSON file
            (offline store).
        db_path: SQLite database file. Required when ``backend="sqlite"``.
        json_path: JSON store file. Required when ``backend="json"``.
        enable_wal: Enable SQLite WAL journal mode.
        schema_version: Expected schema version string for the SQLite store.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["memory", "sqlite", "json"] = "memory"
    db_path: Path | None = None
    json_path: Path | None = None
    enable_wal: bool = True
    schema_version: str = "1.0.0"


class MessageRecord(BaseModel):
    """A locked message.

    Created once at lock time and never mutated.

    Args:
        identifier: Repository-assigned identifier (embedded in artifacts).
        created_at: Creation timestamp (UTC).
        key: Sequence key the message is locked behind.
        payload: Message text.
        auxiliary: Copy of the key kept for schema compatibility.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    identifier: int = Field(ge=1)
    created_at: datetime
    key: str
    payload: str
    auxiliary: str


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RepositoryError(Exception):
    """Base exception for all repository errors."""


class DuplicateKeyError(RepositoryError):
    """Raised when a record with the same key already exists."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"A message is already locked behind key {key!r}")


class RepositoryConnectionError(RepositoryError):
    """Raised when the backend cannot be opened or used."""


class RepositorySchemaError(RepositoryError):
    """Raised when the stored schema is missing, invalid, or incompatible."""

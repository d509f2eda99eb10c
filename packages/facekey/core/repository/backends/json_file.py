"""JSON file message repository (offline store).

Keeps every record in a single JSON document. Identifiers continue from the
highest stored identifier, so deleting the newest record and creating
another reuses nothing that still exists. Writes go through a temp file and
an atomic replace so readers never observe a half-written store.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from facekey.core.repository.backends.memory import newest_first
from facekey.core.repository.models import (
    DuplicateKeyError,
    MessageRecord,
    RepositoryConnectionError,
    RepositoryError,
)

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[MessageRecord])


class JsonFileMessageRepository:
    """File-backed message repository for offline use.

    Args:
        path: Location of the JSON store. Created on first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    def initialize(self) -> None:
        """Ensure the parent directory exists and the store is readable."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepositoryConnectionError(f"Cannot create {self._path.parent}: {e}") from e
        with self._lock:
            self._load()

    def close(self) -> None:
        """No-op close. Safe to call multiple times."""

    def _load(self) -> list[MessageRecord]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise RepositoryError(f"Failed to read {self._path}: {e}") from e
        try:
            return _RECORDS.validate_json(raw)
        except ValidationError as e:
            raise RepositoryError(f"Corrupt message store {self._path}: {e}") from e

    def _save(self, records: list[MessageRecord]) -> None:
        data = _RECORDS.dump_json(records, indent=2)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(temp_name, self._path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _write(self, records: list[MessageRecord]) -> None:
        try:
            self._save(records)
        except OSError as e:
            raise RepositoryError(f"Failed to write {self._path}: {e}") from e

    def create(self, key: str, payload: str, auxiliary: str) -> MessageRecord:
        with self._lock:
            records = self._load()
            if any(r.key == key for r in records):
                raise DuplicateKeyError(key)
            record = MessageRecord(
                identifier=max((r.identifier for r in records), default=0) + 1,
                created_at=datetime.now(UTC),
                key=key,
                payload=payload,
                auxiliary=auxiliary,
            )
            self._write([*records, record])
        logger.info("Saved offline message with ID: %d", record.identifier)
        return record

    def lookup_by_key(self, key: str) -> MessageRecord | None:
        with self._lock:
            records = self._load()
        return next((r for r in records if r.key == key), None)

    def list_all(self) -> list[MessageRecord]:
        with self._lock:
            records = self._load()
        return newest_first(records)

    def delete(self, identifier: int) -> bool:
        with self._lock:
            records = self._load()
            kept = [r for r in records if r.identifier != identifier]
            if len(kept) == len(records):
                return False
            self._write(kept)
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._load())

    def clear(self) -> int:
        with self._lock:
            removed = len(self._load())
            self._write([])
        logger.info("Cleared %d offline message(s)", removed)
        return removed

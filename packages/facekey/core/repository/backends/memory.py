"""In-memory message repository.

Keeps records in a dict guarded by a lock. Nothing survives the process;
useful for tests and for embedding applications that bring their own
persistence.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime

from facekey.core.repository.models import DuplicateKeyError, MessageRecord


def newest_first(records: list[MessageRecord]) -> list[MessageRecord]:
    """Sort records newest first (identifier breaks timestamp ties)."""
    return sorted(records, key=lambda r: (r.created_at, r.identifier), reverse=True)


class InMemoryMessageRepository:
    """Process-local message repository.

    Satisfies ``MessageRepositorySync``. Lifecycle methods are idempotent.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[int, MessageRecord] = {}
        self._next_id = 1

    def initialize(self) -> None:
        """No-op initialisation. Safe to call multiple times."""

    def close(self) -> None:
        """No-op close. Safe to call multiple times."""

    def create(self, key: str, payload: str, auxiliary: str) -> MessageRecord:
        with self._lock:
            if any(r.key == key for r in self._records.values()):
                raise DuplicateKeyError(key)
            record = MessageRecord(
                identifier=self._next_id,
                created_at=datetime.now(UTC),
                key=key,
                payload=payload,
                auxiliary=auxiliary,
            )
            self._records[record.identifier] = record
            self._next_id += 1
        return record

    def lookup_by_key(self, key: str) -> MessageRecord | None:
        with self._lock:
            return next((r for r in self._records.values() if r.key == key), None)

    def list_all(self) -> list[MessageRecord]:
        with self._lock:
            records = list(self._records.values())
        return newest_first(records)

    def delete(self, identifier: int) -> bool:
        with self._lock:
            return self._records.pop(identifier, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
        return removed

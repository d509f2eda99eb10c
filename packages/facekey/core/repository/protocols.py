"""Message repository protocol definitions.

All backends satisfy ``MessageRepositorySync``. The protocol is
``@runtime_checkable`` so callers can guard with
``isinstance(repo, MessageRepositorySync)``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from facekey.core.repository.models import MessageRecord


@runtime_checkable
class MessageRepositorySync(Protocol):
    """Synchronous message repository contract.

    Methods block on I/O; async callers run them in a worker thread.

    Lifecycle::

        repo.initialize()
        try:
            record = repo.create(key, "hello", key)
            found = repo.lookup_by_key(key)
        finally:
            repo.close()
    """

    def initialize(self) -> None:
        """Open the backend and apply any pending schema setup."""
        ...

    def close(self) -> None:
        """Release backend resources. Safe to call multiple times."""
        ...

    def create(self, key: str, payload: str, auxiliary: str) -> MessageRecord:
        """Persist a new record.

        Args:
            key: Sequence key. Must be unique across records.
            payload: Message text (length checked by the caller).
            auxiliary: Auxiliary sequence string.

        Returns:
            The stored record with its assigned identifier.

        Raises:
            DuplicateKeyError: If a record with *key* already exists.
            RepositoryError: On any other backend failure. No partial
                record is left behind.
        """
        ...

    def lookup_by_key(self, key: str) -> MessageRecord | None:
        """Return the record locked behind *key*, or None.

        Raises:
            RepositoryError: On backend failure.
        """
        ...

    def list_all(self) -> list[MessageRecord]:
        """Return every record, newest first.

        Raises:
            RepositoryError: On backend failure.
        """
        ...

    def delete(self, identifier: int) -> bool:
        """Delete a record. Returns True if one was removed."""
        ...

    def count(self) -> int:
        """Number of stored records."""
        ...

    def clear(self) -> int:
        """Delete every record. Returns the number removed."""
        ...

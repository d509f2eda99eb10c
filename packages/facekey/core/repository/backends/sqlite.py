"""SQLite message repository backend.

Persists message records to a local SQLite database. Satisfies the
``MessageRepositorySync`` protocol.

Usage::

    from facekey.core.repository.backends.sqlite import SQLiteMessageRepository
    from facekey.core.repository.models import RepositoryConfig
    from pathlib import Path

    cfg = RepositoryConfig(backend="sqlite", db_path=Path("messages.db"))
    repo = SQLiteMessageRepository(cfg)
    repo.initialize()
    try:
        repo.create(key, "hello", key)
    finally:
        repo.close()
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from facekey.core.repository.backends.schema import SchemaBootstrapper
from facekey.core.repository.models import (
    DuplicateKeyError,
    MessageRecord,
    RepositoryConfig,
    RepositoryConnectionError,
    RepositoryError,
    RepositorySchemaError,
)

logger = logging.getLogger(__name__)

_COLUMNS = "id, created_at, expression_hash, message, expression_list"


def _row_to_record(row: sqlite3.Row) -> MessageRecord:
    return MessageRecord(
        identifier=row["id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        key=row["expression_hash"],
        payload=row["message"],
        auxiliary=row["expression_list"],
    )


class SQLiteMessageRepository:
    """SQLite-backed message repository.

    The key column is UNIQUE, so concurrent creates for the same key cannot
    both succeed. Each write runs in its own transaction: an aborted create
    leaves no row behind.

    Args:
        config: Repository configuration with ``db_path`` set.
    """

    def __init__(self, config: RepositoryConfig) -> None:
        self._config = config
        self._conn: sqlite3.Connection | None = None
        # Calls arrive from worker threads; one connection, one writer at a time
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Open the SQLite connection and bootstrap the schema.

        Raises:
            RepositoryConnectionError: If the database cannot be opened.
            RepositorySchemaError: If the stored schema version does not match.
        """
        if self._conn is not None:
            return

        db_path: Path = self._config.db_path  # type: ignore[assignment]
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if self._config.enable_wal:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            bootstrapper = SchemaBootstrapper(conn)
            bootstrapper.bootstrap(self._config.schema_version)
            stored = bootstrapper.get_version()
        except (OSError, sqlite3.Error) as e:
            raise RepositoryConnectionError(f"Cannot open message store {db_path}: {e}") from e

        if stored != self._config.schema_version:
            conn.close()
            raise RepositorySchemaError(
                f"Schema version mismatch: stored={stored!r}, "
                f"expected={self._config.schema_version!r}. "
                "Run a migration or recreate the database."
            )

        self._conn = conn
        logger.debug("Opened message store %s", db_path)

    def close(self) -> None:
        """Close the SQLite connection. Safe to call multiple times."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RepositoryConnectionError("Message store is not initialized")
        return self._conn

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, key: str, payload: str, auxiliary: str) -> MessageRecord:
        conn = self._connection()
        created_at = datetime.now(UTC)
        try:
            with self._lock, conn:
                cursor = conn.execute(
                    "INSERT INTO messages (created_at, expression_hash, message, expression_list) "
                    "VALUES (?, ?, ?, ?)",
                    (created_at.isoformat(), key, payload, auxiliary),
                )
                identifier = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(key) from e
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to create message: {e}") from e

        logger.info("Message created with ID: %s", identifier)
        return MessageRecord(
            identifier=identifier,
            created_at=created_at,
            key=key,
            payload=payload,
            auxiliary=auxiliary,
        )

    def delete(self, identifier: int) -> bool:
        conn = self._connection()
        try:
            with self._lock, conn:
                cursor = conn.execute("DELETE FROM messages WHERE id = ?", (identifier,))
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to delete message {identifier}: {e}") from e
        return cursor.rowcount > 0

    def clear(self) -> int:
        conn = self._connection()
        try:
            with self._lock, conn:
                cursor = conn.execute("DELETE FROM messages")
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to clear messages: {e}") from e
        return cursor.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lookup_by_key(self, key: str) -> MessageRecord | None:
        conn = self._connection()
        try:
            with self._lock:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM messages WHERE expression_hash = ? LIMIT 1",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to look up message: {e}") from e
        return _row_to_record(row) if row is not None else None

    def list_all(self) -> list[MessageRecord]:
        conn = self._connection()
        try:
            with self._lock:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM messages ORDER BY created_at DESC, id DESC"
                ).fetchall()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to list messages: {e}") from e
        return [_row_to_record(row) for row in rows]

    def count(self) -> int:
        conn = self._connection()
        try:
            with self._lock:
                row = conn.execute("SELECT COUNT(*) FROM messages").fetchone()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to count messages: {e}") from e
        return int(row[0])

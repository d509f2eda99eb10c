"""Schema bootstrapper for the SQLite message repository.

This is the only place that creates tables and indexes; the backend module
holds queries only.
"""

from __future__ import annotations

import sqlite3

_SCHEMA_INFO_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_info (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
)

_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        expression_hash TEXT NOT NULL UNIQUE,
        message TEXT NOT NULL,
        expression_list TEXT NOT NULL
    )
    """,
)

_INDEXES = ("CREATE INDEX IF NOT EXISTS idx_messages_created_at ON messages (created_at)",)


class SchemaBootstrapper:
    """Applies the message schema to a SQLite connection.

    Args:
        conn: Open SQLite connection.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def bootstrap(self, version: str = "1.0.0") -> None:
        """Create tables and indexes; record the schema version.

        Idempotent: all DDL uses ``IF NOT EXISTS``. An existing version row
        is left untouched so a mismatch can be detected.

        Args:
            version: Schema version recorded for a fresh database.
        """
        with self._conn:
            self._conn.execute(_SCHEMA_INFO_DDL)
            for ddl in _TABLES:
                self._conn.execute(ddl)
            for ddl in _INDEXES:
                self._conn.execute(ddl)
            self._conn.execute(
                "INSERT OR IGNORE INTO schema_info (key, value) VALUES ('version', ?)",
                (version,),
            )

    def get_version(self) -> str | None:
        """Return the stored schema version, or None if not set."""
        self._conn.execute(_SCHEMA_INFO_DDL)
        row = self._conn.execute("SELECT value FROM schema_info WHERE key='version'").fetchone()
        if row is None:
            return None
        return str(row[0])

"""Message repository: persists (key → message) records.

Backends:
- ``InMemoryMessageRepository``: process-local, the test fake
- ``SQLiteMessageRepository``: local SQLite file
- ``JsonFileMessageRepository``: offline JSON store
"""

from facekey.core.repository.backends.json_file import JsonFileMessageRepository
from facekey.core.repository.backends.memory import InMemoryMessageRepository
from facekey.core.repository.backends.sqlite import SQLiteMessageRepository
from facekey.core.repository.factory import create_message_repository
from facekey.core.repository.models import (
    DuplicateKeyError,
    MessageRecord,
    RepositoryConfig,
    RepositoryConnectionError,
    RepositoryError,
    RepositorySchemaError,
)
from facekey.core.repository.protocols import MessageRepositorySync

__all__ = [
    # Core
    "MessageRecord",
    "MessageRepositorySync",
    "RepositoryConfig",
    "create_message_repository",
    # Backends
    "InMemoryMessageRepository",
    "SQLiteMessageRepository",
    "JsonFileMessageRepository",
    # Errors
    "RepositoryError",
    "DuplicateKeyError",
    "RepositoryConnectionError",
    "RepositorySchemaError",
]

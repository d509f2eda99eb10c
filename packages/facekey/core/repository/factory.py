"""Message repository factory: selects and constructs the configured backend.

Usage::

    from facekey.core.repository.factory import create_message_repository
    from facekey.core.repository.models import RepositoryConfig

    repo = create_message_repository(RepositoryConfig(backend="memory"))
    repo.initialize()
"""

from __future__ import annotations

from facekey.core.repository.models import RepositoryConfig, RepositoryError
from facekey.core.repository.protocols import MessageRepositorySync


def create_message_repository(config: RepositoryConfig) -> MessageRepositorySync:
    """Construct a message repository backend from *config*.

    The returned repository is not yet initialized.

    Args:
        config: Backend selection and connection parameters.

    Returns:
        A ``MessageRepositorySync`` implementation.

    Raises:
        RepositoryError: If the backend is unknown, or if the path it needs
            is missing.
    """
    if config.backend == "memory":
        from facekey.core.repository.backends.memory import InMemoryMessageRepository

        return InMemoryMessageRepository()

    if config.backend == "sqlite":
        if config.db_path is None:
            raise RepositoryError(
                "backend='sqlite' requires a db_path but none was provided. "
                "Set RepositoryConfig.db_path to a valid file path."
            )
        from facekey.core.repository.backends.sqlite import SQLiteMessageRepository

        return SQLiteMessageRepository(config)

    if config.backend == "json":
        if config.json_path is None:
            raise RepositoryError(
                "backend='json' requires a json_path but none was provided. "
                "Set RepositoryConfig.json_path to a valid file path."
            )
        from facekey.core.repository.backends.json_file import JsonFileMessageRepository

        return JsonFileMessageRepository(config.json_path)

    raise RepositoryError(
        f"Unknown message repository backend: {config.backend!r}. "
        "Supported backends: 'memory', 'sqlite', 'json'."
    )

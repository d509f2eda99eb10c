"""Unlock validation and message commit.

Maps one completed sequence to an outcome against the message repository:

- ``validate``: key lookup → ``Matched`` / ``NoMatch`` / ``RepositoryFailure``
- ``commit``: key creation → ``Committed`` / ``KeyConflict`` / ``RepositoryFailure``

``NoMatch`` is definitive ("wrong sequence") and must not be retried as if it
might succeed. ``RepositoryFailure`` is retryable with the same sequence. No
retry or backoff policy is applied here; each call reports once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from facekey.core.keys import KeyCodec, describe_key
from facekey.core.models import ExpressionSequence
from facekey.core.repository.models import DuplicateKeyError, MessageRecord, RepositoryError
from facekey.core.repository.protocols import MessageRepositorySync

logger = logging.getLogger(__name__)

MAX_PAYLOAD_LENGTH = 100


class PayloadError(ValueError):
    """Message text is empty or longer than the allowed maximum."""


@dataclass(frozen=True)
class Matched:
    """The sequence unlocked a message."""

    record: MessageRecord


@dataclass(frozen=True)
class NoMatch:
    """No message is locked behind the attempted key."""

    key: str

    @property
    def attempted(self) -> str:
        """Human-readable form of what was performed."""
        return describe_key(self.key)


@dataclass(frozen=True)
class RepositoryFailure:
    """The repository could not be reached or failed; retryable."""

    error: RepositoryError


@dataclass(frozen=True)
class Committed:
    """A new message record was created."""

    record: MessageRecord


@dataclass(frozen=True)
class KeyConflict:
    """A message is already locked behind this key; the user should re-record."""

    key: str


UnlockOutcome = Matched | NoMatch | RepositoryFailure
CommitOutcome = Committed | KeyConflict | RepositoryFailure


def check_payload(payload: str, max_length: int = MAX_PAYLOAD_LENGTH) -> None:
    """Validate message text before it reaches the repository.

    Raises:
        PayloadError: If *payload* is empty or longer than *max_length*.
    """
    if not payload:
        raise PayloadError("Message must not be empty")
    if len(payload) > max_length:
        raise PayloadError(
            f"Message must be between 1 and {max_length} characters, got {len(payload)}"
        )


class UnlockValidator:
    """Validates attempted sequences and commits new messages.

    Args:
        repository: Message repository (initialized by the caller).
        codec: Key codec. Defaults to ``KeyCodec``.
        max_payload_length: Longest accepted message text.
    """

    def __init__(
        self,
        repository: MessageRepositorySync,
        codec: type[KeyCodec] = KeyCodec,
        max_payload_length: int = MAX_PAYLOAD_LENGTH,
    ) -> None:
        self._repository = repository
        self._codec = codec
        self._max_payload_length = max_payload_length

    def check_payload(self, payload: str) -> None:
        """Raise ``PayloadError`` if *payload* cannot be committed."""
        check_payload(payload, self._max_payload_length)

    def validate(self, sequence: ExpressionSequence) -> UnlockOutcome:
        """Look up the message locked behind *sequence*.

        Args:
            sequence: Completed attempted sequence.

        Returns:
            ``Matched``, ``NoMatch`` or ``RepositoryFailure``.

        Raises:
            ValueError: If the sequence is incomplete (caller bug).
        """
        key = self._codec.encode(sequence)
        logger.info("Validating sequence: %s", key)

        try:
            record = self._repository.lookup_by_key(key)
        except RepositoryError as e:
            logger.warning("Repository lookup failed: %s", e)
            return RepositoryFailure(e)

        if record is None:
            logger.info("No message found for sequence: %s", key)
            return NoMatch(key)

        logger.info("Message %d unlocked", record.identifier)
        return Matched(record)

    def commit(self, sequence: ExpressionSequence, payload: str) -> CommitOutcome:
        """Lock *payload* behind *sequence*.

        Args:
            sequence: Completed recorded sequence.
            payload: Message text.

        Returns:
            ``Committed``, ``KeyConflict`` or ``RepositoryFailure``.

        Raises:
            ValueError: If the sequence is incomplete (caller bug).
            PayloadError: If the payload is empty or too long.
        """
        self.check_payload(payload)
        key = self._codec.encode(sequence)
        logger.info("Creating message with key: %s", key)

        try:
            record = self._repository.create(key, payload, key)
        except DuplicateKeyError:
            logger.info("Key already in use: %s", key)
            return KeyConflict(key)
        except RepositoryError as e:
            logger.warning("Repository create failed: %s", e)
            return RepositoryFailure(e)

        return Committed(record)

    async def validate_async(self, sequence: ExpressionSequence) -> UnlockOutcome:
        """Run ``validate`` in a worker thread."""
        return await asyncio.to_thread(self.validate, sequence)

    async def commit_async(self, sequence: ExpressionSequence, payload: str) -> CommitOutcome:
        """Run ``commit`` in a worker thread."""
        return await asyncio.to_thread(self.commit, sequence, payload)

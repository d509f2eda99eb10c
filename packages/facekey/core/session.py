"""Lock and unlock sessions.

Sessions wire a classifier's event channel to a recorder and run the I/O
pipeline once the sequence is complete. The classifier pushes expressions
onto an ``asyncio.Queue``; the session drains it on the event loop, so the
recorder only ever sees one writer. Pushing ``None`` ends the stream.

Ordering on the lock path is fixed: commit first, then encode the artifact,
since the artifact embeds the committed identifier.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from facekey.core.artifacts.codec import ArtifactCodec
from facekey.core.artifacts.models import ArtifactHandle
from facekey.core.models import ExpressionSequence
from facekey.core.recorder import AppendResult, SequenceRecorder
from facekey.core.unlock import (
    CommitOutcome,
    Committed,
    UnlockOutcome,
    UnlockValidator,
)
from facekey.core.vocabulary import Avatar, Expression

logger = logging.getLogger(__name__)

AppendCallback = Callable[[Expression, AppendResult], None]
ExpressionChannel = asyncio.Queue[Expression | None]


@runtime_checkable
class ExpressionSource(Protocol):
    """Control surface of the upstream expression classifier."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SessionAborted(Exception):
    """The event stream ended before the sequence was complete."""


@dataclass(frozen=True)
class LockResult:
    """Outcome of a lock session.

    Attributes:
        outcome: Commit outcome.
        artifact: Written artifact; only set when the commit succeeded.
    """

    outcome: CommitOutcome
    artifact: ArtifactHandle | None = None


async def record_sequence(
    recorder: SequenceRecorder,
    events: ExpressionChannel,
    on_append: AppendCallback | None = None,
) -> ExpressionSequence:
    """Drain *events* into *recorder* until the sequence is complete.

    Args:
        recorder: Recorder to (re)start and feed.
        events: Expression channel; ``None`` ends the stream.
        on_append: Called with every expression and its append result.

    Returns:
        The completed sequence.

    Raises:
        SessionAborted: If the stream ends first. The recorder is reset.
    """
    recorder.start()
    try:
        while not recorder.is_complete():
            expression = await events.get()
            if expression is None:
                raise SessionAborted(
                    f"Event stream ended after {recorder.current_length()} expression(s)"
                )
            result = recorder.append(expression)
            if on_append is not None:
                on_append(expression, result)
    except BaseException:
        # Any abandoned recording, including a failing callback, returns to idle
        recorder.reset()
        raise
    return recorder.sequence


class _Session:
    def __init__(
        self,
        recorder: SequenceRecorder,
        validator: UnlockValidator,
        source: ExpressionSource | None,
        on_append: AppendCallback | None,
    ) -> None:
        self._recorder = recorder
        self._validator = validator
        self._source = source
        self._on_append = on_append

    async def _record(self, events: ExpressionChannel) -> ExpressionSequence:
        # The classifier only runs while recording; I/O happens with it stopped
        if self._source is not None:
            self._source.start()
        try:
            return await record_sequence(self._recorder, events, self._on_append)
        finally:
            if self._source is not None:
                self._source.stop()


class LockSession(_Session):
    """Records a sequence, commits the message and writes the artifact.

    Args:
        recorder: Recorder owned by this session.
        validator: Validator wrapping the message repository.
        codec: Artifact codec.
        source: Classifier to start while recording and stop before I/O.
        on_append: Feedback callback for every delivered expression.
    """

    def __init__(
        self,
        recorder: SequenceRecorder,
        validator: UnlockValidator,
        codec: ArtifactCodec,
        source: ExpressionSource | None = None,
        on_append: AppendCallback | None = None,
    ) -> None:
        super().__init__(recorder, validator, source, on_append)
        self._codec = codec

    async def run(self, events: ExpressionChannel, payload: str, avatar: Avatar) -> LockResult:
        """Run the lock flow.

        Raises:
            PayloadError: Before recording starts, if the payload is invalid.
            SessionAborted: If the stream ends before five expressions.
            ArtifactError: If the artifact cannot be produced.
        """
        self._validator.check_payload(payload)

        sequence = await self._record(events)
        outcome = await self._validator.commit_async(sequence, payload)
        if not isinstance(outcome, Committed):
            return LockResult(outcome)

        artifact = await self._codec.encode_async(
            sequence, avatar, str(outcome.record.identifier)
        )
        logger.info("Message %d locked", outcome.record.identifier)
        return LockResult(outcome, artifact)


class UnlockSession(_Session):
    """Records an attempted sequence and validates it.

    Args:
        recorder: Recorder owned by this session.
        validator: Validator wrapping the message repository.
        codec: Artifact codec used to read identifier hints.
        source: Classifier to start while recording and stop before I/O.
        on_append: Feedback callback for every delivered expression.
    """

    def __init__(
        self,
        recorder: SequenceRecorder,
        validator: UnlockValidator,
        codec: ArtifactCodec | None = None,
        source: ExpressionSource | None = None,
        on_append: AppendCallback | None = None,
    ) -> None:
        super().__init__(recorder, validator, source, on_append)
        self._codec = codec
        self._attempt: ExpressionSequence | None = None
        self.hint: str | None = None

    @property
    def attempt(self) -> ExpressionSequence | None:
        """Last recorded attempt, kept for retries."""
        return self._attempt

    async def load_hint(self, artifact: ArtifactHandle | Path | str) -> str | None:
        """Read the identifier hint from a received artifact.

        A missing hint never blocks the attempt; recipients can try blind.
        """
        if self._codec is None:
            raise RuntimeError("UnlockSession has no artifact codec to read hints with")
        self.hint = await self._codec.decode_async(artifact)
        if self.hint is None:
            logger.warning("No identifier hint in %s; attempting blind", artifact)
        return self.hint

    async def run(self, events: ExpressionChannel) -> UnlockOutcome:
        """Record an attempt and validate it.

        Raises:
            SessionAborted: If the stream ends before five expressions.
        """
        self._attempt = await self._record(events)
        return await self._validator.validate_async(self._attempt)

    async def retry(self) -> UnlockOutcome:
        """Validate the last attempt again without re-recording."""
        if self._attempt is None:
            raise RuntimeError("No recorded attempt to retry")
        return await self._validator.validate_async(self._attempt)

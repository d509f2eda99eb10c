"""Expression sequence recorder.

Turns a stream of already-classified expression events into exactly one
completed ``ExpressionSequence``. Rejections are reported as ``AppendResult``
values so the owner decides whether to surface feedback.

State machine::

    IDLE --start()--> RECORDING --append() x5--> COMPLETE
      ^                   |                        |
      +------reset()------+--------reset()---------+

``start()`` while RECORDING or COMPLETE restarts from empty.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import KEY_DELIMITER, SEQUENCE_LENGTH, Expression

logger = logging.getLogger(__name__)


class RecorderState(str, Enum):
    """Recorder lifecycle state."""

    IDLE = "idle"
    RECORDING = "recording"
    COMPLETE = "complete"


class AppendResult(str, Enum):
    """Outcome of offering one expression to the recorder.

    Attributes:
        ACCEPTED: Expression appended.
        REJECTED_NOT_RECORDING: Recorder is idle.
        REJECTED_ALREADY_COMPLETE: Sequence already holds five expressions.
        REJECTED_IMMEDIATE_REPEAT: Same as the previous expression.
    """

    ACCEPTED = "accepted"
    REJECTED_NOT_RECORDING = "rejected_not_recording"
    REJECTED_ALREADY_COMPLETE = "rejected_already_complete"
    REJECTED_IMMEDIATE_REPEAT = "rejected_immediate_repeat"

    @property
    def accepted(self) -> bool:
        return self is AppendResult.ACCEPTED


class SequenceRecorder:
    """Accumulates expressions into a single five-entry sequence.

    Safe to share between the classifier's delivery context and a UI context:
    every transition happens under one lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = RecorderState.IDLE
        self._sequence = ExpressionSequence()

    @property
    def state(self) -> RecorderState:
        with self._lock:
            return self._state

    @property
    def sequence(self) -> ExpressionSequence:
        """Immutable snapshot of the expressions recorded so far."""
        with self._lock:
            return self._sequence

    def start(self) -> None:
        """Begin recording from an empty sequence."""
        with self._lock:
            self._sequence = ExpressionSequence()
            self._state = RecorderState.RECORDING
        logger.info("Expression recording started")

    def append(self, expression: Expression) -> AppendResult:
        """Offer one detected expression.

        Args:
            expression: Expression delivered by the classifier.

        Returns:
            ACCEPTED, or the reason the expression was ignored.
        """
        with self._lock:
            if self._state is RecorderState.IDLE:
                result = AppendResult.REJECTED_NOT_RECORDING
            elif self._state is RecorderState.COMPLETE:
                result = AppendResult.REJECTED_ALREADY_COMPLETE
            elif self._sequence.expressions and self._sequence[-1] is expression:
                result = AppendResult.REJECTED_IMMEDIATE_REPEAT
            else:
                self._sequence = self._sequence.appended(expression)
                if self._sequence.is_complete:
                    self._state = RecorderState.COMPLETE
                result = AppendResult.ACCEPTED
            length = len(self._sequence)
            completed = result.accepted and self._state is RecorderState.COMPLETE
            codes = self._sequence.codes()

        if result.accepted:
            logger.debug("Recorded expression %d/%d: %s", length, SEQUENCE_LENGTH, expression.value)
        else:
            logger.debug("Ignored expression %s (%s)", expression.value, result.value)
        if completed:
            logger.info("Recording complete: %s", KEY_DELIMITER.join(codes))
        return result

    def is_complete(self) -> bool:
        with self._lock:
            return self._state is RecorderState.COMPLETE

    def current_length(self) -> int:
        with self._lock:
            return len(self._sequence)

    def reset(self) -> None:
        """Discard the sequence and return to IDLE."""
        with self._lock:
            self._sequence = ExpressionSequence()
            self._state = RecorderState.IDLE
        logger.info("Expression recording reset")

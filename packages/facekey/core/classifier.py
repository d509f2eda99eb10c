"""Blendshape expression classifier.

Turns per-frame facial blendshape coefficients (0.0-1.0, keyed by ARKit
blendshape names such as ``eyeBlinkLeft``) into debounced ``Expression``
events for a ``SequenceRecorder``:

- an expression must be held for ``hold_seconds`` before it is emitted
- at least ``cooldown_seconds`` must pass between two emissions
- each hold emits at most once; a neutral face or a different expression
  starts a new hold
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from facekey.core.vocabulary import Expression

logger = logging.getLogger(__name__)

# Blendshapes inspected for the neutral check
_NEUTRAL_BLENDSHAPES = (
    "eyeBlinkLeft",
    "eyeBlinkRight",
    "tongueOut",
    "jawOpen",
    "browInnerUp",
    "mouthSmileLeft",
    "mouthSmileRight",
    "mouthPucker",
    "cheekPuff",
)


class ClassifierThresholds(BaseModel):
    """Detection thresholds and timing."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    wink_eye_closed: float = Field(default=0.8, ge=0.0, le=1.0)
    wink_eye_open: float = Field(default=0.3, ge=0.0, le=1.0)
    tongue_out: float = Field(default=0.3, ge=0.0, le=1.0)
    jaw_open: float = Field(default=0.5, ge=0.0, le=1.0)
    brow_up: float = Field(default=0.5, ge=0.0, le=1.0)
    mouth_smile: float = Field(default=0.6, ge=0.0, le=1.0)
    mouth_pucker: float = Field(default=0.5, ge=0.0, le=1.0)
    cheek_puff: float = Field(default=0.5, ge=0.0, le=1.0)
    neutral: float = Field(default=0.3, ge=0.0, le=1.0)
    hold_seconds: float = Field(default=0.4, ge=0.0, description="Hold before an expression fires")
    cooldown_seconds: float = Field(default=0.2, ge=0.0, description="Minimum gap between events")


def detect_expression(
    blendshapes: Mapping[str, float], thresholds: ClassifierThresholds
) -> Expression | None:
    """Classify one frame of blendshapes.

    Most specific expression first: tongue out, winks, smooch, surprise,
    smile. Missing blendshapes read as 0.0.
    """

    def value(name: str) -> float:
        return float(blendshapes.get(name, 0.0))

    if value("tongueOut") > thresholds.tongue_out:
        return Expression.TONGUE_OUT

    if (
        value("eyeBlinkLeft") > thresholds.wink_eye_closed
        and value("eyeBlinkRight") < thresholds.wink_eye_open
    ):
        return Expression.WINK_LEFT

    if (
        value("eyeBlinkRight") > thresholds.wink_eye_closed
        and value("eyeBlinkLeft") < thresholds.wink_eye_open
    ):
        return Expression.WINK_RIGHT

    if value("mouthPucker") > thresholds.mouth_pucker or value("cheekPuff") > thresholds.cheek_puff:
        return Expression.SMOOCH

    if value("jawOpen") > thresholds.jaw_open and value("browInnerUp") > thresholds.brow_up:
        return Expression.SURPRISE

    if (
        value("mouthSmileLeft") > thresholds.mouth_smile
        and value("mouthSmileRight") > thresholds.mouth_smile
    ):
        return Expression.SMILE

    return None


def is_neutral(blendshapes: Mapping[str, float], thresholds: ClassifierThresholds) -> bool:
    """Whether every inspected blendshape is below the neutral threshold."""
    return all(
        float(blendshapes.get(name, 0.0)) < thresholds.neutral for name in _NEUTRAL_BLENDSHAPES
    )


class BlendshapeClassifier:
    """Debounces per-frame classifications into expression events.

    Not thread-safe: feed it from the single frame-delivery context.

    Args:
        thresholds: Detection thresholds and timing.
    """

    def __init__(self, thresholds: ClassifierThresholds | None = None) -> None:
        self._thresholds = thresholds or ClassifierThresholds()
        self._active = False
        self._candidate: Expression | None = None
        self._candidate_since: float | None = None
        self._emitted = False
        self._last_emit_at: float | None = None

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Begin emitting events."""
        self._clear_hold()
        self._last_emit_at = None
        self._active = True

    def stop(self) -> None:
        """Stop emitting events and forget any hold in progress."""
        self._active = False
        self._clear_hold()

    def _clear_hold(self) -> None:
        self._candidate = None
        self._candidate_since = None
        self._emitted = False

    def process(self, blendshapes: Mapping[str, float], timestamp: float) -> Expression | None:
        """Consume one frame.

        Args:
            blendshapes: Blendshape name → coefficient.
            timestamp: Frame time in seconds (monotonic).

        Returns:
            An expression when one fires on this frame, else None.
        """
        if not self._active:
            return None

        if is_neutral(blendshapes, self._thresholds):
            self._clear_hold()
            return None

        detected = detect_expression(blendshapes, self._thresholds)
        if detected is None:
            self._clear_hold()
            return None

        if detected is not self._candidate:
            self._candidate = detected
            self._candidate_since = timestamp
            self._emitted = False
            return None

        if self._emitted or self._candidate_since is None:
            return None
        if timestamp - self._candidate_since < self._thresholds.hold_seconds:
            return None
        if (
            self._last_emit_at is not None
            and timestamp - self._last_emit_at < self._thresholds.cooldown_seconds
        ):
            return None

        self._emitted = True
        self._last_emit_at = timestamp
        logger.debug("Expression detected: %s", detected.value)
        return detected

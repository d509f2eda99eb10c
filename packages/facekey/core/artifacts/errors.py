"""Artifact codec exceptions."""

from __future__ import annotations

from facekey.core.vocabulary import Avatar, Expression


class ArtifactError(Exception):
    """Base exception for artifact encode/decode failures."""


class MissingHintImageError(ArtifactError):
    """No hint image is available for an (avatar, expression) pair."""

    def __init__(self, avatar: Avatar, expression: Expression) -> None:
        self.avatar = avatar
        self.expression = expression
        super().__init__(
            f"No hint image for avatar {avatar.value!r}, expression {expression.value!r}"
        )


class RenderError(ArtifactError):
    """The image backend failed while composing frames."""


class ArtifactWriteError(ArtifactError):
    """The artifact could not be written to storage."""


class TextRecognitionError(ArtifactError):
    """The text recognizer failed to run."""

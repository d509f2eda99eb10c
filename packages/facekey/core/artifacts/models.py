"""Artifact models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Frame durations (milliseconds); GIF stores them in centiseconds
FIRST_FRAME_DURATION_MS = 1500
FRAME_DURATION_MS = 700

# 0 = loop forever
LOOP_FOREVER = 0


class ArtifactHandle(BaseModel):
    """Reference to a written artifact. The caller owns its lifetime.

    Args:
        path: Location of the GIF file.
        identifier: Identifier burned into the artifact.
        frame_count: Number of frames (one per expression).
        width: Frame width in pixels.
        height: Frame height in pixels.
        file_size_bytes: Size of the written file.
        content_hash: SHA-256 hex digest of the file contents.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path
    identifier: str
    frame_count: int = Field(ge=1)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    file_size_bytes: int = Field(ge=0)
    content_hash: str

    def exists(self) -> bool:
        return self.path.exists()

    def delete(self) -> None:
        """Remove the artifact file. Safe to call more than once."""
        self.path.unlink(missing_ok=True)

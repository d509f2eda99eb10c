"""Configuration models for facekey."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from facekey.core.classifier import ClassifierThresholds
from facekey.core.repository.models import RepositoryConfig
from facekey.core.vocabulary import Avatar


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Text log format (ignored when structured)",
    )
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")
    filename: str | None = Field(default=None, description="Log file; stderr when None")


class ArtifactConfig(BaseModel):
    """Artifact generation and hint-image configuration.

    Hint images come from ``sprite_dir`` sprite sheets, else from
    ``hint_dir`` per-file artwork, else from generated placeholders.
    """

    output_dir: Path | None = Field(
        default=None, description="Where artifacts are written (system temp dir when None)"
    )
    file_prefix: str = Field(
        default="facekey",
        pattern=r"^[A-Za-z0-9-]+$",
        description="Naming-convention prefix used for housekeeping",
    )
    font_path: Path | None = Field(default=None, description="TTF font for overlays")
    id_opacity: float = Field(default=0.7, gt=0.0, le=1.0, description="Identifier token opacity")
    sprite_dir: Path | None = Field(default=None, description="Directory of <avatar>-sprite.png")
    hint_dir: Path | None = Field(default=None, description="Directory of <avatar>/<code>.png")
    tesseract_cmd: str | None = Field(default=None, description="Path to the tesseract binary")


class AppConfig(BaseModel):
    """Application configuration."""

    model_config = ConfigDict(extra="forbid")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    repository: RepositoryConfig = Field(
        default_factory=lambda: RepositoryConfig(
            backend="sqlite", db_path=Path.home() / ".facekey" / "messages.db"
        )
    )
    artifacts: ArtifactConfig = Field(default_factory=ArtifactConfig)
    classifier: ClassifierThresholds = Field(default_factory=ClassifierThresholds)
    default_avatar: Avatar = Avatar.BEAR
    max_payload_length: int = Field(default=100, gt=0, le=100)

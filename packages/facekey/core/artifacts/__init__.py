"""Shareable animated artifacts.

Encodes a completed expression sequence plus a message identifier into a
looping GIF with burned-in hints, and recovers the identifier by OCR.
"""

from facekey.core.artifacts.codec import ArtifactCodec, frame_durations, load_frame
from facekey.core.artifacts.errors import (
    ArtifactError,
    ArtifactWriteError,
    MissingHintImageError,
    RenderError,
    TextRecognitionError,
)
from facekey.core.artifacts.hints import (
    DirectoryHintProvider,
    HintImageProvider,
    InMemoryHintProvider,
    PlaceholderHintProvider,
    SpriteSheetHintProvider,
)
from facekey.core.artifacts.models import ArtifactHandle
from facekey.core.artifacts.ocr import TesseractRecognizer, TextRecognizer, parse_identifier
from facekey.core.artifacts.renderer import FrameRenderer

__all__ = [
    # Codec
    "ArtifactCodec",
    "ArtifactHandle",
    "FrameRenderer",
    "frame_durations",
    "load_frame",
    # Hint images
    "HintImageProvider",
    "SpriteSheetHintProvider",
    "DirectoryHintProvider",
    "InMemoryHintProvider",
    "PlaceholderHintProvider",
    # Recognition
    "TextRecognizer",
    "TesseractRecognizer",
    "parse_identifier",
    # Errors
    "ArtifactError",
    "MissingHintImageError",
    "RenderError",
    "ArtifactWriteError",
    "TextRecognitionError",
]

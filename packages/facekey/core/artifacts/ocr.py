"""Identifier recovery from artifact frames.

Recognition is best-effort: callers treat a missing identifier as "no hint
available", never as a reason to block unlocking.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, runtime_checkable

import pytesseract
from PIL import Image, ImageOps

from facekey.core.artifacts.errors import TextRecognitionError

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"ID:(\d+)", re.IGNORECASE)
_DIGITS_PATTERN = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")

# Sparse text: find as much text as possible in no particular order
_TESSERACT_CONFIG = "--psm 11"


@runtime_checkable
class TextRecognizer(Protocol):
    """Extracts text from a raster image."""

    def recognize(self, image: Image.Image) -> str:
        """Return all recognized text (possibly empty).

        Raises:
            TextRecognitionError: If the recognizer cannot run.
        """
        ...


class TesseractRecognizer:
    """Tesseract OCR via pytesseract.

    Frames are small, so they are upscaled and converted to greyscale before
    recognition.

    Args:
        tesseract_cmd: Path to the tesseract binary. Uses PATH when None.
        scale: Integer upscale factor applied before recognition.
    """

    def __init__(self, tesseract_cmd: str | None = None, scale: int = 3) -> None:
        if scale < 1:
            raise ValueError(f"scale must be >= 1, got {scale}")
        self._tesseract_cmd = tesseract_cmd
        self._scale = scale

    def recognize(self, image: Image.Image) -> str:
        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        prepared = ImageOps.grayscale(image.convert("RGB"))
        if self._scale > 1:
            prepared = prepared.resize(
                (prepared.width * self._scale, prepared.height * self._scale),
                Image.Resampling.LANCZOS,
            )

        try:
            return pytesseract.image_to_string(prepared, config=_TESSERACT_CONFIG)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise TextRecognitionError(f"Tesseract OCR failed: {e}") from e


def parse_identifier(text: str) -> str | None:
    """Parse an identifier out of recognized text.

    Looks for ``ID:<digits>`` (case-insensitive, whitespace-tolerant), then
    falls back to the first run of digits anywhere in the text.

    Args:
        text: Raw recognized text.

    Returns:
        The digit string, or None when the text holds no digits.

    Example:
        >>> parse_identifier("ID: 42")
        '42'
        >>> parse_identifier("Smooch 5")
        '5'
    """
    clean = _WHITESPACE.sub("", text)

    match = _ID_PATTERN.search(clean)
    if match:
        return match.group(1)

    match = _DIGITS_PATTERN.search(clean)
    if match:
        return match.group(0)

    return None

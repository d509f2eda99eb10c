"""PIL/Pillow frame renderer for animated artifacts.

Composites the burned-in overlays onto a hint image:
- the expression label (bottom-left)
- the 1-based frame position (bottom-right)
- optionally the ``ID:<identifier>`` token (top-left, small and translucent)

Overlay text is drawn with a white fill and a black stroke so it stays
legible on any background.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from facekey.core.artifacts.errors import RenderError

logger = logging.getLogger(__name__)

_TEXT_FILL = (255, 255, 255)
_TEXT_STROKE = (0, 0, 0)

# Backdrop that hint transparency is flattened onto
_BACKGROUND = (255, 255, 255, 255)

# Minimum font sizes in pixels
_MIN_LABEL_FONT_SIZE = 12
_MIN_ID_FONT_SIZE = 10

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


def format_identifier_token(identifier: str) -> str:
    """Literal identifier token burned into frames."""
    return f"ID:{identifier}"


class FrameRenderer:
    """Renders artifact frames from hint images.

    Args:
        font_path: Optional .ttf font. Falls back to Pillow's default font.
        id_opacity: Opacity (0-1) of the identifier token.
    """

    def __init__(self, font_path: Path | None = None, id_opacity: float = 0.7) -> None:
        if not 0.0 < id_opacity <= 1.0:
            raise ValueError(f"id_opacity must be in (0, 1], got {id_opacity}")
        self._font_path = font_path
        self._id_opacity = id_opacity
        self._fonts: dict[int, Font] = {}

    def render(
        self,
        hint: Image.Image,
        label: str,
        position: int,
        identifier: str | None = None,
    ) -> Image.Image:
        """Compose one frame.

        Args:
            hint: Hint image for the frame's expression.
            label: Human label of the expression.
            position: 1-based frame position.
            identifier: If given, also burn the identifier token.

        Returns:
            RGB frame the size of the hint image.

        Raises:
            RenderError: If Pillow fails to compose the frame.
        """
        try:
            return self._render(hint, label, position, identifier)
        except (OSError, ValueError) as e:
            raise RenderError(f"Failed to render frame {position} ({label}): {e}") from e

    def _render(
        self,
        hint: Image.Image,
        label: str,
        position: int,
        identifier: str | None,
    ) -> Image.Image:
        width, height = hint.size
        base = Image.new("RGBA", (width, height), _BACKGROUND)
        base.alpha_composite(hint.convert("RGBA"))

        margin = max(4, height // 32)
        label_font = self._font(max(_MIN_LABEL_FONT_SIZE, height // 12))
        stroke = 0
        if isinstance(label_font, ImageFont.FreeTypeFont):
            stroke = max(1, label_font.size // 8)

        draw = ImageDraw.Draw(base)

        # Expression label, bottom-left
        bbox = draw.textbbox((0, 0), label, font=label_font, stroke_width=stroke)
        draw.text(
            (margin - bbox[0], height - margin - bbox[3]),
            label,
            font=label_font,
            fill=_TEXT_FILL,
            stroke_width=stroke,
            stroke_fill=_TEXT_STROKE,
        )

        # Frame position, bottom-right
        index_text = str(position)
        bbox = draw.textbbox((0, 0), index_text, font=label_font, stroke_width=stroke)
        draw.text(
            (width - margin - bbox[2], height - margin - bbox[3]),
            index_text,
            font=label_font,
            fill=_TEXT_FILL,
            stroke_width=stroke,
            stroke_fill=_TEXT_STROKE,
        )

        if identifier is not None:
            base = self._stamp_identifier(base, identifier, margin)

        return base.convert("RGB")

    def _stamp_identifier(self, base: Image.Image, identifier: str, margin: int) -> Image.Image:
        """Overlay the translucent identifier token in the top-left corner."""
        token = format_identifier_token(identifier)
        font = self._font(max(_MIN_ID_FONT_SIZE, base.height // 16))
        alpha = int(255 * self._id_opacity)

        overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        bbox = draw.textbbox((margin, margin), token, font=font)

        # Dark plate behind the token, padded like a caption
        pad_x, pad_y = 4, 2
        draw.rectangle(
            (bbox[0] - pad_x, bbox[1] - pad_y, bbox[2] + pad_x, bbox[3] + pad_y),
            fill=(0, 0, 0, alpha // 2),
        )
        draw.text((margin, margin), token, font=font, fill=(*_TEXT_FILL, alpha))

        return Image.alpha_composite(base, overlay)

    def _font(self, size: int) -> Font:
        """Load (and cache) the font at *size* pixels."""
        if size not in self._fonts:
            if self._font_path and self._font_path.exists():
                self._fonts[size] = ImageFont.truetype(str(self._font_path), size)
            else:
                logger.debug("No custom font available, using PIL default")
                self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

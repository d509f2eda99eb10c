"""Hint image providers.

A hint image is the avatar's picture of one expression. The codec needs one
for every expression it renders; where the picture comes from (static sprite
sheets, per-file artwork, generated imagery) is the provider's concern.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from PIL import Image, ImageDraw

from facekey.core.vocabulary import (
    EXPRESSION_TABLE,
    SPRITE_GRID_COLUMNS,
    SPRITE_GRID_ROWS,
    SPRITE_SIZE,
    Avatar,
    Expression,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class HintImageProvider(Protocol):
    """Lookup of the hint image for an (avatar, expression) pair."""

    def get_hint(self, avatar: Avatar, expression: Expression) -> Image.Image | None:
        """Return the hint image, or None if this provider has none."""
        ...


class SpriteSheetHintProvider:
    """Crops hint images out of per-avatar sprite sheets.

    Each sheet is ``<sprite_dir>/<avatar>-sprite.png``: a 3 x 2 grid of square
    cells, laid out per ``EXPRESSION_TABLE`` grid positions. Sheets are loaded
    once per avatar.

    Args:
        sprite_dir: Directory holding the sprite sheets.
        cell_size: Cell edge in pixels. Defaults to the sheet width / 3.
    """

    def __init__(self, sprite_dir: Path, cell_size: int | None = None) -> None:
        self._sprite_dir = sprite_dir
        self._cell_size = cell_size
        self._sheets: dict[Avatar, Image.Image | None] = {}

    def _sheet(self, avatar: Avatar) -> Image.Image | None:
        if avatar not in self._sheets:
            path = self._sprite_dir / f"{avatar.sprite_sheet_name}.png"
            try:
                with Image.open(path) as img:
                    img.load()
                    self._sheets[avatar] = img.copy()
            except FileNotFoundError:
                logger.warning("Sprite sheet not found: %s", path)
                self._sheets[avatar] = None
        return self._sheets[avatar]

    def get_hint(self, avatar: Avatar, expression: Expression) -> Image.Image | None:
        sheet = self._sheet(avatar)
        if sheet is None:
            return None

        cell = self._cell_size or sheet.width // SPRITE_GRID_COLUMNS
        info = EXPRESSION_TABLE[expression]
        if info.grid_row >= SPRITE_GRID_ROWS or (info.grid_row + 1) * cell > sheet.height:
            logger.warning(
                "Sprite sheet for %s is too small for %s", avatar.value, expression.value
            )
            return None

        left = info.grid_column * cell
        top = info.grid_row * cell
        return sheet.crop((left, top, left + cell, top + cell))


class DirectoryHintProvider:
    """Reads one hint image per file from ``<root>/<avatar>/<short_code>.png``.

    Args:
        root: Directory with one sub-directory per avatar.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    def get_hint(self, avatar: Avatar, expression: Expression) -> Image.Image | None:
        path = self._root / avatar.value / f"{expression.value}.png"
        if not path.is_file():
            return None
        with Image.open(path) as img:
            img.load()
            return img.copy()


class InMemoryHintProvider:
    """Serves hint images from a mapping."""

    def __init__(self, images: Mapping[tuple[Avatar, Expression], Image.Image]) -> None:
        self._images = dict(images)

    def get_hint(self, avatar: Avatar, expression: Expression) -> Image.Image | None:
        image = self._images.get((avatar, expression))
        return image.copy() if image is not None else None


# Background tint per avatar for placeholder tiles
_AVATAR_COLORS: dict[Avatar, tuple[int, int, int]] = {
    Avatar.BEAR: (139, 94, 60),
    Avatar.FOX: (230, 126, 34),
}


class PlaceholderHintProvider:
    """Generates flat placeholder tiles so artifacts can be built without artwork.

    Tiles are deterministic: the avatar picks the tint, the expression's grid
    position shifts the shade and places a marker.

    Args:
        size: Tile edge in pixels.
    """

    def __init__(self, size: int = SPRITE_SIZE) -> None:
        self._size = size

    def get_hint(self, avatar: Avatar, expression: Expression) -> Image.Image | None:
        info = EXPRESSION_TABLE[expression]
        shade = 20 * (info.grid_row * SPRITE_GRID_COLUMNS + info.grid_column)
        r, g, b = _AVATAR_COLORS[avatar]
        color = (min(r + shade, 255), min(g + shade, 255), min(b + shade, 255))

        image = Image.new("RGB", (self._size, self._size), color)
        draw = ImageDraw.Draw(image)
        radius = self._size // 6
        cx = self._size * (info.grid_column + 1) // (SPRITE_GRID_COLUMNS + 1)
        cy = self._size * (info.grid_row + 1) // (SPRITE_GRID_ROWS + 1)
        draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=(250, 240, 220))
        return image

"""Expression and avatar vocabulary.

Defines the closed alphabet of recognizable facial expressions, the avatar
skins used for hint imagery, and the presentation data for each expression.
The enum values are the stable short codes used in sequence keys and must
never be renumbered or reused.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

SEQUENCE_LENGTH = 5
KEY_DELIMITER = ","

# Sprite sheets are 768x512: 3 columns x 2 rows of 256x256 cells
SPRITE_GRID_COLUMNS = 3
SPRITE_GRID_ROWS = 2
SPRITE_SIZE = 256


class Expression(str, Enum):
    """Recognizable facial expression.

    Attributes:
        WINK_LEFT: Left eye closed, right eye open.
        WINK_RIGHT: Right eye closed, left eye open.
        TONGUE_OUT: Tongue visibly out.
        SURPRISE: Jaw open with raised brows.
        SMILE: Both mouth corners up.
        SMOOCH: Lips puckered or cheeks puffed.
    """

    WINK_LEFT = "wink_l"
    WINK_RIGHT = "wink_r"
    TONGUE_OUT = "tongue_out"
    SURPRISE = "surprise"
    SMILE = "smile"
    SMOOCH = "smooch"

    @property
    def code(self) -> str:
        """Stable machine-readable short code."""
        return self.value

    @property
    def label(self) -> str:
        """Human-readable label."""
        return EXPRESSION_TABLE[self].label


class Avatar(str, Enum):
    """Visual skin used to render hint images.

    Attributes:
        BEAR: Bear character.
        FOX: Fox character.
    """

    BEAR = "bear"
    FOX = "fox"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def sprite_sheet_name(self) -> str:
        """Lookup key of this avatar's sprite sheet."""
        return f"{self.value}-sprite"


class ExpressionInfo(BaseModel):
    """Presentation data for one expression.

    Args:
        label: Human-readable label burned into artifact frames.
        emoji: Emoji shown in listings.
        flip_emoji: Whether the emoji should be mirrored when displayed.
        grid_row: Sprite sheet row (0-indexed).
        grid_column: Sprite sheet column (0-indexed).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    emoji: str
    flip_emoji: bool = False
    grid_row: int
    grid_column: int


EXPRESSION_TABLE: Mapping[Expression, ExpressionInfo] = MappingProxyType(
    {
        Expression.WINK_LEFT: ExpressionInfo(
            label="Left Wink", emoji="😉", grid_row=0, grid_column=0
        ),
        Expression.TONGUE_OUT: ExpressionInfo(
            label="Tongue Out", emoji="😛", grid_row=0, grid_column=1
        ),
        Expression.SURPRISE: ExpressionInfo(
            label="Surprise", emoji="😮", grid_row=0, grid_column=2
        ),
        Expression.WINK_RIGHT: ExpressionInfo(
            label="Right Wink", emoji="😉", flip_emoji=True, grid_row=1, grid_column=0
        ),
        Expression.SMILE: ExpressionInfo(label="Smile", emoji="😁", grid_row=1, grid_column=1),
        Expression.SMOOCH: ExpressionInfo(label="Smooch", emoji="😘", grid_row=1, grid_column=2),
    }
)

_BY_CODE: dict[str, Expression] = {expr.value: expr for expr in Expression}


def expression_from_code(code: str) -> Expression | None:
    """Map a short code back to its expression.

    Args:
        code: Short code such as ``"wink_l"``. Matching is exact.

    Returns:
        The matching expression, or None for an unknown code.
    """
    return _BY_CODE.get(code)


def expression_label(expression: Expression) -> str:
    """Return the human-readable label for an expression."""
    return EXPRESSION_TABLE[expression].label

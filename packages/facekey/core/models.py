"""Core sequence model.

An ``ExpressionSequence`` is the ordered list of expressions a user performs.
It is immutable; recorders build a new instance for every accepted append.
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator

from facekey.core.vocabulary import SEQUENCE_LENGTH, Expression


class ExpressionSequence(BaseModel):
    """Ordered expressions, complete once it holds ``SEQUENCE_LENGTH`` entries.

    Invariants:
        - 0 <= length <= SEQUENCE_LENGTH
        - no two consecutive entries are the same expression (non-adjacent
          repeats are allowed)

    Args:
        expressions: Expressions in recorded order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    expressions: tuple[Expression, ...] = Field(default=())

    @field_validator("expressions")
    @classmethod
    def _check_invariants(cls, value: tuple[Expression, ...]) -> tuple[Expression, ...]:
        if len(value) > SEQUENCE_LENGTH:
            raise ValueError(
                f"sequence holds at most {SEQUENCE_LENGTH} expressions, got {len(value)}"
            )
        for position in range(1, len(value)):
            if value[position] == value[position - 1]:
                raise ValueError(
                    f"expression {value[position].value!r} repeats at position {position + 1}"
                )
        return value

    @classmethod
    def of(cls, *expressions: Expression) -> ExpressionSequence:
        """Build a sequence from positional expressions."""
        return cls(expressions=tuple(expressions))

    @property
    def is_complete(self) -> bool:
        return len(self.expressions) == SEQUENCE_LENGTH

    def appended(self, expression: Expression) -> ExpressionSequence:
        """Return a new sequence with *expression* added at the end.

        Raises:
            ValueError: If the result would violate a sequence invariant.
        """
        return ExpressionSequence(expressions=(*self.expressions, expression))

    def codes(self) -> list[str]:
        """Short codes in recorded order."""
        return [expr.value for expr in self.expressions]

    def describe(self, separator: str = " → ") -> str:
        """Human-readable form, e.g. ``"smile → wink_l"``."""
        return separator.join(self.codes())

    def __len__(self) -> int:
        return len(self.expressions)

    def __iter__(self) -> Iterator[Expression]:  # type: ignore[override]
        return iter(self.expressions)

    def __getitem__(self, index: int) -> Expression:
        return self.expressions[index]

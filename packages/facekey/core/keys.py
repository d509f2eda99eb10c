"""Sequence key codec.

A key is the canonical string form of a completed sequence: the five short
codes joined by ``,`` in recorded order, e.g.
``wink_l,tongue_out,surprise,smile,smooch``. It is the storage and lookup key
for message records, so it must stay byte-stable across versions.
"""

from __future__ import annotations

from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import KEY_DELIMITER, SEQUENCE_LENGTH, expression_from_code


class KeyDecodeError(ValueError):
    """Base exception for keys that do not describe a valid sequence."""


class UnknownTokenError(KeyDecodeError):
    """A key token is not a known expression short code."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Unknown expression token: {token!r}")


class WrongLengthError(KeyDecodeError):
    """A key does not hold exactly ``SEQUENCE_LENGTH`` tokens."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Expected {SEQUENCE_LENGTH} tokens, got {count}")


class RepeatedTokenError(KeyDecodeError):
    """Two adjacent key tokens are identical, which no recorder can produce."""

    def __init__(self, token: str, position: int) -> None:
        self.token = token
        self.position = position
        super().__init__(f"Token {token!r} repeats at position {position}")


def encode_key(sequence: ExpressionSequence) -> str:
    """Serialize a completed sequence to its key.

    Args:
        sequence: Sequence holding exactly ``SEQUENCE_LENGTH`` expressions.

    Returns:
        Comma-joined short codes.

    Raises:
        ValueError: If the sequence is not complete (caller bug).
    """
    if not sequence.is_complete:
        raise ValueError(
            f"Cannot encode an incomplete sequence ({len(sequence)}/{SEQUENCE_LENGTH})"
        )
    return KEY_DELIMITER.join(sequence.codes())


def decode_key(key: str) -> ExpressionSequence:
    """Parse a key back into its sequence.

    Args:
        key: Comma-joined short codes.

    Returns:
        The completed sequence.

    Raises:
        WrongLengthError: If the token count is not ``SEQUENCE_LENGTH``.
        UnknownTokenError: If a token is not a known short code.
        RepeatedTokenError: If two adjacent tokens are identical.
    """
    tokens = key.split(KEY_DELIMITER)
    if len(tokens) != SEQUENCE_LENGTH:
        raise WrongLengthError(len(tokens))

    expressions = []
    for position, token in enumerate(tokens, start=1):
        expression = expression_from_code(token)
        if expression is None:
            raise UnknownTokenError(token)
        if expressions and expressions[-1] is expression:
            raise RepeatedTokenError(token, position)
        expressions.append(expression)

    return ExpressionSequence(expressions=tuple(expressions))


def describe_key(key: str, separator: str = " → ") -> str:
    """Render a key for people without validating it."""
    return separator.join(key.split(KEY_DELIMITER))


class KeyCodec:
    """Injectable bundle of the key functions."""

    encode = staticmethod(encode_key)
    decode = staticmethod(decode_key)
    describe = staticmethod(describe_key)

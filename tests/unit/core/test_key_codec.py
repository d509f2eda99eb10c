"""Tests for the sequence key codec."""

from __future__ import annotations

import itertools

import pytest

from facekey.core.keys import (
    KeyCodec,
    KeyDecodeError,
    RepeatedTokenError,
    UnknownTokenError,
    WrongLengthError,
    decode_key,
    describe_key,
    encode_key,
)
from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import Expression

E = Expression


def _all_valid_sequences():
    for combo in itertools.product(list(Expression), repeat=5):
        if all(a is not b for a, b in itertools.pairwise(combo)):
            yield ExpressionSequence(expressions=combo)


def test_encode_known_key(complete_sequence):
    assert encode_key(complete_sequence) == "wink_l,tongue_out,surprise,smile,smooch"


def test_encode_preserves_non_adjacent_repeats(other_sequence):
    assert encode_key(other_sequence) == "smile,surprise,smile,wink_r,smile"


def test_encode_incomplete_sequence_raises():
    with pytest.raises(ValueError, match="incomplete"):
        encode_key(ExpressionSequence.of(E.SMILE, E.SMOOCH))


def test_every_valid_sequence_round_trips():
    sequences = list(_all_valid_sequences())
    assert len(sequences) == 6 * 5**4

    keys = set()
    for seq in sequences:
        key = encode_key(seq)
        assert decode_key(key) == seq
        keys.add(key)

    # Distinct sequences never share a key
    assert len(keys) == len(sequences)


def test_order_matters():
    a = ExpressionSequence.of(E.SMILE, E.SMOOCH, E.SURPRISE, E.WINK_LEFT, E.WINK_RIGHT)
    b = ExpressionSequence.of(E.SMOOCH, E.SMILE, E.SURPRISE, E.WINK_LEFT, E.WINK_RIGHT)
    assert encode_key(a) != encode_key(b)


class TestDecodeErrors:
    def test_unknown_token(self):
        with pytest.raises(UnknownTokenError) as exc_info:
            decode_key("smile,frown,smile,smooch,smile")
        assert exc_info.value.token == "frown"

    def test_too_few_tokens(self):
        with pytest.raises(WrongLengthError) as exc_info:
            decode_key("smile,smooch,smile,smooch")
        assert exc_info.value.count == 4

    def test_too_many_tokens(self):
        with pytest.raises(WrongLengthError):
            decode_key("smile,smooch,smile,smooch,smile,smooch")

    def test_empty_key(self):
        with pytest.raises(WrongLengthError):
            decode_key("")

    def test_adjacent_repeat(self):
        with pytest.raises(RepeatedTokenError) as exc_info:
            decode_key("smile,smile,smooch,surprise,wink_l")
        assert exc_info.value.position == 2

    def test_tokens_are_case_sensitive(self):
        with pytest.raises(UnknownTokenError):
            decode_key("Smile,smooch,smile,smooch,smile")

    def test_errors_share_base_class(self):
        assert issubclass(UnknownTokenError, KeyDecodeError)
        assert issubclass(WrongLengthError, KeyDecodeError)
        assert issubclass(KeyDecodeError, ValueError)


def test_describe_key():
    assert describe_key("smile,surprise,smile,wink_r,smile") == (
        "smile → surprise → smile → wink_r → smile"
    )


def test_codec_bundle_delegates(complete_sequence):
    key = KeyCodec.encode(complete_sequence)
    assert KeyCodec.decode(key) == complete_sequence
    assert KeyCodec.describe(key) == complete_sequence.describe()

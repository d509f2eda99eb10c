"""Tests for ExpressionSequence."""

from __future__ import annotations

import pytest

from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import Expression

E = Expression


def test_empty_by_default():
    seq = ExpressionSequence()
    assert len(seq) == 0
    assert not seq.is_complete


def test_complete_at_five(complete_sequence):
    assert len(complete_sequence) == 5
    assert complete_sequence.is_complete


def test_non_adjacent_repeats_allowed(other_sequence):
    assert other_sequence.codes().count("smile") == 3


def test_adjacent_repeat_rejected():
    with pytest.raises(ValueError, match="repeats at position 2"):
        ExpressionSequence.of(E.SMILE, E.SMILE)


def test_more_than_five_rejected():
    with pytest.raises(ValueError, match="at most 5"):
        ExpressionSequence.of(E.SMILE, E.SMOOCH, E.SMILE, E.SMOOCH, E.SMILE, E.SMOOCH)


def test_appended_returns_new_instance():
    seq = ExpressionSequence.of(E.SMILE)
    longer = seq.appended(E.SURPRISE)
    assert seq.codes() == ["smile"]
    assert longer.codes() == ["smile", "surprise"]


def test_appended_enforces_invariants():
    with pytest.raises(ValueError):
        ExpressionSequence.of(E.SMILE).appended(E.SMILE)


def test_immutable(complete_sequence):
    with pytest.raises(ValueError):
        complete_sequence.expressions = ()


def test_iteration_and_indexing(complete_sequence):
    assert list(complete_sequence)[0] is E.WINK_LEFT
    assert complete_sequence[-1] is E.SMOOCH


def test_describe(complete_sequence):
    assert (
        complete_sequence.describe()
        == "wink_l → tongue_out → surprise → smile → smooch"
    )
    assert complete_sequence.describe(",") == "wink_l,tongue_out,surprise,smile,smooch"

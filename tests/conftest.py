"""Shared pytest fixtures for facekey tests."""

from __future__ import annotations

from pathlib import Path

from PIL import Image
import pytest

from facekey.core.artifacts.codec import ArtifactCodec
from facekey.core.artifacts.hints import InMemoryHintProvider
from facekey.core.models import ExpressionSequence
from facekey.core.repository.backends.memory import InMemoryMessageRepository
from facekey.core.vocabulary import Avatar, Expression

# ============================================================================
# Sequence Fixtures
# ============================================================================


@pytest.fixture
def complete_sequence() -> ExpressionSequence:
    """A valid five-expression sequence using five distinct expressions."""
    return ExpressionSequence.of(
        Expression.WINK_LEFT,
        Expression.TONGUE_OUT,
        Expression.SURPRISE,
        Expression.SMILE,
        Expression.SMOOCH,
    )


@pytest.fixture
def other_sequence() -> ExpressionSequence:
    """A second valid sequence, different from ``complete_sequence``."""
    return ExpressionSequence.of(
        Expression.SMILE,
        Expression.SURPRISE,
        Expression.SMILE,
        Expression.WINK_RIGHT,
        Expression.SMILE,
    )


# ============================================================================
# Repository Fixtures
# ============================================================================


@pytest.fixture
def memory_repository() -> InMemoryMessageRepository:
    """Initialized in-memory message repository."""
    repo = InMemoryMessageRepository()
    repo.initialize()
    return repo


# ============================================================================
# Artifact Fixtures
# ============================================================================


class FakeRecognizer:
    """Text recognizer returning canned text and recording its inputs."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.images: list[Image.Image] = []

    def recognize(self, image: Image.Image) -> str:
        self.images.append(image)
        return self.text


@pytest.fixture
def hint_images() -> dict[tuple[Avatar, Expression], Image.Image]:
    """Solid-colour 128px hint images for every (avatar, expression) pair."""
    images = {}
    for a_index, avatar in enumerate(Avatar):
        for e_index, expression in enumerate(Expression):
            color = (40 * e_index, 100 + 60 * a_index, 200 - 30 * e_index)
            images[(avatar, expression)] = Image.new("RGB", (128, 128), color)
    return images


@pytest.fixture
def hint_provider(hint_images) -> InMemoryHintProvider:
    return InMemoryHintProvider(hint_images)


@pytest.fixture
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def artifact_codec(
    hint_provider: InMemoryHintProvider, artifact_dir: Path, fake_recognizer: FakeRecognizer
) -> ArtifactCodec:
    """Codec writing to a temp dir, with a fake recognizer."""
    return ArtifactCodec(hint_provider, output_dir=artifact_dir, recognizer=fake_recognizer)

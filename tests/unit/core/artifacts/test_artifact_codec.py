"""Tests for the GIF artifact codec."""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path

from PIL import Image
import pytest

from facekey.core.artifacts.codec import ArtifactCodec, frame_durations, load_frame
from facekey.core.artifacts.errors import (
    ArtifactWriteError,
    MissingHintImageError,
    RenderError,
    TextRecognitionError,
)
from facekey.core.artifacts.hints import (
    DirectoryHintProvider,
    InMemoryHintProvider,
    PlaceholderHintProvider,
    SpriteSheetHintProvider,
)
from facekey.core.artifacts.ocr import TesseractRecognizer
from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import Avatar, Expression


def _gif_files(directory):
    return sorted(p.name for p in directory.glob("*.gif"))


class TestEncode:
    def test_writes_five_frame_looping_gif(self, artifact_codec, complete_sequence, artifact_dir):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "17")

        assert handle.exists()
        assert handle.path.parent == artifact_dir
        assert handle.frame_count == 5
        assert handle.identifier == "17"
        assert (handle.width, handle.height) == (128, 128)

        with Image.open(handle.path) as img:
            assert img.format == "GIF"
            assert img.n_frames == 5
            assert img.info["loop"] == 0
            durations = []
            for index in range(img.n_frames):
                img.seek(index)
                durations.append(img.info["duration"])
        assert durations == [1500, 700, 700, 700, 700]

    def test_file_name_follows_convention(self, artifact_codec, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.FOX, "3")
        assert handle.path.name.startswith("facekey_3_")
        assert handle.path.suffix == ".gif"

    def test_handle_metadata_matches_file(self, artifact_codec, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")
        assert handle.file_size_bytes == handle.path.stat().st_size
        assert len(handle.content_hash) == 64

    def test_handle_delete(self, artifact_codec, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")
        handle.delete()
        handle.delete()
        assert not handle.exists()

    def test_frames_follow_sequence_order(self, artifact_dir, fake_recognizer, complete_sequence):
        # Distinct hint colours per expression reveal the frame order
        colours = {expr: (i * 40, 255 - i * 40, 128) for i, expr in enumerate(Expression)}
        provider = InMemoryHintProvider(
            {(Avatar.BEAR, e): Image.new("RGB", (128, 128), c) for e, c in colours.items()}
        )
        codec = ArtifactCodec(provider, output_dir=artifact_dir, recognizer=fake_recognizer)
        handle = codec.encode(complete_sequence, Avatar.BEAR, "5")

        for index, expression in enumerate(complete_sequence):
            frame = load_frame(handle.path, index)
            r, g, b = frame.getpixel((64, 64))
            expected = colours[expression]
            assert abs(r - expected[0]) <= 16
            assert abs(g - expected[1]) <= 16

    def test_identifier_on_first_and_last_frame_only(
        self, artifact_dir, fake_recognizer, complete_sequence
    ):
        provider = InMemoryHintProvider(
            {(Avatar.BEAR, e): Image.new("RGB", (128, 128), (200, 200, 200)) for e in Expression}
        )
        codec = ArtifactCodec(provider, output_dir=artifact_dir, recognizer=fake_recognizer)
        handle = codec.encode(complete_sequence, Avatar.BEAR, "8")

        # The token sits on a dark plate; without it the corner is flat grey
        corner = (0, 0, 64, 24)
        for index in range(5):
            darkest = min(load_frame(handle.path, index).crop(corner).convert("L").getdata())
            assert (darkest < 170) == (index in (0, 4)), index

    def test_non_adjacent_repeats_render_distinct_frames(
        self, artifact_codec, other_sequence, artifact_dir
    ):
        handle = artifact_codec.encode(other_sequence, Avatar.BEAR, "9")
        with Image.open(handle.path) as img:
            assert img.n_frames == 5

    def test_incomplete_sequence_rejected(self, artifact_codec, artifact_dir):
        seq = ExpressionSequence.of(Expression.SMILE, Expression.SMOOCH)
        with pytest.raises(ValueError, match="incomplete"):
            artifact_codec.encode(seq, Avatar.BEAR, "1")
        assert _gif_files(artifact_dir) == []

    @pytest.mark.parametrize("identifier", ["", "abc", "12a", "-1", "4 2"])
    def test_non_numeric_identifier_rejected(self, artifact_codec, complete_sequence, identifier):
        with pytest.raises(ValueError, match="Identifier"):
            artifact_codec.encode(complete_sequence, Avatar.BEAR, identifier)

    def test_missing_hint_image_fails_without_writing(
        self, hint_images, artifact_dir, fake_recognizer, complete_sequence
    ):
        images = dict(hint_images)
        del images[(Avatar.FOX, Expression.SMILE)]
        codec = ArtifactCodec(
            InMemoryHintProvider(images), output_dir=artifact_dir, recognizer=fake_recognizer
        )

        with pytest.raises(MissingHintImageError) as exc_info:
            codec.encode(complete_sequence, Avatar.FOX, "1")

        assert exc_info.value.expression is Expression.SMILE
        assert list(artifact_dir.iterdir()) == []

    def test_placeholder_hints_produce_artifact(
        self, artifact_dir, fake_recognizer, complete_sequence
    ):
        codec = ArtifactCodec(
            PlaceholderHintProvider(size=96), output_dir=artifact_dir, recognizer=fake_recognizer
        )
        handle = codec.encode(complete_sequence, Avatar.FOX, "2")
        assert (handle.width, handle.height) == (96, 96)

    def test_creates_output_dir(self, hint_provider, tmp_path, fake_recognizer, complete_sequence):
        out = tmp_path / "nested" / "out"
        codec = ArtifactCodec(hint_provider, output_dir=out, recognizer=fake_recognizer)
        assert codec.encode(complete_sequence, Avatar.BEAR, "1").path.parent == out

    def test_invalid_prefix_rejected(self, hint_provider):
        with pytest.raises(ValueError, match="file_prefix"):
            ArtifactCodec(hint_provider, file_prefix="../evil")


class TestCorruptHintFiles:
    def test_directory_provider_corrupt_png(self, tmp_path, artifact_dir, complete_sequence):
        hint_dir = tmp_path / "hints"
        bear_dir = hint_dir / "bear"
        bear_dir.mkdir(parents=True)
        for expression in Expression:
            Image.new("RGB", (64, 64), "white").save(bear_dir / f"{expression.value}.png")
        (bear_dir / "smile.png").write_bytes(b"not a png")
        codec = ArtifactCodec(DirectoryHintProvider(hint_dir), output_dir=artifact_dir)

        with pytest.raises(RenderError, match="bear/smile"):
            codec.encode(complete_sequence, Avatar.BEAR, "1")

        assert list(artifact_dir.iterdir()) == []

    def test_sprite_sheet_provider_corrupt_sheet(
        self, tmp_path, artifact_dir, complete_sequence
    ):
        sprite_dir = tmp_path / "sprites"
        sprite_dir.mkdir()
        (sprite_dir / "bear-sprite.png").write_bytes(b"\x00garbage\xff")
        codec = ArtifactCodec(SpriteSheetHintProvider(sprite_dir), output_dir=artifact_dir)

        with pytest.raises(RenderError, match="bear/wink_l"):
            codec.encode(complete_sequence, Avatar.BEAR, "1")

        assert list(artifact_dir.iterdir()) == []


class TestHousekeeping:
    def test_second_encode_replaces_first(self, artifact_codec, complete_sequence, artifact_dir):
        first = artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")
        second = artifact_codec.encode(complete_sequence, Avatar.BEAR, "2")

        assert not first.exists()
        assert second.exists()
        assert _gif_files(artifact_dir) == [second.path.name]

    def test_purges_orphaned_temp_files(self, artifact_codec, complete_sequence, artifact_dir):
        (artifact_dir / ".facekey_abc.part").write_bytes(b"partial")
        artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")
        assert not (artifact_dir / ".facekey_abc.part").exists()

    def test_leaves_unrelated_files_alone(self, artifact_codec, complete_sequence, artifact_dir):
        keep = artifact_dir / "holiday.gif"
        keep.write_bytes(b"GIF89a")
        other_prefix = artifact_dir / "other_1_abc.gif"
        other_prefix.write_bytes(b"GIF89a")

        artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")

        assert keep.exists()
        assert other_prefix.exists()

    def test_purge_stale_counts_removed(self, artifact_codec, artifact_dir):
        (artifact_dir / "facekey_1_a.gif").write_bytes(b"x")
        (artifact_dir / "facekey_2_b.gif").write_bytes(b"x")
        assert artifact_codec.purge_stale() == 2
        assert artifact_codec.purge_stale() == 0

    def test_purge_stale_missing_dir(self, hint_provider, tmp_path):
        codec = ArtifactCodec(hint_provider, output_dir=tmp_path / "absent")
        assert codec.purge_stale() == 0


class TestWriteFailure:
    def test_replace_failure_leaves_no_files(
        self, artifact_codec, complete_sequence, artifact_dir, monkeypatch
    ):
        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)

        with pytest.raises(ArtifactWriteError, match="disk full"):
            artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")

        assert list(artifact_dir.iterdir()) == []

    def test_read_back_failure_is_write_error(
        self, artifact_codec, complete_sequence, monkeypatch
    ):
        def failing_read_bytes(self):
            raise OSError("io error")

        monkeypatch.setattr(Path, "read_bytes", failing_read_bytes)

        with pytest.raises(ArtifactWriteError, match="io error"):
            artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")

    def test_unwritable_output_dir(self, hint_provider, tmp_path, complete_sequence):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        codec = ArtifactCodec(hint_provider, output_dir=blocker / "sub")

        with pytest.raises(ArtifactWriteError):
            codec.encode(complete_sequence, Avatar.BEAR, "1")


class TestDecode:
    def test_reads_last_frame(self, artifact_codec, fake_recognizer, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "42")
        fake_recognizer.text = "ID:42\nSmooch 5"

        assert artifact_codec.decode(handle) == "42"
        assert len(fake_recognizer.images) == 1
        last = load_frame(handle.path, -1)
        assert fake_recognizer.images[0].tobytes() == last.tobytes()

    def test_accepts_path_and_str(self, artifact_codec, fake_recognizer, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "5")
        fake_recognizer.text = "ID:5"
        assert artifact_codec.decode(handle.path) == "5"
        assert artifact_codec.decode(str(handle.path)) == "5"

    def test_no_text_returns_none(self, artifact_codec, fake_recognizer, complete_sequence):
        handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "5")
        fake_recognizer.text = "Smooch"
        assert artifact_codec.decode(handle) is None

    def test_missing_file_returns_none(self, artifact_codec, tmp_path):
        assert artifact_codec.decode(tmp_path / "nope.gif") is None

    def test_not_an_image_returns_none(self, artifact_codec, tmp_path):
        junk = tmp_path / "junk.gif"
        junk.write_bytes(b"definitely not a gif")
        assert artifact_codec.decode(junk) is None

    def test_recognizer_failure_returns_none(self, artifact_dir, hint_provider, complete_sequence):
        class Broken:
            def recognize(self, image):
                raise TextRecognitionError("tesseract missing")

        codec = ArtifactCodec(hint_provider, output_dir=artifact_dir, recognizer=Broken())
        handle = codec.encode(complete_sequence, Avatar.BEAR, "5")
        assert codec.decode(handle) is None

    def test_static_image_uses_only_frame(self, artifact_codec, fake_recognizer, tmp_path):
        still = tmp_path / "still.png"
        Image.new("RGB", (32, 32), (1, 2, 3)).save(still)
        fake_recognizer.text = "ID:8"
        assert artifact_codec.decode(still) == "8"


def test_async_round_trip(artifact_codec, fake_recognizer, complete_sequence):
    async def scenario():
        handle = await artifact_codec.encode_async(complete_sequence, Avatar.FOX, "77")
        fake_recognizer.text = "ID:77"
        return await artifact_codec.decode_async(handle)

    assert asyncio.run(scenario()) == "77"


def test_frame_durations():
    assert frame_durations(5) == [1500, 700, 700, 700, 700]
    assert frame_durations(1) == [1500]


def test_load_frame_out_of_range(artifact_codec, complete_sequence):
    handle = artifact_codec.encode(complete_sequence, Avatar.BEAR, "1")
    with pytest.raises(IndexError):
        load_frame(handle.path, 5)


@pytest.mark.skipif(shutil.which("tesseract") is None, reason="tesseract binary not installed")
@pytest.mark.parametrize("identifier", ["1", "42", "9071"])
def test_tesseract_recovers_identifier(tmp_path, complete_sequence, identifier):
    """End-to-end: the burned-in token survives GIF encoding and OCR."""
    codec = ArtifactCodec(
        PlaceholderHintProvider(),
        output_dir=tmp_path,
        recognizer=TesseractRecognizer(),
    )
    handle = codec.encode(complete_sequence, Avatar.BEAR, identifier)
    assert codec.decode(handle) == identifier

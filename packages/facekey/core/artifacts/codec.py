"""Artifact codec.

Encodes a completed sequence, an avatar and a message identifier into a
looping animated GIF, and recovers the identifier from such a GIF by OCR.
The sequence itself is never recoverable from the artifact: recipients must
perform it.

Frame layout (one frame per expression, in sequence order):
- hint image with the expression label (bottom-left) and position (bottom-right)
- frame 1 and the last frame also carry the ``ID:<identifier>`` token
- frame 1 shows for 1.5 s, the others for 0.7 s; the GIF loops forever

Decode reads the last frame, which is what static previews display.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import re
import tempfile
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from facekey.core.artifacts.errors import (
    ArtifactWriteError,
    MissingHintImageError,
    RenderError,
    TextRecognitionError,
)
from facekey.core.artifacts.hints import HintImageProvider
from facekey.core.artifacts.models import (
    FIRST_FRAME_DURATION_MS,
    FRAME_DURATION_MS,
    LOOP_FOREVER,
    ArtifactHandle,
)
from facekey.core.artifacts.ocr import TesseractRecognizer, TextRecognizer, parse_identifier
from facekey.core.artifacts.renderer import FrameRenderer
from facekey.core.models import ExpressionSequence
from facekey.core.vocabulary import SEQUENCE_LENGTH, Avatar, expression_label

logger = logging.getLogger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"^\d+$")
_TEMP_SUFFIX = ".part"


def frame_durations(frame_count: int) -> list[int]:
    """Per-frame display durations in milliseconds."""
    return [FIRST_FRAME_DURATION_MS] + [FRAME_DURATION_MS] * (frame_count - 1)


def load_frame(path: Path, index: int = -1) -> Image.Image:
    """Load one frame of an animated image as RGB.

    Args:
        path: Image file.
        index: Frame index; negative values count from the end.

    Returns:
        The frame, detached from the file.

    Raises:
        OSError: If the file cannot be read or decoded.
        IndexError: If the frame does not exist.
    """
    with Image.open(path) as img:
        frame_count = getattr(img, "n_frames", 1)
        position = index if index >= 0 else frame_count + index
        if not 0 <= position < frame_count:
            raise IndexError(f"Frame {index} out of range for {frame_count} frames")
        img.seek(position)
        return img.convert("RGB")


class ArtifactCodec:
    """Builds shareable GIF artifacts and reads identifiers back from them.

    Every artifact this codec writes is named ``<prefix>_<identifier>_<hex>.gif``
    in *output_dir*. Before each write, all files following that convention
    (plus orphaned temp files) are deleted, so repeated encodes never
    accumulate artifacts in shared storage.

    Args:
        hints: Provider of per-avatar hint images.
        output_dir: Directory to write artifacts to. Defaults to the system
            temp directory.
        file_prefix: Naming-convention prefix for written artifacts.
        renderer: Frame renderer. Defaults to ``FrameRenderer()``.
        recognizer: Text recognizer for decode. Defaults to Tesseract.
    """

    def __init__(
        self,
        hints: HintImageProvider,
        output_dir: Path | None = None,
        file_prefix: str = "facekey",
        renderer: FrameRenderer | None = None,
        recognizer: TextRecognizer | None = None,
    ) -> None:
        if not file_prefix or not re.fullmatch(r"[A-Za-z0-9-]+", file_prefix):
            raise ValueError(
                f"file_prefix must be alphanumeric (dashes allowed), got {file_prefix!r}"
            )
        self._hints = hints
        self._output_dir = output_dir if output_dir is not None else Path(tempfile.gettempdir())
        self._file_prefix = file_prefix
        self._renderer = renderer or FrameRenderer()
        self._recognizer = recognizer or TesseractRecognizer()

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def file_prefix(self) -> str:
        return self._file_prefix

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def encode(
        self,
        sequence: ExpressionSequence,
        avatar: Avatar,
        identifier: str,
    ) -> ArtifactHandle:
        """Render and write the artifact for a committed message.

        Args:
            sequence: Completed expression sequence.
            avatar: Avatar whose hint images are used.
            identifier: Message identifier (decimal digits).

        Returns:
            Handle to the written GIF.

        Raises:
            ValueError: If the sequence is incomplete or the identifier is
                not a digit string.
            MissingHintImageError: If any hint image is unavailable.
            RenderError: If a hint image cannot be decoded or frame composition fails.
            ArtifactWriteError: If the file cannot be written.
        """
        if not sequence.is_complete:
            raise ValueError(
                f"Cannot encode an incomplete sequence ({len(sequence)}/{SEQUENCE_LENGTH})"
            )
        if not _IDENTIFIER_PATTERN.match(identifier):
            raise ValueError(f"Identifier must be decimal digits, got {identifier!r}")

        logger.info(
            "Generating artifact: avatar=%s id=%s sequence=%s",
            avatar.value,
            identifier,
            ",".join(sequence.codes()),
        )

        # Fetch every hint before rendering anything: a partial artifact is worse than none
        hints = []
        for expression in sequence:
            try:
                hint = self._hints.get_hint(avatar, expression)
            except (OSError, ValueError) as e:
                raise RenderError(
                    f"Cannot load hint for {avatar.value}/{expression.value}: {e}"
                ) from e
            if hint is None:
                raise MissingHintImageError(avatar, expression)
            hints.append(hint)

        last = len(hints)
        frames = [
            self._renderer.render(
                hint,
                label=expression_label(expression),
                position=position,
                identifier=identifier if position in (1, last) else None,
            )
            for position, (expression, hint) in enumerate(zip(sequence, hints, strict=True), 1)
        ]

        return self._write(frames, identifier)

    async def encode_async(
        self,
        sequence: ExpressionSequence,
        avatar: Avatar,
        identifier: str,
    ) -> ArtifactHandle:
        """Run ``encode`` in a worker thread."""
        return await asyncio.to_thread(self.encode, sequence, avatar, identifier)

    def purge_stale(self) -> int:
        """Delete artifacts and temp files left behind by earlier encodes.

        Returns:
            Number of files removed.
        """
        if not self._output_dir.is_dir():
            return 0

        removed = 0
        patterns = (f"{self._file_prefix}_*.gif", f".{self._file_prefix}_*{_TEMP_SUFFIX}")
        for pattern in patterns:
            for stale in self._output_dir.glob(pattern):
                try:
                    stale.unlink()
                    removed += 1
                except FileNotFoundError:
                    continue
        if removed:
            logger.debug("Purged %d stale artifact file(s) from %s", removed, self._output_dir)
        return removed

    def _write(self, frames: list[Image.Image], identifier: str) -> ArtifactHandle:
        """Write frames as a GIF via temp file + atomic rename."""
        final_path = self._output_dir / f"{self._file_prefix}_{identifier}_{uuid.uuid4().hex}.gif"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            self.purge_stale()
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self._file_prefix}_", suffix=_TEMP_SUFFIX, dir=self._output_dir
            )
        except OSError as e:
            raise ArtifactWriteError(f"Cannot prepare {self._output_dir}: {e}") from e

        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                try:
                    frames[0].save(
                        fh,
                        format="GIF",
                        save_all=True,
                        append_images=frames[1:],
                        duration=frame_durations(len(frames)),
                        loop=LOOP_FOREVER,
                        disposal=1,
                    )
                except (ValueError, KeyError) as e:
                    raise RenderError(f"Failed to assemble GIF: {e}") from e
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(temp_path, final_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise ArtifactWriteError(f"Failed to write artifact {final_path}: {e}") from e
        except BaseException:
            # Includes cancellation: never leave a temp file behind
            temp_path.unlink(missing_ok=True)
            raise

        try:
            file_bytes = final_path.read_bytes()
        except OSError as e:
            raise ArtifactWriteError(f"Cannot read back artifact {final_path}: {e}") from e
        handle = ArtifactHandle(
            path=final_path,
            identifier=identifier,
            frame_count=len(frames),
            width=frames[0].width,
            height=frames[0].height,
            file_size_bytes=len(file_bytes),
            content_hash=hashlib.sha256(file_bytes).hexdigest(),
        )
        logger.info("Artifact written: %s (%d bytes)", final_path, handle.file_size_bytes)
        return handle

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, artifact: ArtifactHandle | Path | str) -> str | None:
        """Recover the identifier hint from an artifact.

        Args:
            artifact: Handle or path of a GIF produced by ``encode``.

        Returns:
            The identifier digits, or None when nothing could be recognized.
        """
        path = artifact.path if isinstance(artifact, ArtifactHandle) else Path(artifact)
        logger.info("Extracting identifier from %s", path.name)

        try:
            frame = load_frame(path, index=-1)
        except (OSError, UnidentifiedImageError, IndexError) as e:
            logger.warning("Failed to read last frame of %s: %s", path, e)
            return None

        try:
            text = self._recognizer.recognize(frame)
        except TextRecognitionError as e:
            logger.warning("Text recognition failed for %s: %s", path, e)
            return None

        identifier = parse_identifier(text)
        if identifier is None:
            logger.warning("No identifier found in recognized text %r", text)
        else:
            logger.info("Identifier extracted: %s", identifier)
        return identifier

    async def decode_async(self, artifact: ArtifactHandle | Path | str) -> str | None:
        """Run ``decode`` in a worker thread."""
        return await asyncio.to_thread(self.decode, artifact)

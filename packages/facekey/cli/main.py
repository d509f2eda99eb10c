"""Command-line interface for facekey.

Expressions are given as comma-separated short codes (``smile,wink_l,...``)
and fed through a ``SequenceRecorder``, so immediate repeats and extras are
ignored just as they would be from the camera.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from facekey.core.artifacts import ArtifactCodec, ArtifactError, FrameRenderer, TesseractRecognizer
from facekey.core.config.loader import build_hint_provider, load_app_config
from facekey.core.config.models import AppConfig
from facekey.core.keys import KeyCodec, KeyDecodeError
from facekey.core.models import ExpressionSequence
from facekey.core.recorder import SequenceRecorder
from facekey.core.repository import RepositoryError, create_message_repository
from facekey.core.repository.protocols import MessageRepositorySync
from facekey.core.unlock import (
    Committed,
    KeyConflict,
    Matched,
    NoMatch,
    PayloadError,
    UnlockValidator,
)
from facekey.core.utils.logging import configure_logging
from facekey.core.vocabulary import KEY_DELIMITER, SEQUENCE_LENGTH, Avatar, expression_from_code

console = Console()
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_MATCH = 2


def _error(message: str) -> int:
    console.print(f"[red]ERROR: {escape(message)}[/red]", soft_wrap=True)
    return EXIT_FAILURE


def _record_expressions(text: str) -> ExpressionSequence:
    """Feed comma-separated codes through a recorder, as the camera would.

    Raises:
        ValueError: On an unknown code or fewer than five accepted expressions.
    """
    recorder = SequenceRecorder()
    recorder.start()
    for token in text.replace(" ", "").split(KEY_DELIMITER):
        expression = expression_from_code(token)
        if expression is None:
            raise ValueError(f"Unknown expression code: {token!r}")
        result = recorder.append(expression)
        if not result.accepted:
            console.print(
                f"[yellow]Ignored {expression.value} ({result.value})[/yellow]", highlight=False
            )
    if not recorder.is_complete():
        raise ValueError(
            f"Only {recorder.current_length()} of {SEQUENCE_LENGTH} expressions recorded"
        )
    return recorder.sequence


def _build_codec(config: AppConfig, output_dir: Path | None = None) -> ArtifactCodec:
    artifacts = config.artifacts
    return ArtifactCodec(
        hints=build_hint_provider(config),
        output_dir=output_dir or artifacts.output_dir,
        file_prefix=artifacts.file_prefix,
        renderer=FrameRenderer(font_path=artifacts.font_path, id_opacity=artifacts.id_opacity),
        recognizer=TesseractRecognizer(tesseract_cmd=artifacts.tesseract_cmd),
    )


def _open_repository(config: AppConfig) -> MessageRepositorySync:
    repository = create_message_repository(config.repository)
    repository.initialize()
    return repository


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------


def cmd_key_encode(args: argparse.Namespace, config: AppConfig) -> int:
    """Print the key for the given expression codes."""
    expressions = []
    for code in args.codes:
        expression = expression_from_code(code)
        if expression is None:
            return _error(f"Unknown expression code: {code!r}")
        expressions.append(expression)
    try:
        key = KeyCodec.encode(ExpressionSequence.of(*expressions))
    except ValueError as e:
        return _error(str(e))
    console.print(key, markup=False, highlight=False, soft_wrap=True)
    return EXIT_OK


def cmd_key_decode(args: argparse.Namespace, config: AppConfig) -> int:
    """Print the readable form of a key."""
    try:
        sequence = KeyCodec.decode(args.key)
    except KeyDecodeError as e:
        return _error(str(e))
    console.print(sequence.describe(), markup=False, highlight=False, soft_wrap=True)
    return EXIT_OK


def cmd_lock(args: argparse.Namespace, config: AppConfig) -> int:
    """Lock a message behind a sequence and write its artifact."""
    try:
        sequence = _record_expressions(args.expressions)
    except ValueError as e:
        return _error(f"Invalid expressions: {e}")

    avatar = Avatar(args.avatar) if args.avatar else config.default_avatar
    output_dir = Path(args.out).resolve() if args.out else None

    repository = _open_repository(config)
    try:
        validator = UnlockValidator(repository, max_payload_length=config.max_payload_length)
        try:
            outcome = validator.commit(sequence, args.message)
        except PayloadError as e:
            return _error(str(e))

        if isinstance(outcome, KeyConflict):
            return _error(
                "A message is already locked behind this sequence; record a different one"
            )
        if not isinstance(outcome, Committed):
            return _error(f"Could not save message: {outcome.error}")

        codec = _build_codec(config, output_dir)
        try:
            artifact = codec.encode(sequence, avatar, str(outcome.record.identifier))
        except ArtifactError as e:
            return _error(f"Message {outcome.record.identifier} saved but artifact failed: {e}")
    finally:
        repository.close()

    console.print(f"[green]Message {outcome.record.identifier} locked[/green]")
    console.print(str(artifact.path), markup=False, highlight=False, soft_wrap=True)
    return EXIT_OK


def cmd_unlock(args: argparse.Namespace, config: AppConfig) -> int:
    """Validate an attempted sequence and print the unlocked message."""
    if args.hint:
        identifier = _build_codec(config).decode(Path(args.hint))
        if identifier is None:
            console.print("[yellow]No identifier hint found; attempting blind[/yellow]")
        else:
            console.print(f"Hint: message {identifier}", highlight=False)

    try:
        sequence = _record_expressions(args.expressions)
    except ValueError as e:
        return _error(f"Invalid expressions: {e}")

    repository = _open_repository(config)
    try:
        outcome = UnlockValidator(repository).validate(sequence)
    finally:
        repository.close()

    if isinstance(outcome, Matched):
        console.print(outcome.record.payload, markup=False, highlight=False, soft_wrap=True)
        return EXIT_OK
    if isinstance(outcome, NoMatch):
        console.print(
            f"[red]Wrong sequence:[/red] {escape(outcome.attempted)}",
            highlight=False,
            soft_wrap=True,
        )
        return EXIT_NO_MATCH
    return _error(f"Repository unavailable, try again: {outcome.error}")


def cmd_hint(args: argparse.Namespace, config: AppConfig) -> int:
    """Print the identifier burned into an artifact."""
    path = Path(args.artifact)
    if not path.exists():
        return _error(f"Artifact not found: {path}")
    identifier = _build_codec(config).decode(path)
    if identifier is None:
        return _error(f"No identifier found in {path}")
    console.print(identifier, markup=False, highlight=False)
    return EXIT_OK


def cmd_list(args: argparse.Namespace, config: AppConfig) -> int:
    """List locked messages, newest first."""
    repository = _open_repository(config)
    try:
        records = repository.list_all()
    finally:
        repository.close()

    table = Table(title=f"{len(records)} message(s)")
    table.add_column("ID", justify="right")
    table.add_column("Created")
    table.add_column("Sequence")
    table.add_column("Message")
    for record in records:
        table.add_row(
            str(record.identifier),
            record.created_at.isoformat(timespec="seconds"),
            escape(KeyCodec.describe(record.key)),
            escape(record.payload),
        )
    console.print(table)
    return EXIT_OK


def cmd_delete(args: argparse.Namespace, config: AppConfig) -> int:
    """Delete a message by identifier."""
    repository = _open_repository(config)
    try:
        deleted = repository.delete(args.identifier)
    finally:
        repository.close()
    if not deleted:
        return _error(f"No message with id {args.identifier}")
    console.print(f"[green]Message {args.identifier} deleted[/green]")
    return EXIT_OK


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="facekey",
        description="facekey - lock messages behind facial-expression sequences",
    )
    p.add_argument(
        "--app-config",
        default="facekey.yaml",
        help="Path to app config YAML/JSON (default: facekey.yaml; defaults if missing)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    key = sub.add_parser("key", help="Encode or decode sequence keys")
    key_sub = key.add_subparsers(dest="key_cmd", required=True)
    encode = key_sub.add_parser("encode", help="Encode expression codes into a key")
    encode.add_argument("codes", nargs="+", help="Expression codes, in order")
    encode.set_defaults(handler=cmd_key_encode)
    decode = key_sub.add_parser("decode", help="Describe a key")
    decode.add_argument("key", help="Comma-separated key")
    decode.set_defaults(handler=cmd_key_decode)

    lock = sub.add_parser("lock", help="Lock a message behind a sequence")
    lock.add_argument("--message", required=True, help="Message text (1-100 characters)")
    lock.add_argument("--expressions", required=True, help="Sequence in key form")
    lock.add_argument(
        "--avatar",
        choices=[a.value for a in Avatar],
        default=None,
        help="Avatar drawn in the hint frames (default: from config)",
    )
    lock.add_argument("--out", default=None, help="Artifact output directory")
    lock.set_defaults(handler=cmd_lock)

    unlock = sub.add_parser("unlock", help="Try a sequence against the stored messages")
    unlock.add_argument("--expressions", required=True, help="Attempted sequence in key form")
    unlock.add_argument("--hint", default=None, help="Artifact to read the identifier hint from")
    unlock.set_defaults(handler=cmd_unlock)

    hint = sub.add_parser("hint", help="Read the identifier from an artifact")
    hint.add_argument("artifact", help="Path to a GIF artifact")
    hint.set_defaults(handler=cmd_hint)

    list_ = sub.add_parser("list", help="List locked messages")
    list_.set_defaults(handler=cmd_list)

    delete = sub.add_parser("delete", help="Delete a message")
    delete.add_argument("identifier", type=int, help="Message id")
    delete.set_defaults(handler=cmd_delete)

    return p


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the selected command and return its exit code."""
    args = build_arg_parser().parse_args(argv)

    try:
        config = load_app_config(args.app_config)
    except (ValueError, ValidationError) as e:
        return _error(f"Invalid configuration: {e}")

    configure_logging(
        level="DEBUG" if args.verbose else config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )

    try:
        return args.handler(args, config)
    except RepositoryError as e:
        logger.debug("Repository error", exc_info=True)
        return _error(f"Repository unavailable: {e}")


def main() -> None:
    """Main entry point for CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()

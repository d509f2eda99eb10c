"""Logging setup for facekey.

One call to ``configure_logging`` wires the root logger to stderr or a file,
as plain text or as one JSON object per line. Modules log through
``logging.getLogger(__name__)``; ``get_logger`` adds fixed context such as
the session kind.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at DEBUG
_NOISY_LOGGERS: dict[str, int] = {
    "PIL": logging.WARNING,
    "asyncio": logging.ERROR,
}

# Attributes every LogRecord has; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredJSONFormatter(logging.Formatter):
    """Formats each record as a single JSON line.

    Keys: ``ts``, ``level``, ``logger``, ``msg``, ``where`` and, when
    present, ``exc`` plus any ``extra`` / adapter context fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exc"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": record.exc_text or self.formatException(record.exc_info),
            }

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(entry, default=str, ensure_ascii=False)


def _quiet_noisy_loggers() -> None:
    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    filename: str | None = None,
    structured: bool = False,
) -> None:
    """(Re)configure the root logger.

    Safe to call repeatedly; previous root handlers are replaced.

    Args:
        level: Level name, case-insensitive (``"debug"`` works).
        format_string: Text format. Ignored when *structured* is set.
        filename: Log file. stderr when None, leaving stdout to the CLI.
        structured: Emit JSON lines via ``StructuredJSONFormatter``.

    Example:
        >>> configure_logging(level="DEBUG", structured=True, filename="facekey.jsonl")
    """
    handler: logging.Handler = (
        logging.FileHandler(filename, encoding="utf-8")
        if filename
        else logging.StreamHandler(sys.stderr)
    )
    handler.setFormatter(
        StructuredJSONFormatter()
        if structured
        else logging.Formatter(format_string or DEFAULT_FORMAT)
    )

    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    _quiet_noisy_loggers()


def get_logger(name: str, **context: Any) -> logging.Logger | logging.LoggerAdapter:
    """Return the named logger, bound to *context* if any is given.

    Example:
        >>> log = get_logger(__name__, session="unlock")
        >>> log.info("Attempt recorded")  # record carries session="unlock"
    """
    base = logging.getLogger(name)
    return logging.LoggerAdapter(base, context) if context else base

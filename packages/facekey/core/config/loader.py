"""Reads facekey settings from JSON or YAML files plus environment overrides."""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
import os
from pathlib import Path
from typing import IO, Any

import yaml

from facekey.core.artifacts.hints import (
    DirectoryHintProvider,
    HintImageProvider,
    PlaceholderHintProvider,
    SpriteSheetHintProvider,
)
from facekey.core.config.models import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_APP_CONFIG_PATH = Path("facekey.yaml")

_SUFFIX_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def _parse_json(fh: IO[str]) -> Any:
    return json.load(fh)


def _parse_yaml(fh: IO[str]) -> Any:
    # An empty YAML document parses to None
    return yaml.safe_load(fh) or {}


_PARSERS: dict[str, tuple[Callable[[IO[str]], Any], tuple[type[Exception], ...]]] = {
    "json": (_parse_json, (json.JSONDecodeError,)),
    "yaml": (_parse_yaml, (yaml.YAMLError,)),
}


def detect_format(file_path: Path | str) -> str:
    """Map a settings file suffix to ``"json"`` or ``"yaml"``.

    Raises:
        ValueError: For any other suffix.

    Example:
        >>> detect_format("facekey.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _SUFFIX_FORMATS[suffix]
    except KeyError:
        raise ValueError(f"Unsupported config format: {suffix or '(none)'}") from None


def load_config(path: str | Path) -> dict[str, Any]:
    """Parse a settings file into a plain mapping (no validation).

    Args:
        path: ``.json``, ``.yaml`` or ``.yml`` file.

    Raises:
        FileNotFoundError: If *path* is missing.
        ValueError: On an unknown suffix, a parse error, or a non-mapping root.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    fmt = detect_format(path)
    parse, parse_errors = _PARSERS[fmt]
    with path.open(encoding="utf-8") as fh:
        try:
            content = parse(fh)
        except parse_errors as e:
            raise ValueError(f"Invalid {fmt.upper()} in {path}: {e}") from e

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Build the validated ``AppConfig``.

    A missing file is not an error: defaults apply. ``FACEKEY_*`` and
    ``TESSERACT_CMD`` environment variables are layered on top.

    Raises:
        ValueError: If the file cannot be parsed.
        ValidationError: If a value is out of range or a key is unknown.
    """
    path = Path(path) if path is not None else DEFAULT_APP_CONFIG_PATH

    if path.exists():
        raw = load_config(path)
        logger.debug("Loaded config from %s", path)
    else:
        logger.debug("Config %s not found, using defaults", path)
        raw = {}

    _apply_env_overrides(raw)
    return AppConfig.model_validate(raw)


def _apply_env_overrides(raw_config: dict[str, Any]) -> None:
    """Fill environment overrides into the raw config (mutates it)."""
    db_path = os.getenv("FACEKEY_DB_PATH")
    if db_path:
        logger.debug("Loaded FACEKEY_DB_PATH from environment")
        repository = raw_config.setdefault("repository", {})
        repository["backend"] = "sqlite"
        repository["db_path"] = db_path

    log_level = os.getenv("FACEKEY_LOG_LEVEL")
    if log_level:
        raw_config.setdefault("logging", {})["level"] = log_level.upper()

    output_dir = os.getenv("FACEKEY_OUTPUT_DIR")
    if output_dir:
        raw_config.setdefault("artifacts", {})["output_dir"] = output_dir

    tesseract_cmd = os.getenv("TESSERACT_CMD")
    if tesseract_cmd:
        raw_config.setdefault("artifacts", {}).setdefault("tesseract_cmd", tesseract_cmd)


def build_hint_provider(config: AppConfig) -> HintImageProvider:
    """Choose the hint-image provider configured in *config*."""
    artifacts = config.artifacts
    if artifacts.sprite_dir is not None:
        return SpriteSheetHintProvider(artifacts.sprite_dir)
    if artifacts.hint_dir is not None:
        return DirectoryHintProvider(artifacts.hint_dir)
    logger.info("No hint artwork configured, using placeholder tiles")
    return PlaceholderHintProvider()

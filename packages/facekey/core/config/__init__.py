"""Application configuration."""

from facekey.core.config.loader import build_hint_provider, load_app_config, load_config
from facekey.core.config.models import AppConfig, ArtifactConfig, LoggingConfig

__all__ = [
    "AppConfig",
    "ArtifactConfig",
    "LoggingConfig",
    "build_hint_provider",
    "load_app_config",
    "load_config",
]

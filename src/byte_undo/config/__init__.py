"""Configuration package for Byte-Undo."""

from byte_undo.config.loader import ConfigLoader
from byte_undo.config.models import ChangelogConfig
from byte_undo.config.sources import SettingsFile, environment_overrides

__all__ = [
    "ChangelogConfig",
    "ConfigLoader",
    "SettingsFile",
    "environment_overrides",
]

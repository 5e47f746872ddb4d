"""Layered loading of ChangelogConfig.

Load order (later overrides earlier):
1. Defaults (from ChangelogConfig)
2. User settings (~/.byte_undo/settings.json or .yaml)
3. Project settings (./.byte_undo/settings.json or .yaml)
4. Environment variables (BYTE_UNDO_*)

The loader holds no global state; each instance caches the config it
loaded and callers pass that object explicitly to the undo functions.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from byte_undo.config.models import ChangelogConfig
from byte_undo.config.sources import SettingsFile, environment_overrides
from byte_undo.core import ConfigError, get_logger

logger = get_logger("config.loader")


class ConfigLoader:
    """Builds a ChangelogConfig from settings files and the environment."""

    def __init__(
        self,
        user_dir: Path | None = None,
        project_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize configuration loader.

        Args:
            user_dir: User configuration directory. Defaults to ~/.byte_undo
            project_dir: Project configuration directory. Defaults to ./.byte_undo
            environ: Environment mapping. Defaults to os.environ.
        """
        self.user_dir = user_dir or Path.home() / ".byte_undo"
        self.project_dir = project_dir or Path.cwd() / ".byte_undo"
        self._environ = environ
        self._config: ChangelogConfig | None = None

    @property
    def config(self) -> ChangelogConfig:
        """Loaded configuration, read on first access."""
        if self._config is None:
            self._config = self.load_all()
        return self._config

    def settings_values(self) -> dict[str, Any]:
        """Merged raw values from the user and project settings files.

        A file that cannot be read or parsed is skipped with a warning;
        the other layers still apply.
        """
        values: dict[str, Any] = {}
        for directory in (self.user_dir, self.project_dir):
            settings = SettingsFile.in_directory(directory)
            if settings is None:
                continue
            try:
                loaded = settings.load()
            except ConfigError as e:
                logger.warning("Skipping %s: %s", settings.path, e)
                continue
            if loaded:
                logger.debug("Loaded %s from %s", ", ".join(sorted(loaded)), settings.path)
            values.update(loaded)
        return values

    def load_all(self) -> ChangelogConfig:
        """Load every layer and validate the result.

        Raises:
            ConfigError: If the merged values fail validation.
        """
        values = self.settings_values()
        values.update(environment_overrides(self._environ))

        try:
            return ChangelogConfig.model_validate(values)
        except ValidationError as e:
            logger.error("Configuration validation failed: %s", e)
            raise ConfigError(f"Configuration validation failed: {e}") from e

    def load(self, path: Path) -> dict[str, Any]:
        """Read one settings file without merging or validating it.

        Raises:
            ConfigError: Unsupported format or unreadable file.
        """
        return SettingsFile(path).load()

    def reload(self) -> ChangelogConfig:
        """Reload configuration from all sources.

        If reload fails, the old configuration is kept and the error is
        raised to the caller.
        """
        self._config = self.load_all()
        logger.info("Configuration reloaded")
        return self._config

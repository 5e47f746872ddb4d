"""Where ChangelogConfig values come from.

Two kinds of source feed the loader:

- a settings file (``settings.json``, ``settings.yaml`` or
  ``settings.yml``) in the user or project directory;
- ``BYTE_UNDO_<FIELD>`` environment variables, one per config field.

Both return plain dicts keyed by ChangelogConfig field names. Values
stay as parsed (strings from the environment); type coercion and range
checks happen once, when the loader validates the merged result.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, ClassVar

import yaml

from byte_undo.config.models import ChangelogConfig
from byte_undo.core import ConfigError, get_logger

logger = get_logger("config.sources")

ENV_PREFIX = "BYTE_UNDO_"


def _parse_json(text: str) -> Any:
    return json.loads(text) if text.strip() else None


class SettingsFile:
    """A settings file holding ChangelogConfig fields.

    The parser is picked by suffix. Keys that are not config fields are
    dropped with a warning, so a typo never reaches validation as an
    unexplained default.

    Attributes:
        path: Location of the file.
    """

    NAMES: ClassVar[tuple[str, ...]] = ("settings.json", "settings.yaml", "settings.yml")
    PARSERS: ClassVar[dict[str, Callable[[str], Any]]] = {
        ".json": _parse_json,
        ".yaml": yaml.safe_load,
        ".yml": yaml.safe_load,
    }

    def __init__(self, path: Path) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"SettingsFile({str(self.path)!r})"

    @classmethod
    def in_directory(cls, directory: Path) -> SettingsFile | None:
        """First settings file present in ``directory``; JSON wins over YAML."""
        for name in cls.NAMES:
            if (directory / name).is_file():
                return cls(directory / name)
        return None

    def load(self) -> dict[str, Any]:
        """Parse the file into config field values.

        Returns:
            Field values; empty if the file is missing or empty.

        Raises:
            ConfigError: Unsupported suffix, unreadable file, parse error,
                or a root that is not a mapping.
        """
        parser = self.PARSERS.get(self.path.suffix.lower())
        if parser is None:
            raise ConfigError(f"Unsupported configuration format: {self.path.suffix}")

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise ConfigError(f"Cannot read {self.path}: {e}") from e

        try:
            data = parser(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot parse {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"{self.path} must hold a mapping of settings, got {type(data).__name__}"
            )
        return _known_fields(data, str(self.path))


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Config values set through ``BYTE_UNDO_<FIELD>`` variables.

    ``BYTE_UNDO_BUFFER_SIZE=8192`` sets ``buffer_size``. Other
    ``BYTE_UNDO_`` variables (such as the log level) are not config
    fields and are left alone.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for field in ChangelogConfig.model_fields:
        value = environ.get(ENV_PREFIX + field.upper())
        if value is not None:
            overrides[field] = value
    return overrides


def _known_fields(data: dict[Any, Any], origin: str) -> dict[str, Any]:
    fields = ChangelogConfig.model_fields
    unknown = sorted(str(key) for key in data if key not in fields)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", origin, ", ".join(unknown))
    return {key: value for key, value in data.items() if key in fields}

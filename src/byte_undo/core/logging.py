"""Logging setup for Byte-Undo front ends.

Library modules only emit records through ``get_logger``; nothing is
written anywhere until a front end calls ``setup_logging``.

The console level and per-component levels come from one spec string,
taken from the ``level`` argument or ``BYTE_UNDO_LOG_LEVEL``:

    BYTE_UNDO_LOG_LEVEL="INFO"
    BYTE_UNDO_LOG_LEVEL="WARNING,undo.mutation=DEBUG"

A bare level is the console threshold. ``component=LEVEL`` overrides it
for the ``Byte-Undo.<component>`` loggers, so one part of the stack (say
the mutation engine's swap and cleanup messages) can be traced without
flooding the console with the rest.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "Byte-Undo"
LOG_LEVEL_ENV = "BYTE_UNDO_LOG_LEVEL"
DEFAULT_CONSOLE_LEVEL = logging.WARNING

# A --log-file rotates at 1 MB and keeps two old files
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 2

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _level_from_name(name: str) -> int | None:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def parse_level_spec(spec: str | None) -> tuple[int, dict[str, int]]:
    """Split a level spec into the console level and component levels.

    Unknown level names are ignored, so a typo in the environment never
    stops an undo.

    Returns:
        Tuple of (console_level, {component: level}).
    """
    console_level = DEFAULT_CONSOLE_LEVEL
    components: dict[str, int] = {}
    for item in (spec or "").split(","):
        if not item.strip():
            continue
        component, sep, name = item.partition("=")
        level = _level_from_name(name if sep else component)
        if level is None:
            continue
        if sep:
            components[component.strip()] = level
        else:
            console_level = level
    return console_level, components


class ComponentLevelFilter(logging.Filter):
    """Console threshold that can be lowered or raised per component.

    The most specific configured component wins: with ``undo=INFO`` and
    ``undo.mutation=DEBUG``, mutation records pass from DEBUG and other
    ``undo.*`` records from INFO.
    """

    def __init__(self, default_level: int, components: dict[str, int]) -> None:
        super().__init__()
        self.default_level = default_level
        self.levels = {f"{ROOT_LOGGER_NAME}.{name}": lvl for name, lvl in components.items()}

    def threshold(self, logger_name: str) -> int:
        name = logger_name
        while name:
            if name in self.levels:
                return self.levels[name]
            name = name.rpartition(".")[0]
        return self.default_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.threshold(record.name)


def setup_logging(
    level: int | str | None = None,
    log_file: Path | None = None,
    *,
    rich_console: bool = True,
) -> None:
    """Route Byte-Undo records to stderr and, optionally, a log file.

    Calling it again replaces the previous handlers.

    Args:
        level: Console level, or a level spec string. If None, uses
            BYTE_UNDO_LOG_LEVEL, then WARNING. An int keeps any component
            levels from the environment.
        log_file: Rotating file that receives every record at DEBUG.
            No file is written when None.
        rich_console: Use RichHandler instead of a plain StreamHandler.
    """
    env_spec = os.environ.get(LOG_LEVEL_ENV)
    if isinstance(level, int):
        console_level, components = level, parse_level_spec(env_spec)[1]
    else:
        console_level, components = parse_level_spec(level if level is not None else env_spec)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for old in root_logger.handlers:
        old.close()
    root_logger.handlers.clear()

    if rich_console:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console_handler.addFilter(ComponentLevelFilter(console_level, components))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(min([console_level, *components.values()]))


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("undo.mutation")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

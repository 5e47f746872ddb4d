"""Core package containing errors, constants, and logging."""

from byte_undo.core.errors import (
    ByteUndoError,
    ConfigError,
    CorruptEntryError,
    EmptyStackError,
    HistoryLostError,
    IntegrityError,
    InvalidInputError,
    NotFoundError,
    ResourceExhaustedError,
    SwapFailedError,
)
from byte_undo.core.logging import get_logger, setup_logging

__all__ = [
    "ByteUndoError",
    "ConfigError",
    "CorruptEntryError",
    "EmptyStackError",
    "HistoryLostError",
    "IntegrityError",
    "InvalidInputError",
    "NotFoundError",
    "ResourceExhaustedError",
    "SwapFailedError",
    "get_logger",
    "setup_logging",
]

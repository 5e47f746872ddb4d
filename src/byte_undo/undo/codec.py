"""Changelog entry codec.

An entry is a small UTF-8 text file, one field per line::

    add        operation tag (add, rmv, edt)
    12         decimal byte position
    61         two hex digits, only for add and edt

A single trailing newline is tolerated. Anything else that deviates from
this layout raises CorruptEntryError, so a damaged history entry is never
silently applied.
"""

from __future__ import annotations

import string
from pathlib import Path

from byte_undo.core import ByteUndoError, CorruptEntryError, NotFoundError
from byte_undo.core.constants import ENTRY_ENCODING
from byte_undo.undo.models import (
    AddByte,
    EditOperation,
    EditRecord,
    HexEditByte,
    RemoveByte,
)

_HEX_DIGITS = frozenset(string.hexdigits)


def encode_record(record: EditRecord) -> str:
    """Serialize a record to entry text (with trailing newline)."""
    if isinstance(record, RemoveByte):
        return f"{record.operation.value}\n{record.position}\n"
    return f"{record.operation.value}\n{record.position}\n{record.value:02x}\n"


def decode_record(text: str, path: Path | None = None) -> EditRecord:
    """Parse entry text into a record.

    Args:
        text: Entry file content.
        path: Entry file, used only in error messages.

    Returns:
        The decoded record.

    Raises:
        CorruptEntryError: On any structural deviation.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    if not lines:
        raise CorruptEntryError("entry is empty", path)

    try:
        operation = EditOperation(lines[0])
    except ValueError:
        raise CorruptEntryError(f"unknown operation tag {lines[0]!r}", path) from None

    expected = 2 if operation is EditOperation.REMOVE else 3
    if len(lines) != expected:
        raise CorruptEntryError(
            f"'{operation.value}' entry must have {expected} lines, found {len(lines)}",
            path,
        )

    position = _parse_position(lines[1], path)

    if operation is EditOperation.REMOVE:
        return RemoveByte(position=position)

    value = _parse_hex_byte(lines[2], path)
    if operation is EditOperation.ADD:
        return AddByte(position=position, value=value)
    return HexEditByte(position=position, value=value)


def _parse_position(field: str, path: Path | None) -> int:
    # isdecimal() admits non-ASCII digits, which int() would also accept
    if not field or not field.isascii() or not field.isdecimal():
        raise CorruptEntryError(f"byte position is not a decimal number: {field!r}", path)
    return int(field)


def _parse_hex_byte(field: str, path: Path | None) -> int:
    if len(field) != 2 or not set(field) <= _HEX_DIGITS:
        raise CorruptEntryError(f"byte value is not two hex digits: {field!r}", path)
    return int(field, 16)


def read_entry(path: Path) -> EditRecord:
    """Read and decode one entry file.

    Raises:
        NotFoundError: If the entry file does not exist.
        CorruptEntryError: If it is not valid UTF-8 or does not parse.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(f"Changelog entry not found: {path}") from e
    except OSError as e:
        raise ByteUndoError(f"Cannot read changelog entry {path}: {e}") from e

    try:
        text = raw.decode(ENTRY_ENCODING)
    except UnicodeDecodeError as e:
        raise CorruptEntryError(f"entry is not valid {ENTRY_ENCODING}: {e}", path) from e

    return decode_record(text, path)

"""Edit record data models.

An edit record is one persisted instruction in a changelog stack:

- AddByte: insert ``value`` at ``position``
- RemoveByte: delete the byte at ``position``
- HexEditByte: overwrite the byte at ``position`` with ``value``

Positions are zero-indexed and refer to the file as it is when the
record is *applied*, which can differ from when it was written because
earlier applications shift later bytes.

Example:
    record = RemoveByte(position=0)
    outgoing = invert(record, current_byte=0x61)
    # AddByte(position=0, value=0x61)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, assert_never

from byte_undo.core import InvalidInputError


class EditOperation(str, Enum):
    """Three-letter operation tags used on disk."""

    ADD = "add"
    REMOVE = "rmv"
    HEX_EDIT = "edt"


def _check_position(position: int) -> None:
    if isinstance(position, bool) or not isinstance(position, int):
        raise InvalidInputError(f"Byte position must be an integer, got {type(position).__name__}")
    if position < 0:
        raise InvalidInputError(f"Byte position must be non-negative, got {position}")


def _check_value(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"Byte value must be an integer, got {type(value).__name__}")
    if not 0 <= value <= 0xFF:
        raise InvalidInputError(f"Byte value out of range 0x00-0xff: {value}")


@dataclass(frozen=True)
class AddByte:
    """Insert ``value`` at ``position``; later bytes shift one later."""

    operation: ClassVar[EditOperation] = EditOperation.ADD

    position: int
    value: int

    def __post_init__(self) -> None:
        _check_position(self.position)
        _check_value(self.value)


@dataclass(frozen=True)
class RemoveByte:
    """Delete the byte at ``position``; later bytes shift one earlier.

    Carries no value. The byte to restore is read from the file at the
    moment the record is applied.
    """

    operation: ClassVar[EditOperation] = EditOperation.REMOVE

    position: int

    def __post_init__(self) -> None:
        _check_position(self.position)


@dataclass(frozen=True)
class HexEditByte:
    """Overwrite the byte at ``position`` with ``value``; length unchanged."""

    operation: ClassVar[EditOperation] = EditOperation.HEX_EDIT

    position: int
    value: int

    def __post_init__(self) -> None:
        _check_position(self.position)
        _check_value(self.value)


EditRecord = AddByte | RemoveByte | HexEditByte


def invert(record: EditRecord, current_byte: int | None = None) -> EditRecord:
    """Build the record that reverses applying ``record``.

    Args:
        record: Record that is being (or has just been) applied.
        current_byte: Byte found at ``record.position`` immediately before
            the application. Required for RemoveByte and HexEditByte.

    Returns:
        The record to push onto the paired stack.

    Raises:
        InvalidInputError: If ``current_byte`` is needed but missing.
    """
    match record:
        case AddByte(position=position):
            return RemoveByte(position=position)
        case RemoveByte(position=position):
            if current_byte is None:
                raise InvalidInputError("Inverting a remove needs the removed byte")
            return AddByte(position=position, value=current_byte)
        case HexEditByte(position=position):
            if current_byte is None:
                raise InvalidInputError("Inverting a hex edit needs the overwritten byte")
            return HexEditByte(position=position, value=current_byte)
        case _:
            assert_never(record)


def describe(record: EditRecord) -> str:
    """Short human readable form, e.g. ``add 0x61 @ 3``."""
    if isinstance(record, RemoveByte):
        return f"{record.operation.value} @ {record.position}"
    return f"{record.operation.value} 0x{record.value:02x} @ {record.position}"


def describe_records(records: Sequence[EditRecord]) -> str:
    """Describe one stack entry, which may be a multi-byte group.

    Members are listed in the order they are applied.
    """
    if len(records) == 1:
        return describe(records[0])
    members = ", ".join(describe(record) for record in records)
    return f"{len(records)} bytes ({members})"

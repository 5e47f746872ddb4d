"""Record user edits as changelog entries.

These functions run alongside the editor: right after it inserts bytes,
right before it removes bytes, or around an in-place hex edit. Each one
writes the entries that, applied LIFO, take the file back to where it
was. None of them modify the target file.

A multi-byte character becomes one group entry holding one per-byte
record per byte, all at the same position, so a single undo or redo
step handles the whole character:

- user added N bytes: N ``rmv`` records; each application collapses the
  next byte of the run into ``position``.
- user removed N bytes: N ``add`` records written left to right; members
  are applied last to first, so the rightmost byte is inserted first,
  the leftmost one ends up at ``position`` and the original order is
  rebuilt.

None of these clear the redo stack. Callers recording a fresh forward
edit must call ``clear_redo_logs`` (ChangelogManager does it for them).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from byte_undo.config.models import ChangelogConfig
from byte_undo.core import IntegrityError, InvalidInputError, get_logger
from byte_undo.undo.changelog import (
    StackDirectory,
    redo_directory_for,
    undo_directory_for,
)
from byte_undo.undo.models import AddByte, HexEditByte, RemoveByte
from byte_undo.undo.mutation import MutationEngine

logger = get_logger("undo.actions")


class CharacterEdit(str, Enum):
    """What the user did with a character."""

    ADD = "add"
    REMOVE = "remove"


def utf8_sequence_length(lead_byte: int) -> int:
    """Byte length of a UTF-8 sequence from its lead byte.

    Raises:
        InvalidInputError: ``lead_byte`` is a continuation or invalid byte.
    """
    if lead_byte < 0x80:
        return 1
    if 0xC2 <= lead_byte <= 0xDF:
        return 2
    if 0xE0 <= lead_byte <= 0xEF:
        return 3
    if 0xF0 <= lead_byte <= 0xF4:
        return 4
    raise InvalidInputError(f"0x{lead_byte:02x} does not start a UTF-8 character")


def _stack(
    target: Path,
    log_dir: Path | str | None,
    config: ChangelogConfig,
) -> StackDirectory:
    if log_dir is None:
        log_dir = undo_directory_for(target, config)
    return StackDirectory(log_dir, config)


# ---------------------------------------------------------------------------
# Primitive records
# ---------------------------------------------------------------------------


def record_remove_byte(
    target: Path | str,
    position: int,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record a ``rmv`` entry: the user inserted the byte now at ``position``.

    Returns:
        Path of the written entry.
    """
    config = config or ChangelogConfig()
    engine = MutationEngine(config)
    path = engine.resolve_target(target)
    engine.read_byte(path, position)
    return _stack(path, log_dir, config).append(RemoveByte(position=position))


def record_add_byte(
    target: Path | str,
    position: int,
    value: int,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record an ``add`` entry: the user removed ``value`` from ``position``."""
    config = config or ChangelogConfig()
    engine = MutationEngine(config)
    path = engine.resolve_target(target)
    length = engine.file_length(path)
    if position > length:
        raise InvalidInputError(f"Position {position} beyond end of {path} ({length} bytes)")
    return _stack(path, log_dir, config).append(AddByte(position=position, value=value))


def record_hex_edit(
    target: Path | str,
    position: int,
    prior_value: int,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record an ``edt`` entry holding the byte that was there before a hex edit.

    May be called before or after the editor overwrites the byte; the
    position only has to exist in the file.
    """
    config = config or ChangelogConfig()
    engine = MutationEngine(config)
    path = engine.resolve_target(target)
    engine.read_byte(path, position)
    return _stack(path, log_dir, config).append(
        HexEditByte(position=position, value=prior_value)
    )


def record_remove_multibyte(
    target: Path | str,
    position: int,
    byte_count: int,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record one entry of ``byte_count`` ``rmv`` records at ``position``.

    Used after the user inserted a ``byte_count``-byte run at ``position``.

    Returns:
        Path of the entry file, or of the group directory when
        ``byte_count`` is above one.
    """
    if byte_count < 1:
        raise InvalidInputError(f"byte_count must be at least 1, got {byte_count}")
    config = config or ChangelogConfig()
    engine = MutationEngine(config)
    path = engine.resolve_target(target)
    length = engine.file_length(path)
    if position + byte_count > length:
        raise InvalidInputError(
            f"{byte_count} bytes at {position} run past the end of {path} ({length} bytes)"
        )
    stack = _stack(path, log_dir, config)
    return stack.append_group([RemoveByte(position=position)] * byte_count)


def record_add_multibyte(
    target: Path | str,
    position: int,
    data: bytes,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record one entry of ``add`` records for ``data``, left to right, at ``position``.

    Used when the user removed ``data`` from ``position``.
    """
    if not data:
        raise InvalidInputError("No bytes to record")
    config = config or ChangelogConfig()
    path = MutationEngine(config).resolve_target(target)
    stack = _stack(path, log_dir, config)
    return stack.append_group([AddByte(position=position, value=byte) for byte in data])


# ---------------------------------------------------------------------------
# Character level
# ---------------------------------------------------------------------------


def record_character_action(
    target: Path | str,
    position: int,
    edit: CharacterEdit,
    character: str | None = None,
    log_dir: Path | str | None = None,
    config: ChangelogConfig | None = None,
) -> Path:
    """Record the undo entry for a character the user added or removed.

    ADD is recorded after the editor inserted the character: ``character``
    is ignored and the UTF-8 length is read from the lead byte now at
    ``position``.

    REMOVE is recorded before the editor removes the character:
    ``character`` is required and its UTF-8 bytes must currently be at
    ``position``.

    Returns:
        Path of the written entry file or group directory.

    Raises:
        InvalidInputError: Missing or multi-character ``character``, bad
            position, or no valid UTF-8 character at ``position``.
        IntegrityError: File bytes at ``position`` do not match ``character``.
    """
    config = config or ChangelogConfig()
    engine = MutationEngine(config)
    path = engine.resolve_target(target)

    if edit is CharacterEdit.ADD:
        lead = engine.read_byte(path, position)
        length = utf8_sequence_length(lead)
        encoded = engine.read_bytes(path, position, length)
        try:
            encoded.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError(
                f"No complete UTF-8 character at position {position} of {path}"
            ) from e
        logger.debug("Recording add of %d-byte character at %d", length, position)
        return record_remove_multibyte(path, position, length, log_dir, config)

    if character is None:
        raise InvalidInputError("Recording a removed character requires the character")
    if len(character) != 1:
        raise InvalidInputError(f"Expected a single character, got {character!r}")

    encoded = character.encode("utf-8")
    current = engine.read_bytes(path, position, len(encoded))
    if current != encoded:
        raise IntegrityError(
            f"Expected {character!r} ({encoded.hex()}) at position {position} "
            f"of {path}, found {current.hex() or 'end of file'}"
        )
    logger.debug("Recording removal of %d-byte character at %d", len(encoded), position)
    return record_add_multibyte(path, position, encoded, log_dir, config)


# ---------------------------------------------------------------------------
# Redo invalidation
# ---------------------------------------------------------------------------


def clear_redo_logs(target: Path | str, config: ChangelogConfig | None = None) -> int:
    """Empty the default redo stack of ``target``.

    Returns:
        Number of entries removed.
    """
    return StackDirectory(redo_directory_for(target, config), config).clear()


def clear_redo_for(stack_dir: Path | str, config: ChangelogConfig | None = None) -> int:
    """Empty the redo side of the pair ``stack_dir`` belongs to."""
    stack = StackDirectory(stack_dir, config)
    redo = stack if stack.is_redo else stack.paired()
    return redo.clear()

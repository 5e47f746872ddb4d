"""On-disk undo/redo for byte-level file edits.

This package records byte edits as small text entries in a pair of
stack directories next to the edited file and steps through them LIFO.

Example:
    from byte_undo.undo import ChangelogManager

    manager = ChangelogManager("/path/to/file.txt")

    # After the editor inserted a character at position 4
    manager.record_added_character(4)

    # Undo
    success, message = manager.undo()

    # Redo
    success, message = manager.redo()
"""

from byte_undo.undo.actions import (
    CharacterEdit,
    clear_redo_for,
    clear_redo_logs,
    record_add_byte,
    record_add_multibyte,
    record_character_action,
    record_hex_edit,
    record_remove_byte,
    record_remove_multibyte,
)
from byte_undo.undo.changelog import (
    StackDirectory,
    StackEntry,
    is_redo_directory,
    paired_directory,
    redo_directory_for,
    undo_directory_for,
)
from byte_undo.undo.codec import decode_record, encode_record, read_entry
from byte_undo.undo.manager import ChangelogManager, StepResult, step
from byte_undo.undo.models import (
    AddByte,
    EditOperation,
    EditRecord,
    HexEditByte,
    RemoveByte,
    invert,
)
from byte_undo.undo.mutation import MutationEngine, MutationKind

__all__ = [
    "AddByte",
    "ChangelogManager",
    "CharacterEdit",
    "EditOperation",
    "EditRecord",
    "HexEditByte",
    "MutationEngine",
    "MutationKind",
    "RemoveByte",
    "StackDirectory",
    "StackEntry",
    "StepResult",
    "clear_redo_for",
    "clear_redo_logs",
    "decode_record",
    "encode_record",
    "invert",
    "is_redo_directory",
    "paired_directory",
    "read_entry",
    "record_add_byte",
    "record_add_multibyte",
    "record_character_action",
    "record_hex_edit",
    "record_remove_byte",
    "record_remove_multibyte",
    "redo_directory_for",
    "step",
    "undo_directory_for",
]

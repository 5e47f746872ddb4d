"""LIFO undo/redo orchestration.

``step`` is the whole state machine: it applies the top entry of a stack
directory to the target file and pushes the reversing entry onto the
paired directory. Called with an undo directory it undoes and records a
redo; called with a redo directory it redoes and records an undo.

``ChangelogManager`` wraps ``step`` and the record-creation functions for
one target file, in the shape an editor front end wants.

Example:
    from byte_undo.undo.manager import ChangelogManager

    manager = ChangelogManager("/work/notes.txt")
    manager.record_added_character(position=4)
    success, message = manager.undo()
    success, message = manager.redo()
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from byte_undo.config.models import ChangelogConfig
from byte_undo.core import ByteUndoError, EmptyStackError, HistoryLostError, get_logger
from byte_undo.undo import actions
from byte_undo.undo.changelog import StackDirectory, StackEntry, undo_directory_for
from byte_undo.undo.codec import encode_record
from byte_undo.undo.models import (
    AddByte,
    EditRecord,
    HexEditByte,
    RemoveByte,
    describe_records,
    invert,
)
from byte_undo.undo.mutation import MutationEngine

logger = get_logger("undo.manager")


@dataclass(frozen=True)
class StepResult:
    """Outcome of one LIFO step.

    Attributes:
        success: False only when the stack was empty.
        message: Human readable summary.
        applied: Records taken from the source stack, in application order.
        pushed: Records written to the paired stack as one entry, in
            write order.
        paired_directory: Where ``pushed`` was written.
    """

    success: bool
    message: str
    applied: tuple[EditRecord, ...] = ()
    pushed: tuple[EditRecord, ...] = ()
    paired_directory: Path | None = None


def step(
    target: Path | str,
    stack_dir: Path | str,
    config: ChangelogConfig | None = None,
) -> StepResult:
    """Apply the top entry of ``stack_dir`` to ``target``.

    Direction is inferred from ``stack_dir``'s name. A group entry (all
    bytes of one character) is applied as a whole and its reverse is
    pushed as one group, so the next step in the other direction brings
    the whole character back. The consumed entry is deleted only after
    the file edit and the paired push both succeeded.

    Args:
        target: Absolute path of the file being edited.
        stack_dir: Undo or redo stack directory.
        config: Naming and streaming settings.

    Returns:
        StepResult. An empty stack gives ``success=False`` and leaves the
        file alone.

    Raises:
        ByteUndoError: Any failure applying the entry. If the file was
            already changed when the failure happened, HistoryLostError.
    """
    config = config or ChangelogConfig()
    source = StackDirectory(stack_dir, config)
    paired = source.paired()
    verb = "redo" if source.is_redo else "undo"

    try:
        entry = source.peek_top()
    except EmptyStackError:
        logger.info("Nothing to %s in %s", verb, source.path)
        return StepResult(success=False, message=f"Nothing to {verb}")

    engine = MutationEngine(config)
    outgoing = _apply_entry(engine, Path(target), entry)
    summary = describe_records(entry.records)

    try:
        paired.append_group(outgoing)
    except Exception as e:
        # File already changed; the entry can no longer be replayed safely
        entry_text = _entry_text(outgoing)
        logger.critical(
            "%s applied %s to %s but could not record its reverse in %s: %s. "
            "Lost entry text: %r",
            verb, summary, target, paired.path, e, entry_text,
        )
        _discard_quietly(source, entry)
        raise HistoryLostError(
            f"{verb} changed {target} but the reverse entry could not be written "
            f"to {paired.path}: {e}",
            entry_text=entry_text,
        ) from e

    try:
        source.discard(entry)
    except Exception as e:
        logger.critical(
            "%s applied %s to %s but entry %s could not be removed: %s",
            verb, summary, target, entry.path, e,
        )
        raise HistoryLostError(
            f"{verb} changed {target} but consumed entry {entry.path} is still "
            f"present and must be deleted by hand: {e}",
            entry_text=_entry_text(entry.records[::-1]),
        ) from e

    message = f"{'Redone' if source.is_redo else 'Undone'}: {summary}"
    logger.info("%s (%s)", message, target)
    return StepResult(
        success=True,
        message=message,
        applied=entry.records,
        pushed=outgoing,
        paired_directory=paired.path,
    )


def _apply(engine: MutationEngine, target: Path, record: EditRecord) -> EditRecord:
    """Perform ``record`` on the file and return its reversing record."""
    if isinstance(record, AddByte):
        engine.insert_byte(target, record.position, record.value)
        return invert(record)
    if isinstance(record, RemoveByte):
        removed = engine.delete_byte(target, record.position)
        return invert(record, current_byte=removed)
    if isinstance(record, HexEditByte):
        previous = engine.replace_byte(target, record.position, record.value)
        return invert(record, current_byte=previous)
    raise TypeError(f"Unsupported edit record: {record!r}")


def _apply_entry(
    engine: MutationEngine, target: Path, entry: StackEntry
) -> tuple[EditRecord, ...]:
    """Apply every record of ``entry`` and return the reversing group.

    The reversing records come back in application order, which is the
    write order that makes the paired step apply them last to first. If
    a later member fails, the members already applied are rolled back so
    the file is left as it was.
    """
    outgoing: list[EditRecord] = []
    for record in entry.records:
        try:
            outgoing.append(_apply(engine, target, record))
        except ByteUndoError:
            if outgoing:
                _roll_back(engine, target, entry, outgoing)
            raise
    return tuple(outgoing)


def _roll_back(
    engine: MutationEngine,
    target: Path,
    entry: StackEntry,
    outgoing: list[EditRecord],
) -> None:
    logger.warning(
        "Group %s failed after %d of %d records; rolling back",
        entry.path, len(outgoing), len(entry.records),
    )
    try:
        for record in reversed(outgoing):
            _apply(engine, target, record)
    except ByteUndoError as e:
        raise HistoryLostError(
            f"Group {entry.path} was partly applied to {target} and could not be "
            f"rolled back: {e}",
            entry_text=_entry_text(outgoing),
        ) from e


def _entry_text(records: Sequence[EditRecord]) -> str:
    return "".join(encode_record(record) for record in records)


def _discard_quietly(source: StackDirectory, entry: StackEntry) -> None:
    try:
        source.discard(entry)
    except Exception as e:
        logger.critical("Stale entry %s could not be removed either: %s", entry.path, e)


class ChangelogManager:
    """Undo/redo history of a single target file.

    Wraps the default stack directory pair of ``target`` (or a caller
    supplied undo directory). Recording a new forward edit through this
    class clears the redo stack, since stale redo entries would no
    longer line up with the file.

    Attributes:
        target: Canonical path of the edited file.
        undo_dir: Undo stack directory.
        redo_dir: Paired redo stack directory.
    """

    def __init__(
        self,
        target: Path | str,
        undo_dir: Path | str | None = None,
        config: ChangelogConfig | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            target: Absolute path of the file; must exist.
            undo_dir: Custom undo directory. Defaults to the derived one.
            config: Naming and streaming settings.
        """
        self._config = config or ChangelogConfig()
        self._engine = MutationEngine(self._config)
        self.target = self._engine.resolve_target(target)
        if undo_dir is None:
            undo_dir = undo_directory_for(self.target, self._config)
        self._undo = StackDirectory(undo_dir, self._config)
        self._redo = self._undo.paired()

    @property
    def undo_dir(self) -> Path:
        return self._undo.path

    @property
    def redo_dir(self) -> Path:
        return self._redo.path

    @property
    def can_undo(self) -> bool:
        return not self._undo.is_empty()

    @property
    def can_redo(self) -> bool:
        return not self._redo.is_empty()

    @property
    def undo_count(self) -> int:
        return self._undo.count()

    @property
    def redo_count(self) -> int:
        return self._redo.count()

    def undo(self) -> tuple[bool, str]:
        """Step the undo stack once; a multi-byte character is undone whole.

        Returns:
            Tuple of (success, message); (False, "Nothing to undo") when empty.
        """
        result = step(self.target, self._undo.path, self._config)
        return result.success, result.message

    def redo(self) -> tuple[bool, str]:
        """Step the redo stack once."""
        result = step(self.target, self._redo.path, self._config)
        return result.success, result.message

    def peek_undo(self) -> tuple[EditRecord, ...] | None:
        """Records the next undo would apply, in order, or None."""
        try:
            return self._undo.peek_top().records
        except EmptyStackError:
            return None

    def peek_redo(self) -> tuple[EditRecord, ...] | None:
        """Records the next redo would apply, in order, or None."""
        try:
            return self._redo.peek_top().records
        except EmptyStackError:
            return None

    def record_added_character(self, position: int) -> Path:
        """Record that the user inserted a character at ``position``."""
        self.clear_redo()
        return actions.record_character_action(
            self.target, position, actions.CharacterEdit.ADD,
            log_dir=self._undo.path, config=self._config,
        )

    def record_removed_character(self, position: int, character: str) -> Path:
        """Record that the user is about to remove ``character`` at ``position``."""
        self.clear_redo()
        return actions.record_character_action(
            self.target, position, actions.CharacterEdit.REMOVE,
            character=character, log_dir=self._undo.path, config=self._config,
        )

    def record_hex_edit(self, position: int, prior_value: int) -> Path:
        """Record an in-place byte edit; ``prior_value`` is the old byte."""
        self.clear_redo()
        return actions.record_hex_edit(
            self.target, position, prior_value,
            log_dir=self._undo.path, config=self._config,
        )

    def clear_redo(self) -> int:
        """Drop all pending redo entries."""
        return self._redo.clear()

    def clear(self) -> int:
        """Drop the whole history of the file, both directions."""
        return self._undo.clear() + self._redo.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get statistics about the history of this file."""
        return {
            "target": str(self.target),
            "undo_dir": str(self._undo.path),
            "redo_dir": str(self._redo.path),
            "undo_count": self._undo.count(),
            "redo_count": self._redo.count(),
        }

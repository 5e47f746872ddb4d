"""Changelog stack directories.

A stack directory holds the edit records of one target file for one
direction. Entries are named by a non-negative sequence number and the
highest number is the top of the stack. An entry is either one file
holding one record or a group directory holding the per-byte records of
a single character; a LIFO step consumes a group as a whole.

Undo and redo directories are paired by name alone:

    notes.txt -> changelog_notestxt       (undo)
              -> changelog_redo_notestxt  (redo)

``paired_directory`` turns either one into the other, so a single LIFO
step works in both directions without a mapping table.

Example:
    undo_dir = undo_directory_for(Path("/work/notes.txt"))
    stack = StackDirectory(undo_dir)
    stack.append(RemoveByte(position=0))
    entry = stack.peek_top()
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from byte_undo.config.models import ChangelogConfig
from byte_undo.core import (
    ByteUndoError,
    CorruptEntryError,
    EmptyStackError,
    IntegrityError,
    InvalidInputError,
    NotFoundError,
    get_logger,
)
from byte_undo.core.constants import ENTRY_ENCODING
from byte_undo.undo.codec import encode_record, read_entry
from byte_undo.undo.models import EditRecord

logger = get_logger("undo.changelog")

_TEMP_SUFFIX = ".tmp"


def sanitize_file_name(name: str) -> str:
    """Directory-safe stem for a file name: ``notes.txt`` -> ``notestxt``."""
    return name.replace(".", "")


def undo_directory_for(target: Path | str, config: ChangelogConfig | None = None) -> Path:
    """Default undo stack directory for a target file.

    The target is canonicalized, so the directory sits next to the real
    file even when ``target`` goes through a symlink.

    Raises:
        NotFoundError: Target does not exist.
        InvalidInputError: Target name yields an empty directory name.
    """
    config = config or ChangelogConfig()
    try:
        path = Path(target).resolve(strict=True)
    except FileNotFoundError as e:
        raise NotFoundError(f"Target file not found: {target}") from e

    stem = sanitize_file_name(path.name)
    if not stem:
        raise InvalidInputError(f"Cannot derive a changelog name from {path.name!r}")

    # A stem starting with the marker would read as a redo directory
    if stem.startswith(config.redo_marker):
        stem = "_" + stem

    return path.parent / f"{config.undo_prefix}{stem}"


def redo_directory_for(target: Path | str, config: ChangelogConfig | None = None) -> Path:
    """Default redo stack directory for a target file."""
    return paired_directory(undo_directory_for(target, config), config)


def is_redo_directory(directory: Path | str, config: ChangelogConfig | None = None) -> bool:
    """True if ``directory`` names the redo side of a pair."""
    config = config or ChangelogConfig()
    name = Path(directory).name
    if name.startswith(config.undo_prefix):
        return name[len(config.undo_prefix):].startswith(config.redo_marker)
    return name.startswith(config.redo_marker)


def paired_directory(directory: Path | str, config: ChangelogConfig | None = None) -> Path:
    """Resolve the other half of an undo/redo pair.

    Only the final path component changes:

    - ``changelog_X``       <-> ``changelog_redo_X``
    - ``X`` (no prefix)     <-> ``redo_X``

    Raises:
        InvalidInputError: ``directory`` has no final component.
    """
    config = config or ChangelogConfig()
    path = Path(directory)
    name = path.name
    if not name:
        raise InvalidInputError(f"Stack directory has no name: {directory}")

    prefix, marker = config.undo_prefix, config.redo_marker
    if name.startswith(prefix):
        rest = name[len(prefix):]
        if rest.startswith(marker):
            paired = prefix + rest[len(marker):]
        else:
            paired = prefix + marker + rest
    elif name.startswith(marker):
        paired = name[len(marker):]
    else:
        paired = marker + name

    if not paired or paired == prefix:
        raise InvalidInputError(f"Stack directory name {name!r} has no paired form")
    return path.with_name(paired)


def _is_sequence_name(name: str) -> bool:
    """Plain decimal without leading zeros: ``0``, ``7``, ``12``."""
    return name.isascii() and name.isdecimal() and (name == "0" or not name.startswith("0"))


@dataclass(frozen=True)
class StackEntry:
    """One stack entry and the records it holds.

    A single entry is one file. A group is a directory whose member
    files ``0`` .. ``N-1`` use the same per-byte format; it holds every
    byte of one character and is always applied as a whole.

    Attributes:
        sequence: Position in the stack.
        path: Entry file or group directory.
        records: Records in the order they are applied (last written first).
    """

    sequence: int
    path: Path
    records: tuple[EditRecord, ...]

    @property
    def is_group(self) -> bool:
        return len(self.records) > 1

    @property
    def record(self) -> EditRecord:
        """The record applied first."""
        return self.records[0]


class StackDirectory:
    """Ordered, numbered entries for one target and one direction.

    The directory is created lazily by the first append and is never
    removed by this class.

    Attributes:
        path: Directory holding the entries.
    """

    def __init__(self, path: Path | str, config: ChangelogConfig | None = None) -> None:
        self.path = Path(path)
        self._config = config or ChangelogConfig()

    def __repr__(self) -> str:
        return f"StackDirectory({str(self.path)!r})"

    @property
    def is_redo(self) -> bool:
        """True if this is the redo side of its pair."""
        return is_redo_directory(self.path, self._config)

    def paired(self) -> StackDirectory:
        """The other half of this directory's undo/redo pair."""
        return StackDirectory(paired_directory(self.path, self._config), self._config)

    def sequence_numbers(self) -> list[int]:
        """Sequence numbers of all entries and groups, ascending.

        Names that are not canonical decimal numbers (temporary files,
        stray notes, ``007``) are ignored.
        """
        if not self.path.is_dir():
            return []
        numbers = []
        try:
            with os.scandir(self.path) as it:
                for item in it:
                    if _is_sequence_name(item.name) and (item.is_file() or item.is_dir()):
                        numbers.append(int(item.name))
        except OSError as e:
            raise ByteUndoError(f"Cannot list changelog directory {self.path}: {e}") from e
        numbers.sort()
        return numbers

    def count(self) -> int:
        """Number of entries in the stack; a group counts once."""
        return len(self.sequence_numbers())

    def is_empty(self) -> bool:
        """True if no entries remain."""
        return not self.sequence_numbers()

    def entry_path(self, sequence: int) -> Path:
        """File or group directory path for a sequence number."""
        return self.path / str(sequence)

    def _prepare(self) -> Path:
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ByteUndoError(f"Cannot create changelog directory {self.path}: {e}") from e
        numbers = self.sequence_numbers()
        return self.entry_path(numbers[-1] + 1 if numbers else 0)

    def append(self, record: EditRecord) -> Path:
        """Write ``record`` as the new top of the stack.

        The entry text is written to a temporary file in the directory
        and renamed into place, so a reader never sees a partial entry.

        Returns:
            Path of the new entry file.
        """
        entry_path = self._prepare()
        text = encode_record(record)

        try:
            fd, temp_path = tempfile.mkstemp(suffix=_TEMP_SUFFIX, dir=self.path)
            try:
                with os.fdopen(fd, "w", encoding=ENTRY_ENCODING, newline="\n") as f:
                    f.write(text)
                Path(temp_path).replace(entry_path)
            except Exception:
                with contextlib.suppress(OSError):
                    Path(temp_path).unlink()
                raise
        except OSError as e:
            raise ByteUndoError(f"Failed to write changelog entry {entry_path}: {e}") from e

        logger.debug("Appended %s as %s", text.replace("\n", " ").strip(), entry_path)
        return entry_path

    def append_group(self, records: Sequence[EditRecord]) -> Path:
        """Write ``records`` as one entry on top of the stack.

        Records are given in write order and applied last to first. The
        members are written into a temporary directory that is renamed
        into place, so the group appears whole or not at all. A single
        record is written as a plain entry file.

        Returns:
            Path of the new entry file or group directory.

        Raises:
            InvalidInputError: ``records`` is empty.
        """
        if not records:
            raise InvalidInputError("A changelog group needs at least one record")
        if len(records) == 1:
            return self.append(records[0])

        entry_path = self._prepare()
        try:
            temp_dir = Path(tempfile.mkdtemp(suffix=_TEMP_SUFFIX, dir=self.path))
            try:
                for index, record in enumerate(records):
                    (temp_dir / str(index)).write_text(
                        encode_record(record), encoding=ENTRY_ENCODING, newline="\n"
                    )
                temp_dir.rename(entry_path)
            except Exception:
                shutil.rmtree(temp_dir, ignore_errors=True)
                raise
        except OSError as e:
            raise ByteUndoError(f"Failed to write changelog group {entry_path}: {e}") from e

        logger.debug("Appended %d-record group as %s", len(records), entry_path)
        return entry_path

    def _read_group(self, path: Path) -> tuple[EditRecord, ...]:
        try:
            names = sorted(
                (item.name for item in path.iterdir()),
                key=lambda name: (len(name), name),
            )
        except OSError as e:
            raise ByteUndoError(f"Cannot list changelog group {path}: {e}") from e

        if names != [str(i) for i in range(len(names))] or len(names) < 2:
            raise CorruptEntryError(
                f"group members must be files 0..N-1 with N >= 2, found {names}", path
            )
        written = [read_entry(path / name) for name in names]
        return tuple(reversed(written))

    def peek_top(self) -> StackEntry:
        """Read the top entry without removing it.

        Raises:
            EmptyStackError: Directory is missing or holds no entries.
            CorruptEntryError: Top entry (or a group member) does not decode.
        """
        numbers = self.sequence_numbers()
        if not numbers:
            raise EmptyStackError(self.path)
        sequence = numbers[-1]
        path = self.entry_path(sequence)
        if path.is_dir():
            records = self._read_group(path)
        else:
            records = (read_entry(path),)
        return StackEntry(sequence=sequence, path=path, records=records)

    def discard(self, entry: StackEntry) -> None:
        """Delete an entry previously returned by peek_top.

        A group directory is first renamed out of the numbered namespace,
        so a partly deleted group is never read back as an entry.
        """
        try:
            if entry.path.is_dir():
                hidden_name = f".{entry.sequence}-{uuid.uuid4().hex[:8]}{_TEMP_SUFFIX}"
                hidden = entry.path.with_name(hidden_name)
                entry.path.rename(hidden)
                _remove_tree(hidden)
            else:
                entry.path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(f"Changelog entry already gone: {entry.path}") from e
        except OSError as e:
            raise ByteUndoError(f"Cannot delete changelog entry {entry.path}: {e}") from e

    def pop_top(self) -> tuple[EditRecord, ...]:
        """Read and delete the top entry.

        Returns:
            The entry's records in application order.

        Raises:
            EmptyStackError: Directory is missing or holds no entries.
        """
        entry = self.peek_top()
        self.discard(entry)
        return entry.records

    def clear(self) -> int:
        """Delete every entry and group, keeping the directory itself.

        Returns:
            Number of entries deleted; a group counts once.

        Raises:
            IntegrityError: Entries are still present after deletion.
        """
        removed = 0
        for sequence in self.sequence_numbers():
            path = self.entry_path(sequence)
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Cannot delete changelog entry %s: %s", path, e)

        leftover = self.sequence_numbers()
        if leftover:
            raise IntegrityError(
                f"{len(leftover)} entries remain in {self.path} after clearing"
            )
        if removed:
            logger.info("Cleared %d entries from %s", removed, self.path)
        return removed


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning("Could not remove discarded group %s: %s", path, e)

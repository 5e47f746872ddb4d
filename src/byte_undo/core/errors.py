"""Exception hierarchy for Byte-Undo.

Every failure the library reports derives from ByteUndoError so callers
can catch the whole family at once:

- NotFoundError: target file or changelog entry is missing
- InvalidInputError: out-of-bounds position, empty file, bad path
- CorruptEntryError: a changelog entry file does not parse
- IntegrityError: draft verification mismatch or orphaned artifacts
- SwapFailedError: the atomic rename of the draft failed
- HistoryLostError: the file changed but its history could not be kept
- ResourceExhaustedError: chunk limit exceeded or disk full
- EmptyStackError: nothing left in a stack directory (expected)
- ConfigError: settings could not be loaded or validated
"""

from __future__ import annotations

from pathlib import Path


class ByteUndoError(Exception):
    """Base class for all Byte-Undo errors."""

    pass


class NotFoundError(ByteUndoError):
    """Target file or changelog entry does not exist."""

    pass


class InvalidInputError(ByteUndoError):
    """Caller supplied a position, path, or file the operation cannot use."""

    pass


class CorruptEntryError(InvalidInputError):
    """A changelog entry file is structurally malformed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize corrupt entry error.

        Args:
            message: Description of the structural problem.
            path: Entry file that failed to decode, if known.
        """
        if path is not None:
            message = f"Corrupt changelog entry {path}: {message}"
        else:
            message = f"Corrupt changelog entry: {message}"
        super().__init__(message)
        self.path = path


class IntegrityError(ByteUndoError):
    """Post-mutation verification failed or leftover artifacts were found."""

    pass


class SwapFailedError(IntegrityError):
    """Renaming the verified draft over the original failed.

    Both the backup and the draft are left on disk for manual inspection.
    """

    def __init__(self, message: str, backup_path: Path, draft_path: Path) -> None:
        super().__init__(message)
        self.backup_path = backup_path
        self.draft_path = draft_path


class HistoryLostError(IntegrityError):
    """The target file changed but the matching history entry was not kept.

    Attributes:
        entry_text: Serialized entry that should have been written, so it
            can be restored by hand.
    """

    def __init__(self, message: str, entry_text: str | None = None) -> None:
        super().__init__(message)
        self.entry_text = entry_text


class ResourceExhaustedError(ByteUndoError):
    """Streaming limit exceeded or the filesystem ran out of space."""

    pass


class EmptyStackError(ByteUndoError):
    """Stack directory holds no entries."""

    def __init__(self, directory: Path) -> None:
        super().__init__(f"No changelog entries in {directory}")
        self.directory = directory


class ConfigError(ByteUndoError):
    """Settings could not be loaded or failed validation."""

    pass

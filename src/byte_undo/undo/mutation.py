"""Atomic single-byte mutations of a target file.

This module is the only code path that writes to a target file. Each
mutation (replace in place, insert, delete) follows the same protocol:

1. Copy the original to ``<name>.backup``.
2. Stream the original through a fixed-size buffer into ``<name>.draft``,
   applying the edit on the way through.
3. Verify the draft against the untouched original: length, the prefix
   before the edit (SHA-256 plus direct comparison), the byte at the edit,
   and the shifted suffix after it.
4. ``os.replace`` the draft over the original.
5. Remove the backup (failure here is logged, not raised).

Any failure before step 4 removes the draft and leaves the backup as
evidence; the original is untouched. A failed rename leaves both
artifacts in place. A leftover backup or draft found before a run starts
blocks the mutation until someone inspects it.

Example:
    engine = MutationEngine()
    previous = engine.replace_byte(Path("/data/file.bin"), 3, 0x41)
"""

from __future__ import annotations

import contextlib
import errno
import hashlib
import os
import shutil
from enum import Enum
from pathlib import Path

from byte_undo.config.models import ChangelogConfig
from byte_undo.core import (
    ByteUndoError,
    IntegrityError,
    InvalidInputError,
    NotFoundError,
    ResourceExhaustedError,
    SwapFailedError,
    get_logger,
)

logger = get_logger("undo.mutation")


class MutationKind(str, Enum):
    """Primitive byte mutations and their frame shift."""

    REPLACE = "replace"
    INSERT = "insert"
    DELETE = "delete"

    @property
    def shift(self) -> int:
        """Change in offset of every byte after the edit position."""
        return {"replace": 0, "insert": 1, "delete": -1}[self.value]


def _wrap_os_error(e: OSError, action: str) -> ByteUndoError:
    if e.errno == errno.ENOSPC:
        return ResourceExhaustedError(f"No space left while {action}: {e}")
    return ByteUndoError(f"I/O failure while {action}: {e}")


class MutationEngine:
    """Applies verified, atomic single-byte edits to files.

    Memory use is independent of file size: every pass over file content
    goes through buffers of ``config.buffer_size`` bytes and stops after
    ``config.max_chunks`` chunks.

    Attributes:
        config: Suffixes and streaming limits.
    """

    def __init__(self, config: ChangelogConfig | None = None) -> None:
        self.config = config or ChangelogConfig()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def replace_byte(self, target: Path | str, position: int, value: int) -> int:
        """Overwrite the byte at ``position`` with ``value``.

        Returns:
            The byte that was at ``position`` before the edit.

        Raises:
            NotFoundError: Target does not exist.
            InvalidInputError: Not a regular file, empty, or position out of range.
            IntegrityError: Verification failed or artifacts already present.
            ResourceExhaustedError: File too large or disk full.
        """
        previous = self._mutate(target, MutationKind.REPLACE, position, value)
        if previous is None:
            raise IntegrityError(f"No byte found at position {position} of {target}")
        return previous

    def insert_byte(self, target: Path | str, position: int, value: int) -> None:
        """Insert ``value`` at ``position``; ``position`` may equal the length."""
        self._mutate(target, MutationKind.INSERT, position, value)

    def delete_byte(self, target: Path | str, position: int) -> int:
        """Delete the byte at ``position``.

        Returns:
            The removed byte.
        """
        removed = self._mutate(target, MutationKind.DELETE, position, None)
        if removed is None:
            raise IntegrityError(f"No byte found at position {position} of {target}")
        return removed

    def read_byte(self, target: Path | str, position: int) -> int:
        """Read a single byte without modifying the file.

        Raises:
            NotFoundError: Target does not exist.
            InvalidInputError: Not a regular file or position out of range.
        """
        path = self.resolve_target(target)
        size = path.stat().st_size
        if position < 0 or position >= size:
            raise InvalidInputError(
                f"Position {position} out of range for {path} ({size} bytes)"
            )
        try:
            with path.open("rb") as f:
                f.seek(position)
                data = f.read(1)
        except OSError as e:
            raise _wrap_os_error(e, f"reading {path}") from e
        if len(data) != 1:
            raise IntegrityError(f"Short read at position {position} of {path}")
        return data[0]

    def read_bytes(self, target: Path | str, position: int, count: int) -> bytes:
        """Read up to ``count`` bytes starting at ``position``.

        ``count`` is capped at the buffer size; this is meant for single
        characters, not file content.
        """
        path = self.resolve_target(target)
        count = min(count, self.config.buffer_size)
        try:
            with path.open("rb") as f:
                f.seek(position)
                return f.read(count)
        except OSError as e:
            raise _wrap_os_error(e, f"reading {path}") from e

    def file_length(self, target: Path | str) -> int:
        """Current size of the target in bytes."""
        return self.resolve_target(target).stat().st_size

    def artifact_paths(self, target: Path) -> tuple[Path, Path]:
        """Sibling backup and draft paths for ``target``."""
        return (
            target.with_name(target.name + self.config.backup_suffix),
            target.with_name(target.name + self.config.draft_suffix),
        )

    def resolve_target(self, target: Path | str) -> Path:
        """Canonicalize and type-check a target path.

        Raises:
            InvalidInputError: Path is relative or not a regular file.
            NotFoundError: Path does not exist.
        """
        path = Path(target)
        if not path.is_absolute():
            raise InvalidInputError(f"Target path must be absolute: {target}")
        try:
            path = path.resolve(strict=True)
        except FileNotFoundError as e:
            raise NotFoundError(f"Target file not found: {target}") from e
        except (OSError, RuntimeError) as e:
            raise InvalidInputError(f"Invalid target path {target}: {e}") from e
        if not path.is_file():
            raise InvalidInputError(f"Target is not a regular file: {path}")
        return path

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    def _mutate(
        self,
        target: Path | str,
        kind: MutationKind,
        position: int,
        value: int | None,
    ) -> int | None:
        path = self.resolve_target(target)
        size = path.stat().st_size
        self._check_bounds(path, kind, position, value, size)

        if size > self.config.stream_capacity:
            raise ResourceExhaustedError(
                f"File too large or malformed: {path} is {size} bytes, "
                f"limit is {self.config.stream_capacity}"
            )

        backup_path, draft_path = self.artifact_paths(path)
        for artifact in (backup_path, draft_path):
            if artifact.exists():
                raise IntegrityError(
                    f"Leftover artifact from an interrupted edit: {artifact}. "
                    "Inspect it and remove it before editing again."
                )

        try:
            shutil.copy2(path, backup_path)
        except OSError as e:
            raise _wrap_os_error(e, f"creating backup {backup_path}") from e

        try:
            previous = self._write_draft(path, draft_path, kind, position, value, size)
            self._verify_draft(path, draft_path, kind, position, value, size)
        except Exception:
            with contextlib.suppress(OSError):
                draft_path.unlink()
            logger.error(
                "%s at %d on %s failed before swap; backup kept at %s",
                kind.value, position, path, backup_path,
            )
            raise

        try:
            os.replace(draft_path, path)
        except OSError as e:
            logger.error(
                "Atomic swap failed for %s: %s (backup %s, draft %s left for inspection)",
                path, e, backup_path, draft_path,
            )
            raise SwapFailedError(
                f"Could not rename {draft_path} over {path}: {e}",
                backup_path=backup_path,
                draft_path=draft_path,
            ) from e

        try:
            backup_path.unlink()
        except OSError as e:
            logger.warning("Edit applied but backup %s could not be removed: %s", backup_path, e)

        logger.debug("%s at %d applied to %s", kind.value, position, path)
        return previous

    def _check_bounds(
        self,
        path: Path,
        kind: MutationKind,
        position: int,
        value: int | None,
        size: int,
    ) -> None:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise InvalidInputError(f"Invalid byte position: {position!r}")
        if kind is not MutationKind.DELETE:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
                raise InvalidInputError(f"Invalid byte value: {value!r}")

        if kind is MutationKind.INSERT:
            if position > size:
                raise InvalidInputError(
                    f"Insert position {position} beyond end of {path} ({size} bytes)"
                )
            return

        if size == 0:
            raise InvalidInputError(f"Cannot {kind.value} a byte in empty file {path}")
        if position >= size:
            raise InvalidInputError(
                f"Position {position} out of range for {path} ({size} bytes)"
            )

    def _write_draft(
        self,
        source: Path,
        draft: Path,
        kind: MutationKind,
        position: int,
        value: int | None,
        size: int,
    ) -> int | None:
        """Stream ``source`` into ``draft`` applying the edit.

        Returns:
            Byte found at ``position`` in the source, None for an append.
        """
        buffer = bytearray(self.config.buffer_size)
        view = memoryview(buffer)
        new_byte = b"" if value is None else bytes((value,))
        previous: int | None = None
        offset = 0
        chunks = 0

        try:
            with source.open("rb") as src, draft.open("xb") as dst:
                while True:
                    n = src.readinto(buffer)
                    if not n:
                        break
                    chunks += 1
                    if chunks > self.config.max_chunks:
                        raise ResourceExhaustedError(
                            f"File too large or malformed: {source} exceeded "
                            f"{self.config.max_chunks} chunks"
                        )

                    if offset <= position < offset + n:
                        i = position - offset
                        previous = buffer[i]
                        dst.write(view[:i])
                        dst.write(new_byte)
                        if kind is MutationKind.INSERT:
                            dst.write(view[i:n])
                        else:
                            dst.write(view[i + 1:n])
                    else:
                        dst.write(view[:n])
                    offset += n

                if kind is MutationKind.INSERT and position == offset:
                    dst.write(new_byte)

                dst.flush()
                if self.config.fsync:
                    os.fsync(dst.fileno())
        except OSError as e:
            raise _wrap_os_error(e, f"writing draft {draft}") from e

        if offset != size:
            raise IntegrityError(
                f"{source} changed size while streaming ({size} -> {offset} bytes)"
            )
        return previous

    def _verify_draft(
        self,
        original: Path,
        draft: Path,
        kind: MutationKind,
        position: int,
        value: int | None,
        size: int,
    ) -> None:
        expected_length = size + kind.shift
        actual_length = draft.stat().st_size
        if actual_length != expected_length:
            raise IntegrityError(
                f"Draft length {actual_length} != expected {expected_length} for {original}"
            )

        if not self._compare_regions(original, 0, draft, 0, position):
            raise IntegrityError(f"Draft differs from {original} before position {position}")

        if kind is not MutationKind.DELETE:
            with draft.open("rb") as f:
                f.seek(position)
                written = f.read(1)
            if written != bytes((value,)):
                raise IntegrityError(
                    f"Draft byte at {position} is {written!r}, expected 0x{value:02x}"
                )

        # Suffix regions after the edit, aligned for the frame shift
        if kind is MutationKind.REPLACE:
            src_offset, dst_offset, length = position + 1, position + 1, size - position - 1
        elif kind is MutationKind.INSERT:
            src_offset, dst_offset, length = position, position + 1, size - position
        else:
            src_offset, dst_offset, length = position + 1, position, size - position - 1

        if not self._compare_regions(original, src_offset, draft, dst_offset, length):
            raise IntegrityError(f"Draft differs from {original} after position {position}")

    def _compare_regions(
        self,
        first: Path,
        first_offset: int,
        second: Path,
        second_offset: int,
        length: int,
    ) -> bool:
        """Compare two byte ranges chunk by chunk and by SHA-256 digest."""
        if length <= 0:
            return True

        size = self.config.buffer_size
        first_buf = bytearray(size)
        second_buf = bytearray(size)
        first_hash = hashlib.sha256()
        second_hash = hashlib.sha256()
        remaining = length
        chunks = 0
        identical = True

        try:
            with first.open("rb") as a, second.open("rb") as b:
                a.seek(first_offset)
                b.seek(second_offset)
                while remaining > 0:
                    chunks += 1
                    if chunks > self.config.max_chunks:
                        raise ResourceExhaustedError(
                            f"Verification of {second} exceeded {self.config.max_chunks} chunks"
                        )
                    want = min(remaining, size)
                    n_a = a.readinto(memoryview(first_buf)[:want])
                    n_b = b.readinto(memoryview(second_buf)[:want])
                    if n_a != want or n_b != want:
                        return False
                    first_hash.update(memoryview(first_buf)[:want])
                    second_hash.update(memoryview(second_buf)[:want])
                    if first_buf[:want] != second_buf[:want]:
                        identical = False
                    remaining -= want
        except OSError as e:
            raise _wrap_os_error(e, f"verifying {second}") from e

        return identical and first_hash.digest() == second_hash.digest()

"""Configuration models for Byte-Undo.

This module defines the Pydantic model holding the changelog naming
convention and the streaming limits of the mutation engine.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from byte_undo.core.constants import (
    BACKUP_SUFFIX,
    DRAFT_SUFFIX,
    MAX_STREAM_BUFFER_SIZE,
    MAX_STREAM_CHUNKS,
    REDO_MARKER,
    STREAM_BUFFER_SIZE,
    UNDO_DIR_PREFIX,
)


class ChangelogConfig(BaseModel):
    """Changelog and mutation engine configuration.

    Attributes:
        undo_prefix: Prefix of default undo directory names.
        redo_marker: Marker inserted after the prefix for redo directories.
        backup_suffix: Suffix of the safety copy made before a mutation.
        draft_suffix: Suffix of the file the edited stream is written to.
        buffer_size: Fixed streaming buffer size in bytes (1-1048576).
        max_chunks: Hard bound on chunks streamed in a single pass.
        fsync: Flush the draft to stable storage before the swap.
    """

    model_config = ConfigDict(validate_assignment=True)

    undo_prefix: str = UNDO_DIR_PREFIX
    redo_marker: str = REDO_MARKER
    backup_suffix: str = BACKUP_SUFFIX
    draft_suffix: str = DRAFT_SUFFIX
    buffer_size: int = Field(default=STREAM_BUFFER_SIZE, ge=1, le=MAX_STREAM_BUFFER_SIZE)
    max_chunks: int = Field(default=MAX_STREAM_CHUNKS, ge=1)
    fsync: bool = True

    @field_validator("undo_prefix", "redo_marker")
    @classmethod
    def validate_name_part(cls, v: str) -> str:
        """Reject empty markers and markers that would split a path."""
        if not v:
            raise ValueError("Directory name markers must be non-empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"Directory name marker must not contain a path separator: {v!r}")
        return v

    @field_validator("backup_suffix", "draft_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        """Require suffixes of the form '.name'."""
        if len(v) < 2 or not v.startswith("."):
            raise ValueError(f"Suffix must start with '.' and name something: {v!r}")
        if "/" in v or "\\" in v:
            raise ValueError(f"Suffix must not contain a path separator: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_distinct_suffixes(self) -> ChangelogConfig:
        """Backup and draft must never collide."""
        if self.backup_suffix == self.draft_suffix:
            raise ValueError("backup_suffix and draft_suffix must differ")
        return self

    @property
    def stream_capacity(self) -> int:
        """Largest file size the engine will stream, in bytes."""
        return self.buffer_size * self.max_chunks

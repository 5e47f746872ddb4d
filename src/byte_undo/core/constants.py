"""Centralized constants for Byte-Undo.

Defaults for the changelog naming convention and the streaming limits of
the mutation engine. ChangelogConfig uses these as field defaults, so
overriding a value through settings never requires touching this module.
"""

# =============================================================================
# Changelog naming
# =============================================================================

# Prefix of every default undo directory: notes.txt -> changelog_notestxt
UNDO_DIR_PREFIX: str = "changelog_"

# Marker inserted after the prefix for the paired redo directory
REDO_MARKER: str = "redo_"

# =============================================================================
# Transient mutation artifacts
# =============================================================================

BACKUP_SUFFIX: str = ".backup"
DRAFT_SUFFIX: str = ".draft"

# =============================================================================
# Streaming limits
# =============================================================================

# Fixed buffer used for every streamed copy and comparison (bytes)
STREAM_BUFFER_SIZE: int = 4096

# Upper bound for buffer_size settings (1 MiB)
MAX_STREAM_BUFFER_SIZE: int = 1_048_576

# Hard bound on streamed chunks per pass (16 GiB at the default buffer)
MAX_STREAM_CHUNKS: int = 4_194_304

# =============================================================================
# Entry format
# =============================================================================

ENTRY_ENCODING: str = "utf-8"

"""Shared test fixtures for Byte-Undo tests.

Fixture Dependency Hierarchy
============================

::

    temp_dir (base temporary directory)
    ├── temp_home (isolated HOME, no user settings leak in)
    ├── make_file (factory: write bytes to a file under temp_dir)
    └── target_file (notes.txt containing b"ABC")

    small_config (4-byte buffer, forces multi-chunk streaming)
    └── engine (MutationEngine using small_config)

Notes:
- Every test that touches a target file uses absolute paths under
  temp_dir, so default changelog directories land there too.
- BYTE_UNDO_* variables are removed from the environment for each test.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from byte_undo.config import ChangelogConfig
from byte_undo.core.logging import ROOT_LOGGER_NAME
from byte_undo.undo.mutation import MutationEngine

# ============================================================
# Environment Isolation
# ============================================================


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop BYTE_UNDO_* variables so host settings never affect tests."""
    for key in list(os.environ):
        if key.startswith("BYTE_UNDO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Undo handler changes made by setup_logging during a test."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


# ============================================================
# Directory Fixtures
# ============================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Resolved path to a temporary directory cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory and point HOME at it."""
    home = temp_dir / "home"
    home.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


# ============================================================
# File Fixtures
# ============================================================


@pytest.fixture
def make_file(temp_dir: Path) -> Callable[[str, bytes], Path]:
    """Factory writing ``content`` to ``temp_dir / name``.

    Returns:
        Function (name, content) -> absolute path.
    """

    def _make(name: str, content: bytes) -> Path:
        path = temp_dir / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def target_file(make_file: Callable[[str, bytes], Path]) -> Path:
    """notes.txt holding b"ABC"."""
    return make_file("notes.txt", b"ABC")


# ============================================================
# Configuration Fixtures
# ============================================================


@pytest.fixture
def small_config() -> ChangelogConfig:
    """Config with a 4-byte buffer so even short files span chunks."""
    return ChangelogConfig(buffer_size=4, fsync=False)


@pytest.fixture
def engine(small_config: ChangelogConfig) -> MutationEngine:
    """MutationEngine using small_config."""
    return MutationEngine(small_config)

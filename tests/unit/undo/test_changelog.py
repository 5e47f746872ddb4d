"""Tests for changelog stack directories and naming."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from byte_undo.config import ChangelogConfig
from byte_undo.core import (
    ByteUndoError,
    CorruptEntryError,
    EmptyStackError,
    IntegrityError,
    InvalidInputError,
    NotFoundError,
)
from byte_undo.undo.changelog import (
    StackDirectory,
    is_redo_directory,
    paired_directory,
    redo_directory_for,
    sanitize_file_name,
    undo_directory_for,
)
from byte_undo.undo.models import AddByte, HexEditByte, RemoveByte


class TestNaming:
    """Tests for directory naming helpers."""

    def test_sanitize_removes_dots(self) -> None:
        assert sanitize_file_name("notes.txt") == "notestxt"
        assert sanitize_file_name("archive.tar.gz") == "archivetargz"
        assert sanitize_file_name("Makefile") == "Makefile"

    def test_undo_directory_next_to_target(self, target_file: Path) -> None:
        assert undo_directory_for(target_file) == target_file.parent / "changelog_notestxt"

    def test_redo_directory_next_to_target(self, target_file: Path) -> None:
        assert redo_directory_for(target_file) == target_file.parent / "changelog_redo_notestxt"

    def test_undo_directory_missing_target(self, temp_dir: Path) -> None:
        with pytest.raises(NotFoundError):
            undo_directory_for(temp_dir / "missing.txt")

    def test_dots_only_name_rejected(self, make_file) -> None:
        path = make_file("...", b"x")
        with pytest.raises(InvalidInputError):
            undo_directory_for(path)

    def test_name_starting_with_marker_is_escaped(self, make_file) -> None:
        """A file called redo_x.txt must not map onto a redo directory."""
        path = make_file("redo_x.txt", b"x")
        undo_dir = undo_directory_for(path)

        assert undo_dir.name == "changelog__redo_xtxt"
        assert not is_redo_directory(undo_dir)
        assert paired_directory(undo_dir).name == "changelog_redo__redo_xtxt"

    def test_custom_prefix(self, target_file: Path) -> None:
        config = ChangelogConfig(undo_prefix="history-", redo_marker="fwd-")
        assert undo_directory_for(target_file, config).name == "history-notestxt"
        assert redo_directory_for(target_file, config).name == "history-fwd-notestxt"

    def test_symlink_target_uses_real_location(self, target_file: Path, temp_dir: Path) -> None:
        other = temp_dir / "elsewhere"
        other.mkdir()
        link = other / "alias.txt"
        os.symlink(target_file, link)

        assert undo_directory_for(link) == target_file.parent / "changelog_notestxt"


class TestPairedDirectory:
    """Tests for the undo/redo pairing rule."""

    @pytest.mark.parametrize(
        ("name", "paired"),
        [
            ("changelog_notestxt", "changelog_redo_notestxt"),
            ("changelog_redo_notestxt", "changelog_notestxt"),
            ("custom", "redo_custom"),
            ("redo_custom", "custom"),
        ],
    )
    def test_pairs(self, tmp_path: Path, name: str, paired: str) -> None:
        assert paired_directory(tmp_path / name) == tmp_path / paired

    def test_pairing_is_an_involution(self, tmp_path: Path) -> None:
        """Pairing twice returns the starting directory."""
        for name in ("changelog_a", "changelog_redo_a", "logs", "redo_logs"):
            start = tmp_path / name
            assert paired_directory(paired_directory(start)) == start

    def test_only_last_component_changes(self, tmp_path: Path) -> None:
        start = tmp_path / "changelog_dir" / "changelog_a"
        assert paired_directory(start).parent == start.parent

    @pytest.mark.parametrize("name", ["redo_", "changelog_redo_"])
    def test_degenerate_names_rejected(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(InvalidInputError):
            paired_directory(tmp_path / name)

    def test_root_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            paired_directory(Path("/"))

    def test_is_redo_directory(self, tmp_path: Path) -> None:
        assert is_redo_directory(tmp_path / "changelog_redo_a")
        assert is_redo_directory(tmp_path / "redo_logs")
        assert not is_redo_directory(tmp_path / "changelog_a")
        assert not is_redo_directory(tmp_path / "logs")


class TestStackDirectory:
    """Tests for StackDirectory."""

    @pytest.fixture
    def stack(self, tmp_path: Path) -> StackDirectory:
        return StackDirectory(tmp_path / "changelog_notestxt")

    def test_missing_directory_is_empty(self, stack: StackDirectory) -> None:
        assert stack.is_empty()
        assert stack.count() == 0
        assert stack.sequence_numbers() == []
        assert not stack.path.exists()

    def test_append_creates_directory(self, stack: StackDirectory) -> None:
        path = stack.append(RemoveByte(position=0))

        assert stack.path.is_dir()
        assert path == stack.path / "0"
        assert path.read_text(encoding="utf-8") == "rmv\n0\n"

    def test_append_numbers_sequentially(self, stack: StackDirectory) -> None:
        paths = [stack.append(RemoveByte(position=i)) for i in range(3)]

        assert [p.name for p in paths] == ["0", "1", "2"]
        assert stack.sequence_numbers() == [0, 1, 2]
        assert stack.count() == 3

    def test_numeric_ordering(self, stack: StackDirectory) -> None:
        """Entry 10 sorts after entry 9."""
        stack.path.mkdir()
        for n in (9, 10, 2):
            (stack.path / str(n)).write_text("rmv\n0\n", encoding="utf-8")

        assert stack.sequence_numbers() == [2, 9, 10]
        assert stack.append(AddByte(position=1, value=1)).name == "11"

    @pytest.mark.parametrize("name", ["00", "007", "010"])
    def test_leading_zero_names_ignored(self, stack: StackDirectory, name: str) -> None:
        """A name like 00 is not read as entry 0."""
        stack.path.mkdir()
        (stack.path / name).write_text("rmv\n0\n", encoding="utf-8")

        assert stack.sequence_numbers() == []
        with pytest.raises(EmptyStackError):
            stack.peek_top()

    def test_leading_zero_name_beside_real_entry(self, stack: StackDirectory) -> None:
        stack.append(HexEditByte(position=0, value=0x41))
        (stack.path / "01").write_text("rmv\n0\n", encoding="utf-8")

        assert stack.sequence_numbers() == [0]
        assert stack.peek_top().record == HexEditByte(position=0, value=0x41)

    def test_append_leaves_no_temporary_files(self, stack: StackDirectory) -> None:
        stack.append(HexEditByte(position=0, value=0x41))
        assert sorted(p.name for p in stack.path.iterdir()) == ["0"]

    def test_non_numeric_names_ignored(self, stack: StackDirectory) -> None:
        stack.path.mkdir()
        (stack.path / "README").write_text("notes", encoding="utf-8")
        (stack.path / "3.tmp").write_text("rmv\n0\n", encoding="utf-8")
        (stack.path / "-1").write_text("rmv\n0\n", encoding="utf-8")
        (stack.path / ".4-abcd.tmp").mkdir()

        assert stack.is_empty()
        assert stack.append(RemoveByte(position=0)).name == "0"

    def test_peek_top(self, stack: StackDirectory) -> None:
        stack.append(RemoveByte(position=0))
        stack.append(AddByte(position=4, value=0x62))

        entry = stack.peek_top()

        assert entry.sequence == 1
        assert entry.record == AddByte(position=4, value=0x62)
        assert stack.count() == 2

    def test_peek_empty(self, stack: StackDirectory) -> None:
        with pytest.raises(EmptyStackError) as exc_info:
            stack.peek_top()
        assert exc_info.value.directory == stack.path

    def test_peek_corrupt_top(self, stack: StackDirectory) -> None:
        stack.append(RemoveByte(position=0))
        (stack.path / "1").write_text("garbage\n", encoding="utf-8")

        with pytest.raises(CorruptEntryError):
            stack.peek_top()

    def test_pop_top_is_lifo(self, stack: StackDirectory) -> None:
        records = [RemoveByte(position=0), AddByte(position=1, value=2), RemoveByte(position=3)]
        for record in records:
            stack.append(record)

        popped = [stack.pop_top() for _ in records]

        assert popped == [(record,) for record in reversed(records)]
        assert stack.is_empty()

    def test_discard_missing_entry(self, stack: StackDirectory) -> None:
        stack.append(RemoveByte(position=0))
        entry = stack.peek_top()
        entry.path.unlink()

        with pytest.raises(NotFoundError):
            stack.discard(entry)

    def test_clear(self, stack: StackDirectory) -> None:
        for i in range(4):
            stack.append(RemoveByte(position=i))
        (stack.path / "notes").write_text("keep", encoding="utf-8")

        assert stack.clear() == 4
        assert stack.is_empty()
        assert stack.path.is_dir()
        assert (stack.path / "notes").exists()

    def test_clear_missing_directory(self, stack: StackDirectory) -> None:
        assert stack.clear() == 0

    def test_clear_reports_leftovers(self, stack: StackDirectory) -> None:
        stack.append(RemoveByte(position=0))

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with pytest.raises(IntegrityError):
                stack.clear()

    def test_unlistable_directory(self, stack: StackDirectory) -> None:
        stack.path.mkdir()
        with patch("byte_undo.undo.changelog.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(ByteUndoError):
                stack.sequence_numbers()

    def test_paired_and_is_redo(self, stack: StackDirectory) -> None:
        redo = stack.paired()

        assert not stack.is_redo
        assert redo.is_redo
        assert redo.path.name == "changelog_redo_notestxt"
        assert redo.paired().path == stack.path

    def test_repr(self, stack: StackDirectory) -> None:
        assert "changelog_notestxt" in repr(stack)


class TestGroups:
    """Tests for multi-record group entries."""

    @pytest.fixture
    def stack(self, tmp_path: Path) -> StackDirectory:
        return StackDirectory(tmp_path / "changelog_cjktxt")

    def test_group_is_one_directory(self, stack: StackDirectory) -> None:
        path = stack.append_group([RemoveByte(position=0)] * 3)

        assert path == stack.path / "0"
        assert path.is_dir()
        assert sorted(p.name for p in path.iterdir()) == ["0", "1", "2"]
        assert (path / "2").read_text(encoding="utf-8") == "rmv\n0\n"
        assert stack.count() == 1

    def test_single_record_group_is_a_file(self, stack: StackDirectory) -> None:
        path = stack.append_group([AddByte(position=1, value=0x61)])
        assert path.is_file()
        assert stack.peek_top().records == (AddByte(position=1, value=0x61),)

    def test_empty_group_rejected(self, stack: StackDirectory) -> None:
        with pytest.raises(InvalidInputError):
            stack.append_group([])

    def test_group_numbered_with_files(self, stack: StackDirectory) -> None:
        stack.append(HexEditByte(position=0, value=1))
        group = stack.append_group([RemoveByte(position=0), RemoveByte(position=0)])
        top = stack.append(HexEditByte(position=0, value=2))

        assert (group.name, top.name) == ("1", "2")
        assert stack.sequence_numbers() == [0, 1, 2]

    def test_peek_group_in_application_order(self, stack: StackDirectory) -> None:
        """Members are applied last written first."""
        written = [AddByte(position=0, value=0xE9), AddByte(position=0, value=0x98)]
        stack.append_group(written)

        entry = stack.peek_top()

        assert entry.is_group
        assert entry.records == (written[1], written[0])
        assert entry.record == written[1]

    def test_ten_member_group_orders_numerically(self, stack: StackDirectory) -> None:
        written = [AddByte(position=0, value=i) for i in range(11)]
        stack.append_group(written)
        assert stack.peek_top().records == tuple(reversed(written))

    def test_pop_group(self, stack: StackDirectory) -> None:
        stack.append_group([RemoveByte(position=4)] * 2)

        assert stack.pop_top() == (RemoveByte(position=4), RemoveByte(position=4))
        assert stack.is_empty()
        assert list(stack.path.iterdir()) == []

    def test_group_with_gap_is_corrupt(self, stack: StackDirectory) -> None:
        path = stack.append_group([RemoveByte(position=0)] * 3)
        (path / "1").unlink()

        with pytest.raises(CorruptEntryError):
            stack.peek_top()

    def test_group_with_corrupt_member(self, stack: StackDirectory) -> None:
        path = stack.append_group([RemoveByte(position=0)] * 2)
        (path / "0").write_text("rmv\nfirst\n", encoding="utf-8")

        with pytest.raises(CorruptEntryError):
            stack.peek_top()

    def test_discard_keeps_failed_cleanup_out_of_stack(self, stack: StackDirectory) -> None:
        """A group that cannot be fully deleted no longer reads as an entry."""
        stack.append_group([RemoveByte(position=0)] * 2)
        entry = stack.peek_top()

        with patch("byte_undo.undo.changelog.shutil.rmtree", side_effect=OSError("busy")):
            stack.discard(entry)

        assert stack.is_empty()
        assert stack.append(RemoveByte(position=0)).name == "0"

    def test_clear_counts_groups_once(self, stack: StackDirectory) -> None:
        stack.append(RemoveByte(position=0))
        stack.append_group([RemoveByte(position=0)] * 3)

        assert stack.clear() == 2
        assert stack.is_empty()

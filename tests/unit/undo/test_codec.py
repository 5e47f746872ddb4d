"""Tests for the changelog entry codec."""

from __future__ import annotations

from pathlib import Path

import pytest

from byte_undo.core import CorruptEntryError, InvalidInputError, NotFoundError
from byte_undo.undo.codec import decode_record, encode_record, read_entry
from byte_undo.undo.models import AddByte, HexEditByte, RemoveByte


class TestEncode:
    """Tests for encode_record."""

    def test_encode_add(self) -> None:
        assert encode_record(AddByte(position=0, value=0x61)) == "add\n0\n61\n"

    def test_encode_remove_has_no_value_line(self) -> None:
        assert encode_record(RemoveByte(position=12)) == "rmv\n12\n"

    def test_encode_hex_edit_pads_value(self) -> None:
        """Values are always two lowercase hex digits."""
        assert encode_record(HexEditByte(position=3, value=0x0F)) == "edt\n3\n0f\n"


class TestDecode:
    """Tests for decode_record."""

    def test_decode_with_trailing_newline(self) -> None:
        assert decode_record("add\n0\n61\n") == AddByte(position=0, value=0x61)

    def test_decode_without_trailing_newline(self) -> None:
        assert decode_record("rmv\n9") == RemoveByte(position=9)

    def test_decode_uppercase_hex(self) -> None:
        assert decode_record("edt\n1\nFF\n") == HexEditByte(position=1, value=0xFF)

    def test_decode_large_position(self) -> None:
        """Positions are unbounded decimal numbers."""
        record = decode_record("rmv\n123456789012\n")
        assert record.position == 123456789012

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "\n",
            "ins\n0\n61\n",
            "ADD\n0\n61\n",
            "add\n-1\n61\n",
            "add\n+1\n61\n",
            "add\n 1\n61\n",
            "add\nx\n61\n",
            "add\n0\n",
            "add\n0\n6\n",
            "add\n0\n611\n",
            "add\n0\nzz\n",
            "add\n0\n61\n\n",
            "rmv\n0\n61\n",
            "rmv\n",
            "edt\n0\n0x\n",
            "add\n٣\n61\n",
        ],
    )
    def test_structural_deviations_rejected(self, text: str) -> None:
        """Anything outside the three-line layout is a corrupt entry."""
        with pytest.raises(CorruptEntryError):
            decode_record(text)

    def test_corrupt_entry_is_invalid_input(self) -> None:
        """Corrupt entries belong to the invalid input family."""
        with pytest.raises(InvalidInputError) as exc_info:
            decode_record("nope\n")
        assert "Corrupt changelog entry" in str(exc_info.value)

    def test_error_names_entry_path(self, tmp_path: Path) -> None:
        """The failing file is part of the message."""
        entry = tmp_path / "3"
        with pytest.raises(CorruptEntryError) as exc_info:
            decode_record("rmv\n0\n00\n", entry)
        assert exc_info.value.path == entry
        assert str(entry) in str(exc_info.value)


class TestReadEntry:
    """Tests for read_entry."""

    def test_read_entry(self, tmp_path: Path) -> None:
        entry = tmp_path / "0"
        entry.write_text("edt\n2\n41\n", encoding="utf-8")

        assert read_entry(entry) == HexEditByte(position=2, value=0x41)

    def test_read_missing_entry(self, tmp_path: Path) -> None:
        with pytest.raises(NotFoundError):
            read_entry(tmp_path / "missing")

    def test_read_non_utf8_entry(self, tmp_path: Path) -> None:
        entry = tmp_path / "0"
        entry.write_bytes(b"\xff\xfe\n0\n")

        with pytest.raises(CorruptEntryError):
            read_entry(entry)

    def test_encoded_text_reads_back(self, tmp_path: Path) -> None:
        """Entries written by encode_record are what read_entry accepts."""
        entry = tmp_path / "0"
        record = AddByte(position=17, value=0xE9)
        entry.write_text(encode_record(record), encoding="utf-8")

        assert read_entry(entry) == record

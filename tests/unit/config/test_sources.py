"""Tests for settings files and environment overrides."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from byte_undo.config.sources import SettingsFile, environment_overrides
from byte_undo.core import ConfigError


class TestSettingsFile:
    """Tests for SettingsFile."""

    def test_load_json(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text('{"buffer_size": 512, "fsync": false}')

        assert SettingsFile(path).load() == {"buffer_size": 512, "fsync": False}

    @pytest.mark.parametrize("name", ["settings.yaml", "settings.yml"])
    def test_load_yaml(self, tmp_path: Path, name: str) -> None:
        path = tmp_path / name
        path.write_text("undo_prefix: hist_\nmax_chunks: 10\n")

        assert SettingsFile(path).load() == {"undo_prefix": "hist_", "max_chunks": 10}

    @pytest.mark.parametrize(("name", "content"), [("a.json", "  \n"), ("a.yaml", ""), ("b.yaml", "~\n")])
    def test_empty_file(self, tmp_path: Path, name: str, content: str) -> None:
        path = tmp_path / name
        path.write_text(content)
        assert SettingsFile(path).load() == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        assert SettingsFile(tmp_path / "settings.json").load() == {}

    @pytest.mark.parametrize(("name", "content"), [("a.json", "{broken"), ("a.yaml", "key: [unclosed")])
    def test_parse_error(self, tmp_path: Path, name: str, content: str) -> None:
        path = tmp_path / name
        path.write_text(content)

        with pytest.raises(ConfigError) as exc_info:
            SettingsFile(path).load()
        assert "Cannot parse" in str(exc_info.value)

    @pytest.mark.parametrize(("name", "content"), [("a.json", "[1, 2]"), ("a.yaml", "- item\n")])
    def test_root_must_be_mapping(self, tmp_path: Path, name: str, content: str) -> None:
        path = tmp_path / name
        path.write_text(content)

        with pytest.raises(ConfigError) as exc_info:
            SettingsFile(path).load()
        assert "mapping" in str(exc_info.value)

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.toml"
        path.write_text("buffer_size = 1\n")

        with pytest.raises(ConfigError) as exc_info:
            SettingsFile(path).load()
        assert "Unsupported" in str(exc_info.value)

    def test_unknown_keys_dropped(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "settings.json"
        path.write_text('{"bufer_size": 1, "fsync": true}')

        with caplog.at_level(logging.WARNING):
            assert SettingsFile(path).load() == {"fsync": True}
        assert "bufer_size" in caplog.text

    def test_in_directory_prefers_json(self, tmp_path: Path) -> None:
        (tmp_path / "settings.yaml").write_text("fsync: false\n")
        (tmp_path / "settings.json").write_text("{}")

        settings = SettingsFile.in_directory(tmp_path)

        assert settings is not None
        assert settings.path.name == "settings.json"

    def test_in_directory_finds_yml(self, tmp_path: Path) -> None:
        (tmp_path / "settings.yml").write_text("fsync: false\n")
        settings = SettingsFile.in_directory(tmp_path)
        assert settings is not None
        assert settings.path.name == "settings.yml"

    def test_in_directory_empty(self, tmp_path: Path) -> None:
        assert SettingsFile.in_directory(tmp_path) is None
        assert SettingsFile.in_directory(tmp_path / "missing") is None


class TestEnvironmentOverrides:
    """Tests for BYTE_UNDO_<FIELD> variables."""

    def test_every_field_has_a_variable(self) -> None:
        environ = {
            "BYTE_UNDO_UNDO_PREFIX": "h_",
            "BYTE_UNDO_REDO_MARKER": "f_",
            "BYTE_UNDO_BACKUP_SUFFIX": ".bak",
            "BYTE_UNDO_DRAFT_SUFFIX": ".new",
            "BYTE_UNDO_BUFFER_SIZE": "64",
            "BYTE_UNDO_MAX_CHUNKS": "9",
            "BYTE_UNDO_FSYNC": "off",
        }

        assert environment_overrides(environ) == {
            "undo_prefix": "h_",
            "redo_marker": "f_",
            "backup_suffix": ".bak",
            "draft_suffix": ".new",
            "buffer_size": "64",
            "max_chunks": "9",
            "fsync": "off",
        }

    def test_ignores_other_variables(self) -> None:
        environ = {"BYTE_UNDO_LOG_LEVEL": "DEBUG", "HOME": "/home/x"}
        assert environment_overrides(environ) == {}

    def test_uses_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BYTE_UNDO_MAX_CHUNKS", "12")
        assert environment_overrides() == {"max_chunks": "12"}

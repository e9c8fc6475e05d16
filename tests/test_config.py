"""Tests for disarray.settings and disarray.config."""

import json
import sys
from pathlib import Path

from disarray import resources
from disarray.config import AppConfig
from disarray.settings import DEFAULT_SETTINGS, SETTINGS_FILENAME, load_settings, merge_settings


def write_settings(root: Path, payload) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / SETTINGS_FILENAME).write_text(json.dumps(payload), encoding="utf-8")


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_settings(tmp_path) == DEFAULT_SETTINGS

    def test_overrides_are_deep_merged(self, tmp_path: Path):
        write_settings(tmp_path, {"app": {"author": "Alex"}})
        settings = load_settings(tmp_path)
        assert settings["app"]["author"] == "Alex"
        assert settings["app"]["window_title"] == "Disarray"
        assert settings["ui"] == DEFAULT_SETTINGS["ui"]

    def test_malformed_file_gives_defaults(self, tmp_path: Path):
        (tmp_path / SETTINGS_FILENAME).write_text("{oops", encoding="utf-8")
        assert load_settings(tmp_path) == DEFAULT_SETTINGS

    def test_non_object_file_gives_defaults(self, tmp_path: Path):
        write_settings(tmp_path, ["not", "an", "object"])
        assert load_settings(tmp_path) == DEFAULT_SETTINGS

    def test_defaults_are_not_shared(self, tmp_path: Path):
        load_settings(tmp_path)["app"]["author"] = "changed"
        assert DEFAULT_SETTINGS["app"]["author"] == "LocalUser"


class TestAccessors:
    def test_typed_getters_fall_back_on_bad_values(self):
        config = AppConfig(settings={"ui": {"font_size": "big", "render_markdown": "yes"}, "app": {"author": "  "}})
        assert config.number("ui.font_size", 13) == 13
        assert config.flag("ui.render_markdown", True) is True
        assert config.text("app.author", "LocalUser") == "LocalUser"

    def test_missing_keys_use_defaults(self):
        config = AppConfig(settings={"ui": 3})
        assert config.number("ui.font_size", 13) == 13
        assert config.text("app.missing", "fallback") == "fallback"

    def test_bool_is_not_an_int(self):
        assert AppConfig(settings={"ui": {"font_size": True}}).number("ui.font_size", 13) == 13

    def test_relative_path_resolves_against_root(self, tmp_path: Path):
        config = AppConfig(settings={"storage": {"data_dir": "data"}})
        assert config.path("storage.data_dir", tmp_path) == (tmp_path / "data").resolve()

    def test_empty_path_is_none(self, tmp_path: Path):
        assert AppConfig(settings={"storage": {"data_dir": ""}}).path("storage.data_dir", tmp_path) is None


class TestMergeSettings:
    def test_nested_sections_merge(self):
        merged = merge_settings({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

    def test_inputs_are_not_modified(self):
        base = {"a": {"x": 1}}
        override = {"a": {"x": 2}}
        merge_settings(base, override)
        assert base == {"a": {"x": 1}}


class TestAppConfig:
    def test_environment_override_wins(self, tmp_path: Path, monkeypatch):
        write_settings(tmp_path / "settings", {"storage": {"data_dir": str(tmp_path / "from-settings")}})
        monkeypatch.setenv("DISARRAY_SETTINGS_DIR", str(tmp_path / "settings"))
        monkeypatch.setenv("DISARRAY_DATA_DIR", str(tmp_path / "from-env"))
        assert AppConfig().paths.data_dir == (tmp_path / "from-env").resolve()

    def test_settings_data_dir_is_used(self, tmp_path: Path, monkeypatch):
        write_settings(tmp_path / "settings", {"storage": {"data_dir": "chat-data"}, "app": {"author": "Alex"}})
        monkeypatch.setenv("DISARRAY_SETTINGS_DIR", str(tmp_path / "settings"))
        config = AppConfig()
        assert config.paths.data_dir == (tmp_path / "settings" / "chat-data").resolve()
        assert config.author == "Alex"

    def test_platform_default(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DISARRAY_SETTINGS_DIR", str(tmp_path / "empty"))
        assert AppConfig().paths.data_dir == resources.user_data_dir()

    def test_explicit_settings_are_kept(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DISARRAY_SETTINGS_DIR", str(tmp_path))
        config = AppConfig(settings={"ui": {"font_size": 0}, "logging": {"level": "debug"}})
        assert config.font_size == 13
        assert config.log_level == "DEBUG"
        assert config.render_markdown is True


class TestUserDataDir:
    def test_xdg_layout(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        assert resources.user_data_dir() == tmp_path / "xdg" / "disarray"

    def test_macos_layout(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(sys, "platform", "darwin")
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert resources.user_data_dir() == tmp_path / "Library" / "Application Support" / "Disarray"

    def test_windows_layout(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", str(tmp_path / "Roaming"))
        assert resources.user_data_dir() == tmp_path / "Roaming" / "Disarray"

"""Tests for TOML-backed analysis defaults."""

from pathlib import Path

import pytest
import toml

from refactorlens import config_manager


class TestLoadConfig:
    def test_defaults_without_file(self, temp_config: Path):
        assert not temp_config.exists()
        assert config_manager.load_config() == config_manager.DEFAULT_ANALYSIS_CONFIG

    def test_corrupt_file_falls_back_to_defaults(self, temp_config: Path):
        temp_config.parent.mkdir(parents=True)
        temp_config.write_text("[analysis\ninclude_security_scan = ")

        assert config_manager.load_full_config() == {}
        assert config_manager.load_config() == config_manager.DEFAULT_ANALYSIS_CONFIG

    def test_unknown_keys_dropped(self, temp_config: Path):
        temp_config.parent.mkdir(parents=True)
        temp_config.write_text('[analysis]\ninclude_quality_scan = true\ncolour = "blue"\n')

        loaded = config_manager.load_config()

        assert loaded["include_quality_scan"] is True
        assert "colour" not in loaded

    def test_hand_edited_strings_are_coerced(self, temp_config: Path):
        temp_config.parent.mkdir(parents=True)
        temp_config.write_text('[analysis]\ninclude_security_scan = "false"\ndefault_language = "Java"\n')

        loaded = config_manager.load_config()

        assert loaded["include_security_scan"] is False
        assert loaded["default_language"] == "java"

    def test_invalid_values_fall_back_to_defaults(self, temp_config: Path):
        temp_config.parent.mkdir(parents=True)
        temp_config.write_text('[analysis]\ninclude_quality_scan = "sometimes"\ndefault_language = "cobol"\n')

        assert config_manager.load_config() == config_manager.DEFAULT_ANALYSIS_CONFIG


class TestSaveConfig:
    """Tests for persisting settings."""

    def test_round_trip(self, temp_config: Path):
        assert config_manager.save_config("include_quality_scan", "yes")
        assert config_manager.save_config("default_language", "Python")

        loaded = config_manager.load_config()
        assert loaded["include_quality_scan"] is True
        assert loaded["default_language"] == "python"
        assert loaded["include_security_scan"] is True

    def test_other_sections_preserved(self, temp_config: Path):
        temp_config.parent.mkdir(parents=True)
        temp_config.write_text('[ui]\ntheme = "dark"\n')

        config_manager.save_config("adjust_for_language", "true")

        data = toml.loads(temp_config.read_text())
        assert data["ui"] == {"theme": "dark"}
        assert data["analysis"] == {"adjust_for_language": True}

    def test_reset(self, temp_config: Path):
        config_manager.save_config("include_security_scan", "off")
        assert config_manager.load_config()["include_security_scan"] is False

        assert config_manager.reset_config()
        assert config_manager.load_config() == config_manager.DEFAULT_ANALYSIS_CONFIG

    def test_reset_without_file(self, temp_config: Path):
        assert config_manager.reset_config()

    def test_unwritable_directory(self, tmp_path: Path, monkeypatch):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setattr(config_manager, "CONFIG_FILE", blocker / "refactorlens" / "config.toml")

        assert config_manager.save_config("include_quality_scan", "true") is False


class TestCoerceValue:
    @pytest.mark.parametrize("raw,expected", [("1", True), ("on", True), ("False", False), ("no", False)])
    def test_booleans(self, raw: str, expected: bool):
        assert config_manager.coerce_value("include_quality_scan", raw) is expected

    def test_empty_language_clears_default(self):
        assert config_manager.coerce_value("default_language", "") == ""

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown setting"):
            config_manager.coerce_value("colour", "blue")

    def test_bad_boolean(self):
        with pytest.raises(ValueError, match="expects a boolean"):
            config_manager.coerce_value("include_security_scan", "maybe")

    def test_unsupported_language(self):
        with pytest.raises(ValueError, match="Unsupported language"):
            config_manager.coerce_value("default_language", "cobol")

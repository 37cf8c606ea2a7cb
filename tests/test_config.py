"""Tests for configuration files and environment settings."""

from pathlib import Path

import pytest

from hongdown import config
from hongdown.config import (
    CONFIG_FILE_NAME,
    Settings,
    discover_config,
    load_config,
    options_from_toml,
)
from hongdown.formatting.options import ConfigError, resolve_options


class TestOptionsFromToml:
    """Tests for mapping TOML tables to option names."""

    def test_sections_are_flattened(self):
        """Test nested tables map to option fields."""
        options = options_from_toml(
            {
                "line_width": 100,
                "heading": {"setext_h2": False},
                "ordered_list": {"pad": "start", "indent_width": 3},
                "thematic_break": {"style": "* * *"},
                "punctuation": {"em_dash": "--"},
            }
        )

        assert options == {
            "line_width": 100,
            "setext_h2": False,
            "ordered_list_pad": "start",
            "ordered_list_indent_width": 3,
            "thematic_break_style": "* * *",
            "em_dash": "--",
        }

    def test_unknown_section(self):
        """Test an unknown table is rejected."""
        with pytest.raises(ConfigError) as exc_info:
            options_from_toml({"tables": {"width": 3}})

        assert exc_info.value.field == "tables"

    def test_unknown_key(self):
        """Test an unknown key names its section."""
        with pytest.raises(ConfigError) as exc_info:
            options_from_toml({"list": {"bullet": "*"}})

        assert exc_info.value.field == "list.bullet"

    def test_section_must_be_table(self):
        """Test a scalar where a table is expected."""
        with pytest.raises(ConfigError, match="must be a table"):
            options_from_toml({"heading": True})


class TestLoadConfig:
    """Tests for reading configuration files."""

    def test_load(self, tmp_path: Path):
        """Test a file is read and validated by resolve_options."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('line_width = 72\n\n[code_block]\nfence_char = "`"\n', encoding="utf-8")

        options = resolve_options(load_config(path))

        assert options.line_width == 72
        assert options.fence_char == "`"

    def test_invalid_toml(self, tmp_path: Path):
        """Test a syntax error is a ConfigError."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("line_width = \n", encoding="utf-8")

        with pytest.raises(ConfigError, match="failed to parse"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path):
        """Test an unreadable file is a ConfigError."""
        with pytest.raises(ConfigError, match="failed to read"):
            load_config(tmp_path / "absent.toml")

    def test_invalid_value(self, tmp_path: Path):
        """Test values are checked when the options are resolved."""
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('[list]\nunordered_marker = "x"\n', encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            resolve_options(load_config(path))

        assert exc_info.value.field == "unordered_marker"


class TestDiscoverConfig:
    """Tests for finding the nearest configuration file."""

    def test_found_in_parent(self, tmp_path: Path):
        """Test discovery walks up the directory tree."""
        config = tmp_path / CONFIG_FILE_NAME
        config.write_text("line_width = 60\n", encoding="utf-8")
        nested = tmp_path / "docs" / "guide"
        nested.mkdir(parents=True)

        assert discover_config(nested) == config.resolve()

    def test_nearest_wins(self, tmp_path: Path):
        """Test a closer file shadows one further up."""
        (tmp_path / CONFIG_FILE_NAME).write_text("line_width = 60\n", encoding="utf-8")
        nested = tmp_path / "docs"
        nested.mkdir()
        closer = nested / CONFIG_FILE_NAME
        closer.write_text("line_width = 70\n", encoding="utf-8")

        assert discover_config(nested) == closer.resolve()


class TestSettings:
    """Tests for environment settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        """Test values when no variables are set."""
        for name in ("HONGDOWN_CONFIG", "HONGDOWN_LINE_WIDTH", "HONGDOWN_EXTENSIONS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.config_path is None
        assert settings.line_width is None
        assert settings.extension_list == [".md"]

    def test_environment(self, monkeypatch: pytest.MonkeyPatch):
        """Test variables are read from the environment."""
        monkeypatch.setenv("HONGDOWN_LINE_WIDTH", "100")
        monkeypatch.setenv("HONGDOWN_EXTENSIONS", "md, MARKDOWN ,.mdx")

        settings = Settings(_env_file=None)

        assert settings.line_width == 100
        assert settings.extension_list == [".md", ".markdown", ".mdx"]

    def test_get_settings_is_cached(self, monkeypatch: pytest.MonkeyPatch):
        """Test the accessor builds the settings once and reuses them."""
        monkeypatch.setattr(config, "_settings", None)

        first = config.get_settings()

        assert config.get_settings() is first
        assert not hasattr(config, "load_settings")

"""Configuration management for Hongdown.

Two layers feed the formatter options:

- ``.hongdown.toml`` files, discovered by walking up from the formatted
  file's directory (or named explicitly)
- environment variables (``HONGDOWN_*``) read through pydantic-settings
"""

import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from hongdown.formatting.options import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".hongdown.toml"

# TOML section -> {key in section: option field name}; "" is the top level
TOML_LAYOUT: dict[str, dict[str, str]] = {
    "": {
        "line_width": "line_width",
    },
    "heading": {
        "setext_h1": "setext_h1",
        "setext_h2": "setext_h2",
    },
    "list": {
        "unordered_marker": "unordered_marker",
        "leading_spaces": "leading_spaces",
        "trailing_spaces": "trailing_spaces",
        "indent_width": "indent_width",
    },
    "ordered_list": {
        "odd_level_marker": "odd_level_marker",
        "even_level_marker": "even_level_marker",
        "pad": "ordered_list_pad",
        "indent_width": "ordered_list_indent_width",
    },
    "code_block": {
        "fence_char": "fence_char",
        "min_fence_length": "min_fence_length",
        "space_after_fence": "space_after_fence",
        "default_language": "default_language",
    },
    "thematic_break": {
        "style": "thematic_break_style",
        "leading_spaces": "thematic_break_leading_spaces",
    },
    "punctuation": {
        "curly_double_quotes": "curly_double_quotes",
        "curly_single_quotes": "curly_single_quotes",
        "curly_apostrophes": "curly_apostrophes",
        "ellipsis": "ellipsis",
        "en_dash": "en_dash",
        "em_dash": "em_dash",
    },
}


class Settings(BaseSettings):
    """Command-line defaults read from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Explicit configuration file; skips discovery when set
    config_path: Optional[Path] = Field(
        default=None,
        alias="HONGDOWN_CONFIG",
    )

    # Overrides line_width from any configuration file
    line_width: Optional[int] = Field(
        default=None,
        alias="HONGDOWN_LINE_WIDTH",
    )

    # Comma-separated file extensions formatted when scanning folders
    extensions: str = Field(
        default=".md",
        alias="HONGDOWN_EXTENSIONS",
    )

    @property
    def extension_list(self) -> list[str]:
        """Normalized extensions, each with a leading dot."""
        result = []
        for ext in self.extensions.split(","):
            ext = ext.strip().lower()
            if ext:
                result.append(ext if ext.startswith(".") else f".{ext}")
        return result


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def options_from_toml(document: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten a parsed ``.hongdown.toml`` document into option field names.

    Raises:
        ConfigError: If a section or key is unknown, or a section is not a table
    """
    options: dict[str, Any] = {}
    for key, value in document.items():
        if key in TOML_LAYOUT[""]:
            options[TOML_LAYOUT[""][key]] = value
            continue
        section = TOML_LAYOUT.get(key)
        if section is None or key == "":
            raise ConfigError(key, "unknown option")
        if not isinstance(value, Mapping):
            raise ConfigError(key, "must be a table")
        for name, item in value.items():
            if name not in section:
                raise ConfigError(f"{key}.{name}", "unknown option")
            options[section[name]] = item
    return options


def load_config(path: Path) -> dict[str, Any]:
    """Read one configuration file into sparse options.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except OSError as e:
        raise ConfigError(str(path), f"failed to read: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(str(path), f"failed to parse: {e}") from e
    logger.debug("Loaded configuration from %s", path)
    return options_from_toml(document)


def discover_config(start_dir: Path) -> Optional[Path]:
    """Find the nearest ``.hongdown.toml`` in ``start_dir`` or its parents."""
    current = start_dir.resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug("Discovered configuration file %s", candidate)
            return candidate
    return None

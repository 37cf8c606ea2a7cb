"""Formatting options and their resolution.

``FormatOptions`` is the immutable configuration record consulted by every
pass. Callers supply any subset of fields, by snake_case name or by the
camelCase alias used in configuration objects, and ``resolve_options``
merges them over the defaults.
"""

import re
from collections.abc import Mapping
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


THEMATIC_BREAK_PATTERN = re.compile(r"^(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")

# Pattern used when em_dash is simply switched on
DEFAULT_EM_DASH_PATTERN = "---"


class ConfigError(ValueError):
    """An option value is outside its domain.

    Attributes:
        field: Name of the offending option
        reason: Human-readable explanation
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid value for {field}: {reason}")


def _cross_field_error(field: str, reason: str) -> PydanticCustomError:
    return PydanticCustomError(
        "hongdown_option",
        "{reason}",
        {"field": field, "reason": reason},
    )


class FormatOptions(BaseModel):
    """Style options for one formatting call."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        strict=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Line wrapping
    line_width: int = Field(default=80, gt=0)

    # Headings
    setext_h1: bool = True
    setext_h2: bool = True

    # Unordered lists
    unordered_marker: Literal["-", "*", "+"] = "-"
    leading_spaces: int = Field(default=1, ge=0, le=3)
    trailing_spaces: int = Field(default=2, ge=1, le=4)
    indent_width: int = Field(default=4, ge=1)

    # Ordered lists
    odd_level_marker: Literal[".", ")"] = "."
    even_level_marker: Literal[".", ")"] = ")"
    ordered_list_pad: Literal["start", "end"] = "end"
    ordered_list_indent_width: int = Field(default=4, ge=1)

    # Code blocks
    fence_char: Literal["`", "~"] = "~"
    min_fence_length: int = Field(default=4, ge=3)
    space_after_fence: bool = False
    default_language: str = ""

    # Thematic breaks
    thematic_break_style: str = "---"
    thematic_break_leading_spaces: int = Field(default=0, ge=0, le=3)

    # Typography
    curly_double_quotes: bool = False
    curly_single_quotes: bool = False
    curly_apostrophes: bool = False
    ellipsis: bool = False
    en_dash: bool = False
    em_dash: Union[bool, str] = False

    @field_validator("default_language")
    @classmethod
    def _check_language(cls, value: str) -> str:
        if any(ch.isspace() for ch in value):
            raise ValueError("must not contain whitespace")
        return value

    @field_validator("thematic_break_style")
    @classmethod
    def _check_thematic_break(cls, value: str) -> str:
        if not THEMATIC_BREAK_PATTERN.match(value):
            raise ValueError(
                "must be three or more of the same '-', '*' or '_' "
                "character, optionally separated by spaces"
            )
        return value

    @field_validator("em_dash")
    @classmethod
    def _check_em_dash(cls, value: Union[bool, str]) -> Union[bool, str]:
        if isinstance(value, str) and (not value or value.isspace()):
            raise ValueError("pattern must not be empty")
        return value

    @model_validator(mode="after")
    def _check_combinations(self) -> "FormatOptions":
        marker_width = self.leading_spaces + 1 + self.trailing_spaces
        if self.indent_width >= marker_width + 4:
            raise _cross_field_error(
                "indent_width",
                f"must be less than {marker_width + 4} so nested content "
                f"is not read as an indented code block",
            )
        if self.em_dash == "--" and self.en_dash:
            raise _cross_field_error(
                "em_dash",
                "pattern '--' is mutually exclusive with en_dash",
            )
        return self

    @property
    def em_dash_pattern(self) -> Optional[str]:
        """Source pattern replaced by an em dash, or None when disabled."""
        if self.em_dash is True:
            return DEFAULT_EM_DASH_PATTERN
        if self.em_dash is False:
            return None
        return self.em_dash

    @property
    def unordered_marker_width(self) -> int:
        """Width of a rendered unordered marker including its padding."""
        return self.leading_spaces + 1 + self.trailing_spaces


def _field_names() -> dict[str, str]:
    """Map both field names and camelCase aliases to field names."""
    names: dict[str, str] = {}
    for name, info in FormatOptions.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


_FIELD_NAMES = _field_names()


def _to_config_error(exc: ValidationError) -> ConfigError:
    """Convert the first pydantic error into a ConfigError."""
    error = exc.errors()[0]
    ctx = error.get("ctx") or {}
    if "field" in ctx:
        return ConfigError(str(ctx["field"]), str(ctx["reason"]))
    loc = error.get("loc") or ("options",)
    field = _FIELD_NAMES.get(str(loc[0]), str(loc[0]))
    return ConfigError(field, error["msg"])


def normalize_option_names(options: Mapping[str, Any]) -> dict[str, Any]:
    """Map option keys to field names, dropping keys whose value is None.

    Raises:
        ConfigError: If a key is not a known option
    """
    normalized: dict[str, Any] = {}
    for key, value in options.items():
        if key not in _FIELD_NAMES:
            raise ConfigError(key, "unknown option")
        if value is None:
            continue
        normalized[_FIELD_NAMES[key]] = value
    return normalized


def resolve_options(
    options: Union[FormatOptions, Mapping[str, Any], None] = None,
    base: Optional[FormatOptions] = None,
    **overrides: Any,
) -> FormatOptions:
    """Merge sparse options over a base and validate the result.

    Args:
        options: A sparse mapping of option values, or a FormatOptions
        base: Options supplying every unspecified field (built-in defaults
            when omitted)
        **overrides: Further option values, applied last

    Returns:
        A fully populated, immutable FormatOptions

    Raises:
        ConfigError: If any value is outside its domain
    """
    if base is None:
        base = FormatOptions()

    if isinstance(options, FormatOptions):
        if not overrides:
            return options
        sparse = options.model_dump()
    else:
        sparse = normalize_option_names(options or {})
    sparse.update(normalize_option_names(overrides))

    if not sparse:
        return base

    merged = base.model_dump()
    merged.update(sparse)
    try:
        return FormatOptions.model_validate(merged)
    except ValidationError as e:
        raise _to_config_error(e) from e

"""Hongdown: a deterministic Markdown style formatter."""

from typing import Any

from hongdown.core.engine import Engine, EngineError, EngineState, OptionsArg, get_engine
from hongdown.formatting.ir import FormatResult, FormatWarning
from hongdown.formatting.options import ConfigError, FormatOptions, resolve_options

__version__ = "0.1.0"


def format(text: str, options: OptionsArg = None, **overrides: Any) -> str:
    """Format Markdown text with the global engine."""
    return get_engine().format(text, options, **overrides)


def format_with_warnings(text: str, options: OptionsArg = None, **overrides: Any) -> FormatResult:
    """Format Markdown text and return the output with table warnings."""
    return get_engine().format_with_warnings(text, options, **overrides)


async def format_async(text: str, options: OptionsArg = None, **overrides: Any) -> str:
    return await get_engine().format_async(text, options, **overrides)


async def format_with_warnings_async(
    text: str, options: OptionsArg = None, **overrides: Any
) -> FormatResult:
    return await get_engine().format_with_warnings_async(text, options, **overrides)


__all__ = [
    "__version__",
    "format",
    "format_with_warnings",
    "format_async",
    "format_with_warnings_async",
    "ConfigError",
    "Engine",
    "EngineError",
    "EngineState",
    "FormatOptions",
    "FormatResult",
    "FormatWarning",
    "get_engine",
    "resolve_options",
]

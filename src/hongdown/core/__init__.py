"""Core formatting pipeline and engine lifecycle for Hongdown."""

from hongdown.core.formatter import MarkdownFormatter
from hongdown.core.engine import Engine, EngineError, EngineState, get_engine

__all__ = [
    "MarkdownFormatter",
    "Engine",
    "EngineError",
    "EngineState",
    "get_engine",
]

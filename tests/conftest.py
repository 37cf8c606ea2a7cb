"""Pytest fixtures for Hongdown tests."""

from pathlib import Path

import pytest

from hongdown.core.engine import Engine
from hongdown.formatting.options import FormatOptions


@pytest.fixture
def sample_markdown() -> str:
    """Markdown source touching most block kinds."""
    return (
        "# Title\n"
        "\n"
        "Some *emphasized* text with a [link](https://example.com).\n"
        "\n"
        "* first\n"
        "* second\n"
        "\n"
        "```python\n"
        "print('hi')\n"
        "```\n"
        "\n"
        "> quoted\n"
        "\n"
        "***\n"
    )


@pytest.fixture
def formatted_markdown() -> str:
    """Expected default formatting of ``sample_markdown``."""
    return (
        "Title\n"
        "=====\n"
        "\n"
        "Some *emphasized* text with a [link](https://example.com).\n"
        "\n"
        " -  first\n"
        " -  second\n"
        "\n"
        "~~~~python\n"
        "print('hi')\n"
        "~~~~\n"
        "\n"
        "> quoted\n"
        "\n"
        "---\n"
    )


@pytest.fixture
def options() -> FormatOptions:
    """Default formatting options."""
    return FormatOptions()


@pytest.fixture
def engine() -> Engine:
    """A fresh engine, independent of the global instance."""
    return Engine()


@pytest.fixture
def tmp_markdown_file(tmp_path: Path, sample_markdown: str) -> Path:
    """Create a temporary Markdown file for testing."""
    file_path = tmp_path / "README.md"
    file_path.write_text(sample_markdown, encoding="utf-8")
    return file_path

"""Formatting pipeline orchestrator."""

import logging
from typing import Optional

from hongdown.formatting.canonicalizer import Canonicalizer
from hongdown.formatting.directives import scan_lines
from hongdown.formatting.ir import Document, FormatResult
from hongdown.formatting.options import FormatOptions
from hongdown.formatting.parser import MarkdownParser
from hongdown.formatting.serializer import Serializer
from hongdown.formatting.tables import TableValidator
from hongdown.formatting.typography import TypographyTransformer
from hongdown.formatting.wrapper import LineWrapper

logger = logging.getLogger(__name__)


class MarkdownFormatter:
    """Runs one Markdown source through every formatting pass.

    Pipeline:
    1. Scan directive comments into enabled/disabled line spans
    2. Parse enabled spans; disabled spans become verbatim leaves
    3. Canonicalize block presentation (headings, lists, fences, rules)
    4. Apply typographic punctuation to inline text
    5. Reflow paragraphs to the line width
    6. Check tables for column-count mismatches
    7. Serialize the tree back to text
    """

    def __init__(self, options: Optional[FormatOptions] = None) -> None:
        """Initialize the formatter.

        Args:
            options: Fully resolved options; built-in defaults when omitted
        """
        self.options = options or FormatOptions()
        self.parser = MarkdownParser()
        self.canonicalizer = Canonicalizer(self.options)
        self.typography = TypographyTransformer(self.options)
        self.wrapper = LineWrapper(self.options)
        self.validator = TableValidator()
        self.serializer = Serializer(self.options)

    def transform(self, document: Document) -> Document:
        """Apply the rewriting passes, block shape first."""
        document = self.canonicalizer.apply(document)
        document = self.typography.apply(document)
        return self.wrapper.apply(document)

    def format(self, text: str) -> FormatResult:
        """Format Markdown text.

        Args:
            text: Markdown source

        Returns:
            FormatResult with the formatted text and table warnings
        """
        if not text.strip():
            return FormatResult(output="")

        lines = text.splitlines(keepends=True)
        spans = scan_lines(lines)
        document = self.parser.parse(text, spans)
        logger.debug(
            "Parsed %d blocks from %d lines (%d spans)",
            len(document.blocks),
            len(lines),
            len(spans),
        )

        document = self.transform(document)
        warnings = self.validator.validate(document)
        return FormatResult(output=self.serializer.serialize(document), warnings=warnings)

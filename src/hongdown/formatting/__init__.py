"""Parsing, rewriting and rendering of Markdown documents."""

from hongdown.formatting.ir import (
    Alignment,
    Block,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    Document,
    Emphasis,
    FormatResult,
    FormatWarning,
    HardBreak,
    Heading,
    HeadingStyle,
    HtmlBlock,
    Image,
    Inline,
    Link,
    LinkDefinition,
    List,
    ListItem,
    Paragraph,
    RawHtml,
    SoftBreak,
    Strong,
    Table,
    Text,
    ThematicBreak,
    VerbatimRegion,
)
from hongdown.formatting.options import ConfigError, FormatOptions, resolve_options
from hongdown.formatting.directives import DirectiveSpan, scan_directives
from hongdown.formatting.parser import MarkdownParser
from hongdown.formatting.canonicalizer import Canonicalizer
from hongdown.formatting.typography import TypographyTransformer
from hongdown.formatting.wrapper import LineWrapper
from hongdown.formatting.tables import TableValidator
from hongdown.formatting.serializer import Serializer

__all__ = [
    "Alignment",
    "Block",
    "BlockQuote",
    "CodeBlock",
    "CodeSpan",
    "Document",
    "Emphasis",
    "FormatResult",
    "FormatWarning",
    "HardBreak",
    "Heading",
    "HeadingStyle",
    "HtmlBlock",
    "Image",
    "Inline",
    "Link",
    "LinkDefinition",
    "List",
    "ListItem",
    "Paragraph",
    "RawHtml",
    "SoftBreak",
    "Strong",
    "Table",
    "Text",
    "ThematicBreak",
    "VerbatimRegion",
    "ConfigError",
    "FormatOptions",
    "resolve_options",
    "DirectiveSpan",
    "scan_directives",
    "MarkdownParser",
    "Canonicalizer",
    "TypographyTransformer",
    "LineWrapper",
    "TableValidator",
    "Serializer",
]

"""Markdown pipeline: parse to an immutable document, render to styled lines."""
from .cache import MarkdownCache
from .document import (
    Admonition,
    BlockQuote,
    FencedCode,
    Heading,
    Link,
    ListBlock,
    ListItem,
    LiteralBlock,
    MarkdownDocument,
    Paragraph,
    ParseDegraded,
    Text,
)
from .highlight import highlight
from .parser import parse
from .renderer import DEFAULT_THEME, MarkdownTheme, render

__all__ = [
    "Admonition",
    "BlockQuote",
    "DEFAULT_THEME",
    "FencedCode",
    "Heading",
    "Link",
    "ListBlock",
    "ListItem",
    "LiteralBlock",
    "MarkdownCache",
    "MarkdownDocument",
    "MarkdownTheme",
    "Paragraph",
    "ParseDegraded",
    "Text",
    "highlight",
    "parse",
    "render",
]

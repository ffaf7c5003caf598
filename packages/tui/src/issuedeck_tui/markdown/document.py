"""
MarkdownDocument node types.

Every node is a frozen dataclass holding tuples, so a parsed document can be
shared by reference between widgets and the render cache without copying.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# ─────────────────────────────────────────────────────────────────────────────
# Inline nodes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Strong:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Emphasis:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Strikethrough:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class InlineCode:
    code: str


@dataclass(frozen=True)
class Link:
    url: str
    text: str


@dataclass(frozen=True)
class Image:
    url: str
    alt: str


@dataclass(frozen=True)
class LineBreak:
    pass


Inline = Union[Text, Strong, Emphasis, Strikethrough, InlineCode, Link, Image, LineBreak]

# ─────────────────────────────────────────────────────────────────────────────
# Block nodes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Paragraph:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Heading:
    level: int
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class FencedCode:
    language: str | None
    source: str


@dataclass(frozen=True)
class BlockQuote:
    children: tuple["Block", ...]


@dataclass(frozen=True)
class Admonition:
    kind: str
    children: tuple["Block", ...]


@dataclass(frozen=True)
class ListItem:
    children: tuple["Block", ...]


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    start: int
    items: tuple[ListItem, ...]


@dataclass(frozen=True)
class ThematicBreak:
    pass


@dataclass(frozen=True)
class LiteralBlock:
    """Source text shown verbatim (unclosed fences, raw HTML, parse failures)."""
    text: str


Block = Union[
    Paragraph, Heading, FencedCode, BlockQuote, Admonition,
    ListBlock, ListItem, ThematicBreak, LiteralBlock,
]

ADMONITION_KINDS = ("note", "tip", "important", "warning", "caution")


@dataclass(frozen=True)
class ParseDegraded:
    """Notice that part of the source is rendered literally. Not an error."""
    line: int
    reason: str


@dataclass(frozen=True)
class MarkdownDocument:
    blocks: tuple[Block, ...]
    source_hash: str
    notices: tuple[ParseDegraded, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.notices)

    def __len__(self) -> int:
        return len(self.blocks)

"""
MarkdownDocument → styled lines.

Wrapping works on atoms: runs of non-whitespace text, with any hyperlink's
display text glued into the atom around it. Lines only break between atoms,
so a link narrower than the available width always stays on one line.
Atoms wider than a whole line are split at link boundaries first and by
grapheme only as a last resort.

Output depends only on (document, width, theme): re-rendering is
byte-identical, which the render cache relies on.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from ..style import (
    BLUE,
    CYAN,
    GRAY,
    GREEN,
    MAGENTA,
    PLAIN,
    RED,
    YELLOW,
    Line,
    Span,
    Style,
    restyle,
)
from ..utils import segment_graphemes, split_at_width, truncate_to_width, visible_width
from .document import (
    Admonition,
    Block,
    BlockQuote,
    Emphasis,
    FencedCode,
    Heading,
    Image,
    Inline,
    InlineCode,
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    LiteralBlock,
    MarkdownDocument,
    Paragraph,
    Strikethrough,
    Strong,
    Text,
    ThematicBreak,
)
from .highlight import Run, highlight

MIN_WIDTH = 10

_WS_RE = re.compile(r"(\s+)")


@dataclass(frozen=True)
class AdmonitionStyle:
    glyph: str
    title: str
    color: int


@dataclass(frozen=True)
class MarkdownTheme:
    text: Style = PLAIN
    heading: Style = Style(fg=CYAN, bold=True)
    link: Style = Style(fg=BLUE, underline=True)
    code: Style = Style(fg=YELLOW, bold=True)
    code_block_border: Style = Style(fg=GRAY)
    quote: Style = Style(italic=True)
    quote_border: Style = Style(fg=GRAY)
    hr: Style = Style(fg=GRAY)
    list_bullet: Style = Style(fg=CYAN)
    code_block_indent: str = "  "
    admonitions: dict[str, AdmonitionStyle] = field(default_factory=lambda: {
        "note": AdmonitionStyle("ℹ", "Note", BLUE),
        "tip": AdmonitionStyle("✦", "Tip", GREEN),
        "important": AdmonitionStyle("‼", "Important", MAGENTA),
        "warning": AdmonitionStyle("⚠", "Warning", YELLOW),
        "caution": AdmonitionStyle("✖", "Caution", RED),
    })

    def __hash__(self) -> int:
        return id(self)


DEFAULT_THEME = MarkdownTheme()

Highlighter = Callable[[str, "str | None"], list[Run]]

# ─────────────────────────────────────────────────────────────────────────────
# Inline flattening and atoms
# ─────────────────────────────────────────────────────────────────────────────

# An atom is an unbreakable group of spans; BREAK forces a new line.
Atom = tuple[Span, ...]
_SPACE = "space"
_BREAK = "break"


def _flatten(inlines: tuple[Inline, ...], style: Style, theme: MarkdownTheme, out: list[Span | str]) -> None:
    for node in inlines:
        if isinstance(node, Text):
            out.append(Span(node.text, style))
        elif isinstance(node, Strong):
            _flatten(node.children, style.patch(Style(bold=True)), theme, out)
        elif isinstance(node, Emphasis):
            _flatten(node.children, style.patch(Style(italic=True)), theme, out)
        elif isinstance(node, Strikethrough):
            _flatten(node.children, style.patch(Style(strikethrough=True)), theme, out)
        elif isinstance(node, InlineCode):
            out.append(Span(node.code, style.patch(theme.code)))
        elif isinstance(node, Link):
            out.append(Span(node.text, style.patch(theme.link), node.url))
        elif isinstance(node, Image):
            if node.alt:
                out.append(Span(node.alt + " ", style))
            out.append(Span(node.url, style.patch(theme.link), node.url))
        elif isinstance(node, LineBreak):
            out.append(_BREAK)


def _tokenize(pieces: list[Span | str]) -> list["Atom | str"]:
    """Turn flattened spans into atoms, spaces and breaks."""
    tokens: list[Atom | str] = []
    current: list[Span] = []

    def close() -> None:
        if current:
            tokens.append(tuple(current))
            current.clear()

    for piece in pieces:
        if not isinstance(piece, Span):
            close()
            tokens.append(_BREAK)
            continue
        if piece.link is not None:
            # link display text never splits at its inner spaces
            current.append(piece)
            continue
        for part in _WS_RE.split(piece.text):
            if not part:
                continue
            if part.isspace():
                close()
                if not tokens or tokens[-1] != _SPACE:
                    tokens.append(_SPACE)
            else:
                current.append(Span(part, piece.style))
    close()
    return tokens


def _atom_width(atom: Atom) -> int:
    return sum(s.width for s in atom)


def _split_atom(atom: Atom, width: int) -> list[Atom]:
    """Break an atom wider than ``width`` into line-sized pieces."""
    units: list[Atom] = []
    for span in atom:
        if span.link is not None and span.width <= width:
            units.append((span,))
        else:
            units.extend((Span(g, span.style, span.link),) for g in segment_graphemes(span.text))

    pieces: list[Atom] = []
    current: list[Span] = []
    used = 0
    for unit in units:
        w = _atom_width(unit)
        if current and used + w > width:
            pieces.append(_merge(current))
            current, used = [], 0
        current.extend(unit)
        used += w
    if current:
        pieces.append(_merge(current))
    return pieces


def _merge(spans: list[Span]) -> Atom:
    """Join neighbouring spans that share style and link."""
    merged: list[Span] = []
    for span in spans:
        if merged and merged[-1].style == span.style and merged[-1].link == span.link:
            merged[-1] = Span(merged[-1].text + span.text, span.style, span.link)
        else:
            merged.append(span)
    return tuple(merged)


def wrap_inlines(tokens: list["Atom | str"], width: int, space_style: Style = PLAIN) -> list[Line]:
    """Greedy line fill over atoms."""
    lines: list[Line] = []
    current: list[Span] = []
    used = 0
    pending_space = False

    for token in tokens:
        if token == _BREAK:
            lines.append(_merge(current))
            current, used, pending_space = [], 0, False
            continue
        if token == _SPACE:
            pending_space = used > 0
            continue
        atom: Atom = token  # type: ignore[assignment]
        w = _atom_width(atom)
        gap = 1 if pending_space else 0
        pending_space = False
        if used + gap + w <= width:
            if gap:
                current.append(Span(" ", space_style))
            current.extend(atom)
            used += gap + w
            continue
        if current:
            lines.append(_merge(current))
            current, used = [], 0
        if w <= width:
            current.extend(atom)
            used = w
            continue
        pieces = _split_atom(atom, width)
        lines.extend(pieces[:-1])
        current = list(pieces[-1])
        used = _atom_width(pieces[-1])

    if current or not lines:
        lines.append(_merge(current))
    return lines


# ─────────────────────────────────────────────────────────────────────────────
# Block rendering
# ─────────────────────────────────────────────────────────────────────────────

def _prefixed(lines: list[Line], first: Line, rest: Line) -> list[Line]:
    return [(first if i == 0 else rest) + ln for i, ln in enumerate(lines)]


def _char_wrap(spans: list[Span], width: int) -> list[Line]:
    """Wrap styled text at exactly ``width`` columns, keeping every character."""
    lines: list[Line] = []
    current: list[Span] = []
    used = 0
    for span in spans:
        text = span.text
        while text:
            head, text = split_at_width(text, width - used)
            if visible_width(head) > width - used and current:
                lines.append(_merge(current))
                current, used = [], 0
                text = head + text
                continue
            current.append(Span(head, span.style, span.link))
            used += visible_width(head)
            if text:
                lines.append(_merge(current))
                current, used = [], 0
    lines.append(_merge(current))
    return lines


class _Renderer:
    def __init__(self, theme: MarkdownTheme, highlighter: Highlighter | None) -> None:
        self.theme = theme
        self.highlighter = highlighter

    def blocks(self, blocks: tuple[Block, ...], width: int, separate: bool = True) -> list[Line]:
        out: list[Line] = []
        for i, block in enumerate(blocks):
            if i > 0 and separate:
                out.append(())
            out.extend(self.block(block, width))
        return out

    def block(self, block: Block, width: int) -> list[Line]:
        theme = self.theme
        width = max(1, width)

        if isinstance(block, Paragraph):
            return self.inline(block.children, width, theme.text)

        if isinstance(block, Heading):
            style = theme.heading
            if block.level == 1:
                style = style.patch(Style(underline=True))
            children = block.children
            if block.level >= 3:
                children = (Text("#" * block.level + " "),) + children
            return self.inline(children, width, style)

        if isinstance(block, FencedCode):
            return self.code(block, width)

        if isinstance(block, BlockQuote):
            border = (Span("│ ", theme.quote_border),)
            inner = [restyle(ln, theme.quote) for ln in self.blocks(block.children, width - 2)]
            return _prefixed(inner, border, border)

        if isinstance(block, Admonition):
            return self.admonition(block, width)

        if isinstance(block, ListBlock):
            return self.list(block, width)

        if isinstance(block, ListItem):
            return self.blocks(block.children, width, separate=False)

        if isinstance(block, ThematicBreak):
            return [(Span("─" * min(width, 80), theme.hr),)]

        if isinstance(block, LiteralBlock):
            out: list[Line] = []
            for raw_line in block.text.split("\n"):
                out.extend(_char_wrap([Span(raw_line, theme.text)], width))
            return out

        return []

    def inline(self, inlines: tuple[Inline, ...], width: int, style: Style) -> list[Line]:
        pieces: list[Span | str] = []
        _flatten(inlines, style, self.theme, pieces)
        return wrap_inlines(_tokenize(pieces), width, style)

    def code(self, block: FencedCode, width: int) -> list[Line]:
        theme = self.theme
        border = theme.code_block_border
        indent = theme.code_block_indent
        runs = self.highlighter(block.source, block.language) if self.highlighter else [(block.source, PLAIN)]

        # split runs into source lines
        source_lines: list[list[Span]] = [[]]
        for text, style in runs:
            parts = text.split("\n")
            for j, part in enumerate(parts):
                if j > 0:
                    source_lines.append([])
                if part:
                    source_lines[-1].append(Span(part, style))

        out: list[Line] = [(Span(truncate_to_width("```" + (block.language or ""), width), border),)]
        inner = max(1, width - visible_width(indent))
        pad = (Span(indent),)
        for spans in source_lines:
            out.extend(pad + ln for ln in _char_wrap(spans, inner))
        out.append((Span("```", border),))
        return out

    def admonition(self, block: Admonition, width: int) -> list[Line]:
        admonition_style = self.theme.admonitions.get(block.kind)
        if admonition_style is None:
            return self.block(BlockQuote(block.children), width)
        color = Style(fg=admonition_style.color)
        border = (Span("│ ", color),)
        title = truncate_to_width(f"{admonition_style.glyph} {admonition_style.title}", max(1, width - 2))
        header = border + (Span(title, color.patch(Style(bold=True))),)
        inner = self.blocks(block.children, width - 2)
        return [header] + _prefixed(inner, border, border)

    def list(self, block: ListBlock, width: int) -> list[Line]:
        out: list[Line] = []
        bullets = [
            f"{block.start + i}. " if block.ordered else "• "
            for i in range(len(block.items))
        ]
        bullet_width = max((visible_width(b) for b in bullets), default=2)
        for bullet, item in zip(bullets, block.items):
            body = self.blocks(item.children, width - bullet_width, separate=False) or [()]
            first = (Span(bullet.rjust(bullet_width), self.theme.list_bullet),)
            rest = (Span(" " * bullet_width),)
            out.extend(_prefixed(body, first, rest))
        return out


def render(
    document: MarkdownDocument,
    width: int,
    theme: MarkdownTheme = DEFAULT_THEME,
    highlighter: Highlighter | None = highlight,
) -> list[Line]:
    """Render a document into styled lines no wider than ``width`` (min 10)."""
    width = max(MIN_WIDTH, width)
    return _Renderer(theme, highlighter).blocks(document.blocks, width)

"""
Styled text model.

A Line is a tuple of Spans; a Span is a run of plain text sharing one Style
and optionally one hyperlink target. Nothing in this module knows about
terminals beyond producing SGR sequences for a Style.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Union

from .utils import visible_width

# ANSI palette index (0-15) or a truecolor triple
Color = Union[int, tuple[int, int, int]]

BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)
GRAY = 8
BRIGHT_RED, BRIGHT_GREEN, BRIGHT_YELLOW, BRIGHT_BLUE = 9, 10, 11, 12
BRIGHT_MAGENTA, BRIGHT_CYAN, BRIGHT_WHITE = 13, 14, 15


@dataclass(frozen=True)
class Style:
    fg: Color | None = None
    bg: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    reverse: bool = False

    def patch(self, other: "Style") -> "Style":
        """Overlay every field that is set on ``other`` onto this style."""
        changes = {}
        for f in fields(other):
            value = getattr(other, f.name)
            if value is not None and value is not False:
                changes[f.name] = value
        return replace(self, **changes) if changes else self

    @property
    def is_plain(self) -> bool:
        return self == PLAIN


PLAIN = Style()


@dataclass(frozen=True)
class Span:
    text: str
    style: Style = PLAIN
    link: str | None = None

    @property
    def width(self) -> int:
        return visible_width(self.text)


Line = tuple[Span, ...]


def line(*parts: Span | str) -> Line:
    """Build a Line from spans and bare strings (bare strings are unstyled)."""
    return tuple(p if isinstance(p, Span) else Span(p) for p in parts if p)


def line_width(ln: Line) -> int:
    return sum(s.width for s in ln)


def line_text(ln: Line) -> str:
    return "".join(s.text for s in ln)


def restyle(ln: Line, style: Style) -> Line:
    """Patch ``style`` over every span of a line."""
    return tuple(Span(s.text, s.style.patch(style), s.link) for s in ln)


def parse_hex_color(value: str) -> tuple[int, int, int] | None:
    """Parse ``"fa4549"`` or ``"#fa4549"`` into an RGB triple; None if malformed."""
    value = value.strip().lstrip("#")
    if len(value) != 6:
        return None
    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# SGR emission
# ─────────────────────────────────────────────────────────────────────────────

def _color_params(color: Color, background: bool) -> list[str]:
    if isinstance(color, tuple):
        r, g, b = color
        return ["48" if background else "38", "2", str(r), str(g), str(b)]
    if color < 8:
        return [str((40 if background else 30) + color)]
    return [str((100 if background else 90) + color - 8)]


def sgr(style: Style) -> str:
    """SGR sequence that switches the terminal from a reset state to ``style``."""
    params = ["0"]
    if style.bold:
        params.append("1")
    if style.dim:
        params.append("2")
    if style.italic:
        params.append("3")
    if style.underline:
        params.append("4")
    if style.reverse:
        params.append("7")
    if style.strikethrough:
        params.append("9")
    if style.fg is not None:
        params.extend(_color_params(style.fg, background=False))
    if style.bg is not None:
        params.extend(_color_params(style.bg, background=True))
    return f"\x1b[{';'.join(params)}m"


def osc8(url: str | None) -> str:
    """OSC 8 hyperlink open (url) or close (None)."""
    return f"\x1b]8;;{url or ''}\x1b\\"

"""Syntax highlighting of fenced code via Pygments."""
from __future__ import annotations

from functools import lru_cache

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.token import Comment, Keyword, Name, Number, Operator, String, Token, _TokenType
from pygments.util import ClassNotFound

from ..style import BLUE, CYAN, GRAY, GREEN, MAGENTA, PLAIN, YELLOW, Style

Run = tuple[str, Style]

# Checked in order; the first token family containing the token type wins.
_TOKEN_STYLES: tuple[tuple[_TokenType, Style], ...] = (
    (Comment, Style(fg=GRAY, italic=True)),
    (Keyword.Constant, Style(fg=MAGENTA)),
    (Keyword, Style(fg=BLUE, bold=True)),
    (String, Style(fg=GREEN)),
    (Number, Style(fg=CYAN)),
    (Name.Function, Style(fg=YELLOW)),
    (Name.Class, Style(fg=YELLOW, bold=True)),
    (Name.Builtin, Style(fg=CYAN)),
    (Name.Decorator, Style(fg=MAGENTA)),
    (Operator.Word, Style(fg=BLUE, bold=True)),
)


@lru_cache(maxsize=64)
def _lexer(language: str) -> Lexer | None:
    try:
        return get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return None


@lru_cache(maxsize=256)
def _style_for(ttype: _TokenType) -> Style:
    for family, style in _TOKEN_STYLES:
        if ttype in family:
            return style
    return PLAIN


def highlight(source: str, language: str | None) -> list[Run]:
    """
    Split ``source`` into (text, style) runs for ``language``.

    Unknown or missing languages return the source as a single unstyled run.
    """
    lexer = _lexer(language.lower()) if language else None
    if lexer is None:
        return [(source, PLAIN)] if source else []

    runs: list[Run] = []
    for ttype, value in lexer.get_tokens(source):
        if not value:
            continue
        style = _style_for(ttype) if ttype is not Token.Text else PLAIN
        if runs and runs[-1][1] == style:
            runs[-1] = (runs[-1][0] + value, style)
        else:
            runs.append((value, style))
    return runs

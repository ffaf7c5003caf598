"""Dashboard colors and glyphs."""
from __future__ import annotations

from issuedeck_tui.style import BLACK, BLUE, CYAN, GRAY, GREEN, MAGENTA, RED, YELLOW, Style

TITLE = Style(bold=True)
DIM = Style(dim=True)
HINT = Style(fg=GRAY)
ERROR = Style(fg=RED)
ERROR_BANNER = Style(fg=RED, bold=True)
SELECTED = Style(bold=True, reverse=True)
SPINNER = Style(fg=CYAN)

ISSUE_NUMBER = Style(fg=GRAY)
OPEN = Style(fg=GREEN)
CLOSED = Style(fg=MAGENTA)
OPEN_GLYPH = "◉"
CLOSED_GLYPH = "✓"
LABEL_MARKER = "•"

AUTHOR_SELF = Style(fg=GREEN, bold=True)
AUTHOR_OTHER = Style(fg=CYAN)
TIMESTAMP = Style(dim=True)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

REACTION_MINE = Style(fg=BLUE, bold=True)

STATUS_USER = Style(fg=BLACK, bg=GREEN)
STATUS_USER_NAME = Style(fg=BLACK, bg=GREEN, bold=True)
STATUS_COUNT = Style(fg=BLACK, bg=BLUE)
STATUS_KEY = Style(fg=MAGENTA)
STATUS_ACTION = Style(fg=BLACK, bg=MAGENTA, bold=True)
STATUS_MESSAGE = Style(fg=YELLOW)
STATUS_ERROR = Style(fg=RED, bold=True)

"""Braille spinner advanced by the App's tick messages."""
from __future__ import annotations

from ..style import CYAN, Span, Style

FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
TICK_INTERVAL = 0.08


class Spinner:
    """
    Frame counter for busy indicators.

    There is no timer here: the App posts Tick messages while something is
    pending and calls ``advance`` from its event loop.
    """

    def __init__(self, style: Style = Style(fg=CYAN)) -> None:
        self._frame = 0
        self.style = style

    def advance(self) -> None:
        self._frame = (self._frame + 1) % len(FRAMES)

    @property
    def glyph(self) -> str:
        return FRAMES[self._frame]

    def span(self, message: str = "") -> tuple[Span, ...]:
        spans = (Span(self.glyph, self.style),)
        return spans + (Span(" " + message, Style(dim=True)),) if message else spans

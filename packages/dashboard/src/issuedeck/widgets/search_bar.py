"""Search bar: free text, a label filter and the open/closed state."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import LineInput, panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span

from .. import theme
from ..github import STATE_CHOICES
from ..targets import ISSUES
from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext


class SearchBar(Widget):
    """
    Two text fields and a state choice. Tab switches fields, ctrl+t cycles
    Open/Closed/All, enter runs the search and escape returns to the list.
    """

    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("search")
        self.query = LineInput(prompt="Search: ", placeholder="text")
        self.labels = LineInput(prompt="Labels: ", placeholder="bug;docs")
        self.state_index = 0
        self.field = 0

    @property
    def state(self) -> str:
        return STATE_CHOICES[self.state_index]

    @property
    def _current(self) -> LineInput:
        return self.labels if self.field == 1 else self.query

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        kb = get_keybindings()
        if isinstance(event, KeyEvent):
            data = event.data
            if kb.matches(data, "selectConfirm"):
                self.run(ctx)
                ctx.focus("issues")
                return True
            if kb.matches(data, "back"):
                ctx.focus("issues")
                return True
            if kb.matches(data, "focusNext") or kb.matches(data, "focusPrev"):
                self.field = 1 - self.field
                self.touch()
                return True
            if kb.matches(data, "cycleState"):
                self.state_index = (self.state_index + 1) % len(STATE_CHOICES)
                self.touch()
                return True
        if self._current.handle_input(event):
            self.touch()
            return True
        return False

    def run(self, ctx: "AppContext") -> None:
        ctx.search = (self.query.value.strip(), self.labels.value.strip(), self.state)
        ctx.widgets["issues"].selected = 0
        ctx.request(ISSUES)

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        inner = max(1, width - 2)
        state = (Span("  State: ", theme.TITLE), Span(f"[{self.state}]"))
        rest = max(2, inner - sum(s.width for s in state) - 2)
        query_w = max(1, rest * 3 // 5)
        labels_w = max(1, rest - query_w)

        query_line, query_col = self.query.render_line(query_w, focused and self.field == 0)
        labels_line, labels_col = self.labels.render_line(labels_w, focused and self.field == 1)
        pad_q = max(0, query_w - sum(s.width for s in query_line))
        row: Line = query_line + (Span(" " * (pad_q + 2)),) + labels_line + state

        if focused:
            col = query_col if self.field == 0 else query_w + 2 + (labels_col or 0)
            self._cursor = (1 + (col or 0), 1)
        footer = "enter search · tab field · ctrl+t state" if focused else ""
        return panel([row], width, height, " Search ", focused, footer=footer)

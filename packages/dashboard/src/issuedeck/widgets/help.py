"""Key binding reference overlay."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span

from .. import theme
from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext

SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("Global", (
        ("quit", "Quit"),
        ("help", "Toggle this help"),
        ("jumpToIssue", "Go to issue number"),
        ("focusNext", "Next pane"),
    )),
    ("Issue list", (
        ("scrollDown", "Next issue"),
        ("scrollUp", "Previous issue"),
        ("selectConfirm", "Open conversation"),
        ("retry", "Reload"),
        ("cycleState", "Cycle Open/Closed/All (search bar)"),
    )),
    ("Conversation", (
        ("compose", "Write a comment"),
        ("editLabels", "Edit labels"),
        ("react", "React to the selected post"),
        ("toggleState", "Close or reopen"),
        ("back", "Back to the list"),
    )),
    ("Editors and pickers", (
        ("submit", "Send comment"),
        ("togglePreview", "Preview comment markdown"),
        ("toggle", "Toggle label"),
        ("newLabel", "New label from the filter text"),
        ("selectCancel", "Close"),
    )),
)


class HelpOverlay(Widget):
    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("help")
        self.scroll = 0

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        if isinstance(event, KeyEvent):
            kb = get_keybindings()
            data = event.data
            if kb.matches(data, "help") or kb.matches(data, "selectCancel") or kb.matches(data, "quit"):
                ctx.close_overlay(self.node_id)
            elif kb.matches(data, "scrollDown"):
                self.scroll += 1
                self.touch()
            elif kb.matches(data, "scrollUp"):
                self.scroll = max(0, self.scroll - 1)
                self.touch()
        return True

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        kb = get_keybindings()
        lines: list[Line] = []
        for title, rows in SECTIONS:
            if lines:
                lines.append(())
            lines.append((Span(title, theme.TITLE),))
            for action, text in rows:
                keys = "/".join(kb.get_keys(action))
                lines.append((Span(f"  {keys:<16}", theme.STATUS_KEY), Span(text)))
        inner_h = max(1, height - 2)
        self.scroll = max(0, min(self.scroll, len(lines) - inner_h))
        return panel(lines[self.scroll:], width, height, "Help", self.is_focused(ctx), footer="? or esc to close")

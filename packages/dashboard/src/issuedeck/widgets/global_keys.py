"""Shortcuts handled on the root node, ahead of every screen."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings

from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext


class GlobalKeys(Widget):
    """
    Root interceptor: quit, help, jump-to-number and focus cycling.

    Any capturing widget below (editors, overlays) shields these, so ``q``
    typed into a comment is just a letter.
    """

    def __init__(self) -> None:
        super().__init__("root")

    def intercept(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent):
            return False
        kb = get_keybindings()
        data = event.data
        if kb.matches(data, "quit"):
            ctx.quit()
            return True
        if kb.matches(data, "help"):
            ctx.open_overlay("help")
            return True
        if kb.matches(data, "jumpToIssue"):
            ctx.widgets["number_nav"].open(ctx)
            return True
        if kb.matches(data, "focusNext"):
            ctx.focus_next()
            return True
        if kb.matches(data, "focusPrev"):
            ctx.focus_prev()
            return True
        return False

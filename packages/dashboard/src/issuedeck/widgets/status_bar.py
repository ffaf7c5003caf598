"""Bottom status line."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span
from issuedeck_tui.utils import truncate_to_width

from .. import theme
from ..targets import VIEWER
from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext


class StatusBar(Widget):
    """Viewer and repository on the left, last message, then counts and key hints."""

    def __init__(self) -> None:
        super().__init__("status")

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        kb = get_keybindings()
        viewer = ctx.store.viewer
        if viewer is not None:
            left: list[Span] = [Span(" Logged in as ", theme.STATUS_USER), Span(f"{viewer} ", theme.STATUS_USER_NAME)]
        elif ctx.fetch.error(VIEWER) is not None:
            left = [Span(" Not logged in ", theme.STATUS_USER)]
        else:
            left = [Span(" Connecting ", theme.STATUS_USER)]
        left.append(Span(f" {ctx.config.full_name} ", theme.TITLE))

        right: list[Span] = [
            Span(f" Issues: {len(ctx.store.issues)} ", theme.STATUS_COUNT),
            Span(f" {'/'.join(kb.get_keys('quit'))} ", theme.STATUS_KEY),
            Span("QUIT", theme.STATUS_ACTION),
            Span(f" {kb.describe('help')} ", theme.STATUS_KEY),
            Span("HELP", theme.STATUS_ACTION),
        ]
        used = sum(s.width for s in left) + sum(s.width for s in right)
        room = width - used
        middle: list[Span] = []
        if ctx.status_message and room > 2:
            style = theme.STATUS_ERROR if ctx.status_is_error else theme.STATUS_MESSAGE
            text = truncate_to_width(" " + ctx.status_message, room - 1)
            middle.append(Span(text, style))
            room -= middle[0].width
        if room > 0:
            middle.append(Span(" " * room))
        return [tuple(left + middle + right)]

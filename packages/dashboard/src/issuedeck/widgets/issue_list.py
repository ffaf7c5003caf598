"""Search results list."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import panel, visible_window
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span, Style
from issuedeck_tui.utils import truncate_to_width, visible_width

from .. import theme
from ..errors import describe
from ..models import Issue
from ..targets import ISSUES
from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext

EMPTY_HINT = "Press Enter on an issue to view the conversation."


def issue_row(issue: Issue, width: int, number_width: int, selected: bool) -> Line:
    glyph, glyph_style = (theme.OPEN_GLYPH, theme.OPEN) if issue.is_open else (theme.CLOSED_GLYPH, theme.CLOSED)
    marker = "› " if selected else "  "
    head: list[Span] = [
        Span(marker, theme.TITLE),
        Span(f"#{issue.number}".rjust(number_width), theme.ISSUE_NUMBER),
        Span(" "),
        Span(glyph, glyph_style),
        Span(" "),
    ]
    dots = [Span(theme.LABEL_MARKER, Style(fg=label.rgb)) for label in issue.labels]
    used = sum(s.width for s in head) + (len(dots) + 1 if dots else 0)
    title = truncate_to_width(issue.title, max(1, width - used))
    title_style = theme.TITLE if selected else Style()
    tail: list[Span] = [Span(" ")] + dots if dots else []
    return tuple(head + [Span(title, title_style)] + tail)


class IssueList(Widget):
    def __init__(self) -> None:
        super().__init__("issues")
        self.selected = 0
        self._rows = 1

    def _clamp(self, ctx: "AppContext") -> None:
        count = len(ctx.store.issues)
        self.selected = max(0, min(self.selected, count - 1))

    def selected_issue(self, ctx: "AppContext") -> Issue | None:
        self._clamp(ctx)
        issues = ctx.store.issues
        return issues[self.selected] if issues else None

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent):
            return False
        kb = get_keybindings()
        data = event.data
        if kb.matches(data, "scrollDown") or kb.matches(data, "selectDown"):
            self._move(1, ctx)
        elif kb.matches(data, "scrollUp") or kb.matches(data, "selectUp"):
            self._move(-1, ctx)
        elif kb.matches(data, "selectPageDown"):
            self._move(self._rows, ctx)
        elif kb.matches(data, "selectPageUp"):
            self._move(-self._rows, ctx)
        elif kb.matches(data, "selectConfirm"):
            issue = self.selected_issue(ctx)
            if issue is not None:
                ctx.open_issue(issue)
        elif kb.matches(data, "retry"):
            ctx.request(ISSUES)
        else:
            return False
        return True

    def _move(self, delta: int, ctx: "AppContext") -> None:
        self.selected += delta
        self._clamp(ctx)
        self.touch()

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        self._clamp(ctx)
        issues = ctx.store.issues
        focused = self.is_focused(ctx)
        inner_w, inner_h = max(1, width - 2), max(1, height - 2)
        self._rows = inner_h

        if ctx.fetch.is_pending(ISSUES):
            title: Line = (Span(" "),) + ctx.spinner.span("Loading") + (Span(" "),)
        else:
            title = (Span(f" Issues ({len(issues)}) ", theme.TITLE),)

        body: list[Line] = []
        failure = ctx.fetch.error(ISSUES)
        if failure is not None:
            body.append((Span(f"✖ Failed to load issues: {describe(failure.cause)}", theme.ERROR_BANNER),))
            body.append((Span("Press r to retry.", theme.HINT),))
            inner_h -= 2

        if not issues and failure is None and not ctx.fetch.is_pending(ISSUES):
            body.append((Span("No issues match the search.", theme.HINT),))
        number_width = max((visible_width(f"#{i.number}") for i in issues), default=2)
        start, end = visible_window(self.selected, len(issues), max(0, inner_h))
        for idx in range(start, end):
            body.append(issue_row(issues[idx], inner_w, number_width, idx == self.selected and focused))
        return panel(body, width, height, title, focused, footer=EMPTY_HINT if issues else "")

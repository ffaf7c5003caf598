"""Jump-to-number overlay."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import LineInput, panel
from issuedeck_tui.events import InputEvent, KeyEvent, PasteEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span

from .. import theme
from ..errors import TrackerError
from ..messages import MutationCompleted
from .base import SubmittableWidget

if TYPE_CHECKING:
    from ..context import AppContext


class NumberNav(SubmittableWidget):
    """
    Type an issue number and press enter. The issue is fetched before the
    details screen opens; a missing issue leaves the digits in place.
    """

    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("number_nav")
        self.digits = LineInput(prompt="#")
        self.number: int | None = None

    def open(self, ctx: "AppContext") -> None:
        self.digits.clear()
        self.error_message = None
        ctx.open_overlay(self.node_id)
        self.touch()

    def snapshot(self) -> str:
        return self.digits.value

    def restore(self, snapshot: str) -> None:
        self.digits.set_value(snapshot)

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        kb = get_keybindings()
        if isinstance(event, KeyEvent):
            data = event.data
            if kb.matches(data, "selectCancel"):
                ctx.close_overlay(self.node_id)
                return True
            if kb.matches(data, "selectConfirm"):
                self.jump(ctx)
                return True
            if self.submitting or (event.is_printable and not data.isdigit()):
                return True
        elif isinstance(event, PasteEvent):
            event = PasteEvent("".join(ch for ch in event.text if ch.isdigit()))
        if self.submitting:
            return True
        if self.digits.handle_input(event):
            self.edited()
            self.touch()
        return True

    def jump(self, ctx: "AppContext") -> None:
        if self.submitting:
            return
        text = self.digits.value
        if not text:
            self.fail_validation("Type an issue number.")
            return
        n = self.number = int(text)
        self.begin_submit()
        ctx.submit(self.node_id, lambda: ctx.client.fetch_issue(n))

    def failure_text(self, cause: BaseException) -> str:
        if isinstance(cause, TrackerError) and cause.status in (404, 410):
            return f"Issue #{self.number} not found"
        return super().failure_text(cause)

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        ctx.close_overlay(self.node_id)
        ctx.open_issue(message.payload)

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        inner_w = max(1, width - 2)
        field, col = self.digits.render_line(inner_w, focused and not self.submitting)
        if col is not None:
            self._cursor = (col + 1, 1)
        if self.error_message:
            status: Line = (Span(f"✖ {self.error_message}", theme.ERROR),)
        elif self.submitting:
            status = ctx.spinner.span("Loading")
        else:
            status = (Span("enter go · esc cancel", theme.HINT),)
        return panel([field, status], width, height, "Go to issue", focused)

"""Reaction picker overlay."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span, Style

from .. import theme
from ..messages import MutationCompleted
from ..models import ReactionKind, ReactionSummary, ReactionTarget
from .base import SubmittableWidget

if TYPE_CHECKING:
    from ..context import AppContext

KINDS = tuple(ReactionKind)


class ReactionPicker(SubmittableWidget):
    """
    The eight reaction kinds in a row. Enter adds the highlighted reaction,
    or removes it when the viewer already reacted with it.
    """

    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("reaction_picker")
        self.index = 0
        self.subject: ReactionTarget | None = None
        self._last: tuple[ReactionKind, bool] | None = None

    @property
    def kind(self) -> ReactionKind:
        return KINDS[self.index]

    def open(self, ctx: "AppContext", subject: ReactionTarget) -> None:
        self.subject = subject
        self.index = 0
        self.error_message = None
        # viewer flags come from the full reaction list
        ctx.request(subject.target_id)
        ctx.open_overlay(self.node_id)
        self.touch()

    def summary(self, ctx: "AppContext") -> ReactionSummary | None:
        if self.subject is None:
            return None
        return ctx.store.reactions.get(self.subject.target_id)

    def snapshot(self) -> int:
        return self.index

    def restore(self, snapshot: int) -> None:
        self.index = snapshot

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent):
            return True
        kb = get_keybindings()
        data = event.data
        if kb.matches(data, "selectCancel"):
            ctx.close_overlay(self.node_id)
            return True
        if self.submitting:
            return True
        if kb.matches(data, "cursorLeft") or kb.matches(data, "selectUp"):
            self.index = (self.index - 1) % len(KINDS)
        elif kb.matches(data, "cursorRight") or kb.matches(data, "selectDown"):
            self.index = (self.index + 1) % len(KINDS)
        elif event.is_printable and data.isdigit() and 1 <= int(data) <= len(KINDS):
            self.index = int(data) - 1
        elif kb.matches(data, "selectConfirm"):
            self.toggle(ctx)
            return True
        else:
            return True
        self.edited()
        self.touch()
        return True

    def toggle(self, ctx: "AppContext") -> None:
        subject = self.subject
        if self.submitting or subject is None:
            return
        summary = self.summary(ctx)
        kind = self.kind
        reacted = summary is not None and kind in summary.viewer_reacted
        self._last = (kind, reacted)
        self.begin_submit()
        if reacted:
            call = lambda: ctx.client.remove_reaction(subject, kind)  # noqa: E731
        else:
            call = lambda: ctx.client.add_reaction(subject, kind)  # noqa: E731
        ctx.submit(self.node_id, call, refetch=(subject.target_id,))

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        ctx.close_overlay(self.node_id)
        if self._last is not None:
            kind, removed = self._last
            ctx.set_status(f"Removed {kind.glyph}" if removed else f"Reacted {kind.glyph}")

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        summary = self.summary(ctx)
        chips: list[Span] = []
        for idx, kind in enumerate(KINDS):
            style = Style()
            if summary is not None and kind in summary.viewer_reacted:
                style = theme.REACTION_MINE
            if idx == self.index:
                style = style.patch(theme.SELECTED)
            count = summary.counts.get(kind, 0) if summary is not None else 0
            chips += [Span(" "), Span(f"{kind.glyph}{count or ''}", style), Span(" ")]

        if self.error_message:
            status: Line = (Span(f"✖ {self.error_message}", theme.ERROR),)
        elif self.submitting:
            status = ctx.spinner.span("Sending")
        elif summary is None:
            status = ctx.spinner.span("Loading")
        else:
            verb = "remove" if self.kind in summary.viewer_reacted else "add"
            status = (Span(f"enter: {verb} {self.kind.value}", theme.HINT),)
        title = " React to issue " if self.subject and self.subject.kind == "issue" else " React to comment "
        return panel([tuple(chips), status], width, height, title.strip(), focused)

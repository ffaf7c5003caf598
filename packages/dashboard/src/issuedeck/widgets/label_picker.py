"""Label picker overlay with a regex filter."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable, Iterable

from issuedeck_tui.components import LineInput, panel, visible_window
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span, Style

from .. import theme
from ..errors import describe
from ..messages import MutationCompleted
from ..models import Label
from ..targets import ISSUES, LABELS, issue_target
from .base import SubmittableWidget

if TYPE_CHECKING:
    from ..context import AppContext

INVALID_PATTERN_HINT = "invalid pattern, matching literally"


def label_matcher(pattern: str) -> tuple[Callable[[str], bool], str | None]:
    """
    Case-insensitive regex match on label names.

    A pattern that does not compile is matched as a literal substring and
    comes back with a hint to show under the filter.
    """
    if not pattern:
        return (lambda name: True), None
    try:
        rx = re.compile(pattern, re.IGNORECASE)
    except re.error:
        needle = pattern.lower()
        return (lambda name: needle in name.lower()), INVALID_PATTERN_HINT
    return (lambda name: rx.search(name) is not None), None


def filter_labels(labels: Iterable[Label], pattern: str) -> tuple[list[Label], str | None]:
    match, hint = label_matcher(pattern)
    return [label for label in labels if match(label.name)], hint


class LabelPicker(SubmittableWidget):
    """
    Toggle the current issue's labels. Space toggles the highlighted label,
    enter applies the whole set, ctrl+o creates a label named after the
    filter text.
    """

    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("label_picker")
        self.filter = LineInput(prompt="Filter: ", placeholder="regex")
        self.chosen: set[str] = set()
        self.highlighted = 0
        self.issue_number: int | None = None

    def open(self, ctx: "AppContext") -> None:
        issue = ctx.current_issue
        if issue is None:
            return
        self.issue_number = issue.number
        self.chosen = set(issue.label_names)
        self.filter.clear()
        self.highlighted = 0
        self.error_message = None
        ctx.request(LABELS)
        ctx.open_overlay(self.node_id)
        self.touch()

    def visible_labels(self, ctx: "AppContext") -> tuple[list[Label], str | None]:
        return filter_labels(ctx.store.labels or [], self.filter.value)

    def snapshot(self) -> tuple[frozenset[str], str]:
        return frozenset(self.chosen), self.filter.value

    def restore(self, snapshot: tuple[frozenset[str], str]) -> None:
        chosen, text = snapshot
        self.chosen = set(chosen)
        self.filter.set_value(text)

    # ── Input ────────────────────────────────────────────────────────────────

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        kb = get_keybindings()
        if isinstance(event, KeyEvent):
            data = event.data
            if kb.matches(data, "selectCancel"):
                ctx.close_overlay(self.node_id)
                return True
            if kb.matches(data, "selectUp"):
                self._move(-1, ctx)
                return True
            if kb.matches(data, "selectDown"):
                self._move(1, ctx)
                return True
            if kb.matches(data, "selectConfirm"):
                self.apply(ctx)
                return True
            if kb.matches(data, "newLabel"):
                self.new_label(ctx)
                return True
            if self.submitting:
                return True
            if kb.matches(data, "toggle"):
                self.toggle(ctx)
                return True
        if self.submitting:
            return True
        if self.filter.handle_input(event):
            self.highlighted = 0
            self.edited()
            self.touch()
            return True
        return False

    def _move(self, delta: int, ctx: "AppContext") -> None:
        count = len(self.visible_labels(ctx)[0])
        self.highlighted = max(0, min(self.highlighted + delta, count - 1))
        self.touch()

    def toggle(self, ctx: "AppContext") -> None:
        labels, _ = self.visible_labels(ctx)
        if not labels:
            return
        name = labels[min(self.highlighted, len(labels) - 1)].name
        if name in self.chosen:
            self.chosen.discard(name)
        else:
            self.chosen.add(name)
        self.edited()
        self.touch()

    def apply(self, ctx: "AppContext") -> None:
        if self.submitting or self.issue_number is None:
            return
        n, names = self.issue_number, sorted(self.chosen)
        self.begin_submit()
        ctx.submit(self.node_id, lambda: ctx.client.set_labels(n, names), refetch=(issue_target(n), ISSUES))

    def new_label(self, ctx: "AppContext") -> None:
        name = self.filter.value.strip()
        if not name:
            self.fail_validation("Type the new label's name in the filter first.")
            return
        if any(label.name.lower() == name.lower() for label in ctx.store.labels or []):
            self.fail_validation(f"Label {name!r} already exists.")
            return
        ctx.widgets["color_picker"].open(ctx, name)

    def on_label_created(self, label: Label) -> None:
        self.chosen.add(label.name)
        self.filter.clear()
        self.highlighted = 0
        self.touch()

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        ctx.close_overlay(self.node_id)
        ctx.set_status(f"Labels updated on #{self.issue_number}")

    # ── Rendering ────────────────────────────────────────────────────────────

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        inner_w, inner_h = max(1, width - 2), max(1, height - 2)
        if self.submitting:
            title: Line = (Span(" "),) + ctx.spinner.span("Saving") + (Span(" "),)
        elif ctx.fetch.is_pending(LABELS):
            title = (Span(" Labels "), ) + ctx.spinner.span() + (Span(" "),)
        else:
            title = (Span(" Labels ", theme.TITLE),)

        filter_line, col = self.filter.render_line(inner_w, focused and not self.submitting)
        if col is not None:
            self._cursor = (col + 1, 1)
        labels, hint = self.visible_labels(ctx)
        body: list[Line] = [filter_line]
        if self.error_message:
            body.append((Span(f"✖ {self.error_message}", theme.ERROR),))
        elif hint:
            body.append((Span(hint, theme.HINT),))
        else:
            body.append(())

        failure = ctx.fetch.error(LABELS)
        if failure is not None:
            body.append((Span(f"✖ Failed to load labels: {describe(failure.cause)}", theme.ERROR_BANNER),))

        rows = max(0, inner_h - len(body))
        self.highlighted = max(0, min(self.highlighted, len(labels) - 1))
        start, end = visible_window(self.highlighted, len(labels), rows)
        for idx in range(start, end):
            label = labels[idx]
            here = idx == self.highlighted
            box = "[x] " if label.name in self.chosen else "[ ] "
            body.append((
                Span("› " if here else "  ", theme.TITLE),
                Span(box),
                Span(theme.LABEL_MARKER + " ", Style(fg=label.rgb)),
                Span(label.name, theme.TITLE if here else Style()),
            ))
        if ctx.store.labels is not None and not labels:
            body.append((Span("No labels match. ctrl+o creates one.", theme.HINT),))
        footer = "space toggle · enter apply · ctrl+o new · esc close"
        return panel(body, width, height, title, focused, footer=footer)

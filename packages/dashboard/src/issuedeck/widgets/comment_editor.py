"""Comment composer at the bottom of the details screen."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import TextArea, panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span

from .. import theme
from ..messages import MutationCompleted
from ..targets import comments_target, issue_target
from .base import SubmittableWidget

if TYPE_CHECKING:
    from ..context import AppContext

EMPTY_COMMENT = "Comment cannot be empty."


class CommentEditor(SubmittableWidget):
    """
    Multi-line draft editor. Captures all input while focused; ctrl+s sends,
    escape or tab hands focus back to the conversation with the draft kept.

    ctrl+r flips between the raw draft and its rendered markdown. The
    preview is read-only; other keys are swallowed until it is turned off.
    """

    captures_when_focused = True

    def __init__(self) -> None:
        super().__init__("comment_editor")
        submit_key = get_keybindings().describe("submit")
        self.editor = TextArea(placeholder=f"Comment ({submit_key} to send)")
        self.previewing = False

    @property
    def draft(self) -> str:
        return self.editor.text

    def snapshot(self) -> str:
        return self.editor.text

    def restore(self, snapshot: str) -> None:
        self.editor.set_text(snapshot)

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        kb = get_keybindings()
        if isinstance(event, KeyEvent):
            data = event.data
            if kb.matches(data, "back") or kb.matches(data, "focusNext") or kb.matches(data, "focusPrev"):
                ctx.focus("conversation")
                return True
            if kb.matches(data, "submit"):
                self.send(ctx)
                return True
            if kb.matches(data, "togglePreview"):
                self.previewing = not self.previewing
                self.touch()
                return True
        if self.submitting or self.previewing:
            # the draft is frozen while it is being sent
            return True
        if self.editor.handle_input(event):
            self.edited()
            self.touch()
            return True
        return False

    def send(self, ctx: "AppContext") -> None:
        issue = ctx.current_issue
        if self.submitting or issue is None:
            return
        if self.editor.is_empty():
            self.fail_validation(EMPTY_COMMENT)
            return
        n, body = issue.number, self.editor.text
        self.begin_submit()
        ctx.submit(
            self.node_id,
            lambda: ctx.client.post_comment(n, body),
            refetch=(comments_target(n), issue_target(n)),
        )

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        self.editor.clear()
        self.previewing = False
        ctx.set_status("Comment posted")
        if self.is_focused(ctx):
            ctx.focus("conversation")

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        inner_w, inner_h = max(1, width - 2), max(1, height - 2)
        if self.submitting:
            title: Line = (Span(" "),) + ctx.spinner.span("Sending") + (Span(" "),)
        elif self.previewing:
            title = (Span(" Preview ", theme.TITLE),)
        else:
            title = (Span(" Comment ", theme.TITLE),)
        error = self.error_message
        text_h = max(1, inner_h - 1) if error else inner_h
        if self.previewing:
            body = self._preview(inner_w, text_h, ctx)
            cursor = None
        else:
            body, cursor = self.editor.render(inner_w, text_h, focused and not self.submitting)
            body = list(body)
        if error:
            body += [()] * (text_h - len(body))
            body.append((Span(f"✖ {error}", theme.ERROR),))
        if cursor is not None:
            self._cursor = (cursor[0] + 1, cursor[1] + 1)
        kb = get_keybindings()
        mode = "edit" if self.previewing else "preview"
        footer = f"{kb.describe('submit')} send · {kb.describe('togglePreview')} {mode} · esc back" if focused else ""
        return panel(body, width, height, title, focused, footer=footer)

    def _preview(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        if self.editor.is_empty():
            return [(Span("Nothing to preview", theme.HINT),)]
        return list(ctx.markdown.lines(self.draft, width)[:height])

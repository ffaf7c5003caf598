"""Details screen container."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings

from ..errors import describe
from ..messages import MutationCompleted
from ..targets import ISSUES, comments_target, issue_target
from .base import Widget

if TYPE_CHECKING:
    from ..context import AppContext


class DetailsScreen(Widget):
    """
    Focus-only parent of the conversation and the comment editor.

    Intercepts the navigation shortcuts on their way to the conversation.
    The editor captures input while focused, so none of these reach past it.
    """

    def __init__(self) -> None:
        super().__init__("details")
        # issue number whose close/reopen is in flight
        self.changing_state: int | None = None

    def intercept(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent) or ctx.current_issue is None:
            return False
        kb = get_keybindings()
        data = event.data
        conversation = ctx.widgets["conversation"]
        if kb.matches(data, "back"):
            ctx.show_list()
        elif kb.matches(data, "scrollDown"):
            conversation.move(1, ctx)
        elif kb.matches(data, "scrollUp"):
            conversation.move(-1, ctx)
        elif kb.matches(data, "compose"):
            ctx.focus("comment_editor")
        elif kb.matches(data, "editLabels"):
            ctx.widgets["label_picker"].open(ctx)
        elif kb.matches(data, "react"):
            subject = conversation.selected_subject(ctx)
            if subject is not None:
                ctx.widgets["reaction_picker"].open(ctx, subject)
        elif kb.matches(data, "toggleState"):
            self.toggle_state(ctx)
        elif kb.matches(data, "retry"):
            ctx.request(comments_target(ctx.current_issue.number))
        else:
            return False
        return True

    def toggle_state(self, ctx: "AppContext") -> None:
        issue = ctx.current_issue
        if issue is None or self.changing_state is not None:
            return
        n = issue.number
        self.changing_state = n
        if issue.is_open:
            ctx.set_status(f"Closing #{n}…")
            call = lambda: ctx.client.close(n)  # noqa: E731
        else:
            ctx.set_status(f"Reopening #{n}…")
            call = lambda: ctx.client.reopen(n)  # noqa: E731
        ctx.submit(self.node_id, call, refetch=(issue_target(n), ISSUES))

    def on_mutation(self, message: MutationCompleted, ctx: "AppContext") -> None:
        self.changing_state = None
        if message.error is not None:
            ctx.set_status(f"Could not change state: {describe(message.error.cause)}", error=True)
            return
        issue = message.payload
        ctx.set_status(f"#{issue.number} is now {issue.state}")

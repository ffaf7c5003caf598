"""
Widget base classes.

Every dashboard widget sits on one FocusTree node and paints one scheduler
region under the same id. ``render`` clears the dirty flag; anything that
changes what a widget shows calls ``touch``.

SubmittableWidget adds the Inactive/Active/Submitting/Error machine shared by
the editor, the pickers and the number overlay.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from issuedeck_tui.events import InputEvent
from issuedeck_tui.style import Line

from ..errors import InvalidTransition, TrackerError, describe
from ..messages import MutationCompleted

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger(__name__)


class Widget:
    """Capability interface shared by all widgets, with no-op defaults."""

    #: take input capture while focused (text entry, modal overlays)
    captures_when_focused = False

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        self._dirty = True
        self._cursor: tuple[int, int] | None = None

    def touch(self) -> None:
        self._dirty = True

    def is_dirty(self) -> bool:
        return self._dirty

    def cursor(self) -> tuple[int, int] | None:
        """Hardware cursor inside the region, as of the last render."""
        return self._cursor

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        return False

    def intercept(self, event: InputEvent, ctx: "AppContext") -> bool:
        return False

    def render(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        self._dirty = False
        self._cursor = None
        return self.draw(width, height, ctx)

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        return []

    def on_focus(self, ctx: "AppContext") -> None:
        pass

    def on_blur(self, ctx: "AppContext") -> None:
        pass

    def on_mutation(self, message: MutationCompleted, ctx: "AppContext") -> None:
        """A write this widget issued finished; failures go to the status bar."""
        if message.error is not None:
            ctx.set_status(describe(message.error.cause), error=True)

    def is_focused(self, ctx: Any) -> bool:
        return ctx is not None and ctx.focus_tree.active == self.node_id


# ─────────────────────────────────────────────────────────────────────────────
# Submission state machine
# ─────────────────────────────────────────────────────────────────────────────

class WidgetState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    ERROR = "error"


_TRANSITIONS: dict[tuple[WidgetState, str], WidgetState] = {
    (WidgetState.INACTIVE, "activate"): WidgetState.ACTIVE,
    (WidgetState.ACTIVE, "activate"): WidgetState.ACTIVE,
    (WidgetState.ACTIVE, "deactivate"): WidgetState.INACTIVE,
    (WidgetState.INACTIVE, "deactivate"): WidgetState.INACTIVE,
    (WidgetState.ACTIVE, "submit"): WidgetState.SUBMITTING,
    (WidgetState.SUBMITTING, "fail"): WidgetState.ERROR,
    (WidgetState.ERROR, "recover"): WidgetState.ACTIVE,
    (WidgetState.SUBMITTING, "succeed"): WidgetState.INACTIVE,
}


class SubmittableWidget(Widget):
    """
    Widget whose confirm action issues a mutation.

    Subclasses implement ``snapshot``/``restore`` for the value a failed
    submission must bring back, and call ``begin_submit`` right before
    handing the write to ``ctx.submit``. The App routes the resulting
    MutationCompleted back through ``on_mutation``.
    """

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self._state = WidgetState.INACTIVE
        self._snapshot: Any = None
        self.error_message: str | None = None

    @property
    def state(self) -> WidgetState:
        return self._state

    @property
    def submitting(self) -> bool:
        return self._state == WidgetState.SUBMITTING

    def _transition(self, action: str) -> None:
        target = _TRANSITIONS.get((self._state, action))
        if target is None:
            raise InvalidTransition(self.node_id, self._state.value, action)
        if target != self._state:
            logger.debug("%s: %s --%s--> %s", self.node_id, self._state.value, action, target.value)
        self._state = target
        self.touch()

    # ── Transitions ──────────────────────────────────────────────────────────

    def activate(self) -> None:
        self._transition("activate")

    def deactivate(self) -> None:
        # an in-flight submission finishes on its own
        if self._state != WidgetState.SUBMITTING:
            self._transition("deactivate")

    def begin_submit(self) -> None:
        self._transition("submit")
        self._snapshot = self.snapshot()
        self.error_message = None

    def submit_failed(self, message: str) -> None:
        """Submitting → Error → Active, with the pre-submission value restored."""
        self._transition("fail")
        self.restore(self._snapshot)
        self.error_message = message
        self._transition("recover")

    def submit_succeeded(self) -> None:
        self._transition("succeed")
        self._snapshot = None
        self.error_message = None

    def edited(self) -> None:
        """Call after every user edit; clears a previous error message."""
        if self.error_message is not None:
            self.error_message = None
            self.touch()

    def fail_validation(self, message: str) -> None:
        """Reject a confirm before any request is made; the state stays Active."""
        self.error_message = message
        self.touch()

    # ── Hooks ────────────────────────────────────────────────────────────────

    def snapshot(self) -> Any:
        return None

    def restore(self, snapshot: Any) -> None:
        pass

    def on_focus(self, ctx: "AppContext") -> None:
        self.activate()

    def on_blur(self, ctx: "AppContext") -> None:
        self.deactivate()

    def on_mutation(self, message: MutationCompleted, ctx: "AppContext") -> None:
        if message.error is None:
            self.submit_succeeded()
            self.on_success(message, ctx)
        else:
            self.submit_failed(self.failure_text(message.error.cause))

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        pass

    def failure_text(self, cause: BaseException) -> str:
        if isinstance(cause, TrackerError) and cause.status == 401:
            return "Not authorized (check your token)"
        return describe(cause)

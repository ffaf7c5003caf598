"""
AppContext: the single owned value holding all dashboard state.

The App's event loop is the only writer. Widgets receive the context as the
``context`` argument of ``handle_input``/``intercept``/``render`` and call
back into it to move focus, switch screens, open overlays and start
requests; nothing here is global.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from issuedeck_tui.components import Spinner
from issuedeck_tui.focus import ROOT, FocusTree
from issuedeck_tui.markdown import MarkdownCache, highlight
from issuedeck_tui.scheduler import RenderScheduler

from . import layout
from .config import AppConfig
from .errors import describe
from .fetch import AsyncFetchCoordinator, Sink
from .github import TrackerClient
from .messages import FetchCompleted, MutationCompleted
from .models import Comment, Issue, Label, ReactionSummary, ReactionTarget
from .targets import ISSUES, LABELS, VIEWER, comments_target, parse_target, reactions_target, resolve_target
from .widgets.base import SubmittableWidget, Widget

logger = logging.getLogger(__name__)

LIST_SCREEN = "list_screen"
DETAILS_SCREEN = "details"
STATUS = "status"


@dataclass
class Store:
    """Server data as last loaded; replaced wholesale when a fetch settles."""
    viewer: str | None = None
    issues: list[Issue] = field(default_factory=list)
    labels: list[Label] | None = None
    issue_cache: dict[int, Issue] = field(default_factory=dict)
    comments: dict[int, list[Comment]] = field(default_factory=dict)
    reactions: dict[str, ReactionSummary] = field(default_factory=dict)


def regions_for(target: str) -> tuple[str, ...]:
    """Regions that show ``target``; they are marked dirty when it starts or settles."""
    if target == ISSUES:
        return ("issues", STATUS)
    if target == LABELS:
        return ("label_picker",)
    if target == VIEWER:
        return (STATUS, "conversation")
    kind = parse_target(target).kind
    if kind.startswith("reactions"):
        return ("conversation", "reaction_picker")
    if kind == "issue":
        return ("conversation", "issues")
    return ("conversation",)


class AppContext:
    def __init__(
        self,
        config: AppConfig,
        client: TrackerClient,
        width: int,
        height: int,
        sink: Sink | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.store = Store()
        self.scheduler = RenderScheduler(width, height)
        self.focus_tree = FocusTree(on_dirty=self.scheduler.mark_dirty)
        self.fetch = AsyncFetchCoordinator(self._resolve, sink)
        self.markdown = MarkdownCache(highlighter=highlight if config.features.syntax_highlight else None)
        self.spinner = Spinner()
        self.widgets: dict[str, Widget] = {}
        self.screen = LIST_SCREEN
        self.current_issue: Issue | None = None
        # (text, labels, state) of the last search that was run
        self.search: tuple[str, str, str] = ("", "", "Open")
        self.status_message: str | None = None
        self.status_is_error = False
        self.should_quit = False
        # open overlays, innermost last, with the node to refocus on close
        self._overlays: list[tuple[str, str]] = []
        self._rects = layout.compute(width, height)

    # ── Mounting ─────────────────────────────────────────────────────────────

    def mount(
        self,
        node_id: str,
        widget: Widget | None,
        parent: str | None = ROOT,
        visible: bool = True,
        region: bool = True,
    ) -> None:
        """
        Attach a widget. ``parent=None`` registers a paint-only region
        outside the focus tree; ``region=False`` a focus-only container.
        """
        if parent is not None:
            self.focus_tree.add(node_id, parent, widget, visible=visible)
        if widget is not None:
            self.widgets[node_id] = widget
            if region:
                self.scheduler.register(node_id, self._rects[node_id], widget, visible)

    def sync_regions(self) -> None:
        """A region is painted only while its focus node is reachable."""
        for region_id in self.scheduler.region_ids:
            if region_id in self.focus_tree:
                self.scheduler.set_visible(region_id, self.focus_tree.is_reachable(region_id))

    def resize(self, width: int, height: int) -> None:
        self.scheduler.resize(width, height)
        self._rects = layout.compute(width, height)
        for region_id in self.scheduler.region_ids:
            self.scheduler.set_rect(region_id, self._rects[region_id])

    # ── Focus ────────────────────────────────────────────────────────────────

    def focus(self, node_id: str) -> None:
        """Activate ``node_id``; focus errors propagate and leave focus unchanged."""
        previous = self.focus_tree.active
        self.focus_tree.set_active(node_id)
        self._focus_changed(previous)

    def focus_next(self) -> None:
        previous = self.focus_tree.active
        self.focus_tree.focus_next()
        self._focus_changed(previous)

    def focus_prev(self) -> None:
        previous = self.focus_tree.active
        self.focus_tree.focus_prev()
        self._focus_changed(previous)

    def _set_visible(self, node_id: str, visible: bool) -> None:
        previous = self.focus_tree.active
        self.focus_tree.set_visible(node_id, visible)
        self._focus_changed(previous)

    def _focus_changed(self, previous: str) -> None:
        active = self.focus_tree.active
        if active == previous:
            return
        old = self.widgets.get(previous)
        if old is not None:
            if old.captures_when_focused:
                self.focus_tree.release(previous)
            old.on_blur(self)
        new = self.widgets.get(active)
        if new is not None:
            if new.captures_when_focused:
                self.focus_tree.capture(active)
            new.on_focus(self)

    # ── Screens and overlays ─────────────────────────────────────────────────

    def show_list(self) -> None:
        self._switch_screen(LIST_SCREEN, "issues")

    def open_issue(self, issue: Issue) -> None:
        """Show the details screen for ``issue`` and start loading its conversation."""
        self.current_issue = issue
        self.store.issue_cache[issue.number] = issue
        self._switch_screen(DETAILS_SCREEN, "conversation")
        self.request(comments_target(issue.number))
        if not self.config.features.lazy_reactions:
            self.request(reactions_target(ReactionTarget(kind="issue", id=issue.number)))

    def _switch_screen(self, screen: str, focus_id: str) -> None:
        while self._overlays:
            self.close_overlay(self._overlays[0][0])
        other = DETAILS_SCREEN if screen == LIST_SCREEN else LIST_SCREEN
        self._set_visible(screen, True)
        self.focus(focus_id)
        self._set_visible(other, False)
        self.screen = screen
        self.sync_regions()
        self.scheduler.mark_dirty(STATUS)

    def open_overlay(self, overlay_id: str) -> None:
        if self.overlay_open(overlay_id):
            return
        self._overlays.append((overlay_id, self.focus_tree.active))
        self._set_visible(overlay_id, True)
        self.focus(overlay_id)
        self.sync_regions()

    def close_overlay(self, overlay_id: str) -> None:
        """Hide ``overlay_id`` and any overlay opened above it; focus returns to the opener."""
        ids = [oid for oid, _ in self._overlays]
        if overlay_id not in ids:
            return
        idx = ids.index(overlay_id)
        closing = self._overlays[idx:]
        del self._overlays[idx:]
        restore = closing[0][1]
        if self.focus_tree.is_reachable(restore) and not any(
            self.focus_tree.is_descendant(restore, oid) for oid, _ in closing
        ):
            self.focus(restore)
        for oid, _ in reversed(closing):
            self._set_visible(oid, False)
        self.sync_regions()

    def overlay_open(self, overlay_id: str) -> bool:
        return any(oid == overlay_id for oid, _ in self._overlays)

    @property
    def overlays(self) -> list[str]:
        return [oid for oid, _ in self._overlays]

    # ── Requests ─────────────────────────────────────────────────────────────

    def _resolve(self, target: str) -> Callable[[], Awaitable[Any]]:
        return resolve_target(self.client, target, self.search)

    def request(self, target: str) -> int:
        generation = self.fetch.request(target)
        self.invalidate_target(target)
        return generation

    def submit(self, origin: str, call: Callable[[], Awaitable[Any]], refetch: tuple[str, ...] = ()) -> None:
        self.fetch.submit(origin, call, refetch)
        self.scheduler.mark_dirty(origin)

    def invalidate_target(self, target: str) -> None:
        for region_id in regions_for(target):
            self.scheduler.mark_dirty(region_id)

    def apply_fetch(self, message: FetchCompleted) -> None:
        """Store a settled (current) fetch result and repaint what shows it."""
        target = message.target
        if message.ok:
            payload = message.payload
            if target == ISSUES:
                self.store.issues = list(payload)
            elif target == LABELS:
                self.store.labels = sorted(payload, key=lambda label: label.name.lower())
            elif target == VIEWER:
                self.store.viewer = payload.login
            else:
                parsed = parse_target(target)
                if parsed.kind == "issue":
                    self._update_issue(payload)
                elif parsed.kind == "comments":
                    self.store.comments[parsed.number] = list(payload)
                    issue = self.current_issue
                    if self.config.features.lazy_reactions and issue is not None and issue.number == parsed.number:
                        # the conversation is on screen now; reactions follow
                        self.request(reactions_target(ReactionTarget(kind="issue", id=issue.number)))
                else:
                    self.store.reactions[target] = ReactionSummary.from_reactions(payload, self.store.viewer)
        self.invalidate_target(target)

    def _update_issue(self, issue: Issue) -> None:
        self.store.issue_cache[issue.number] = issue
        if self.current_issue is not None and self.current_issue.number == issue.number:
            self.current_issue = issue
        self.store.issues = [issue if i.number == issue.number else i for i in self.store.issues]

    def apply_mutation(self, message: MutationCompleted) -> None:
        """Route a write result to its widget; successful writes refetch what they changed."""
        widget = self.widgets.get(message.origin)
        if widget is not None:
            widget.on_mutation(message, self)
        elif message.error is not None:
            self.set_status(describe(message.error.cause), error=True)
        if message.ok:
            for target in message.refetch:
                self.request(target)
        self.scheduler.mark_dirty(message.origin)

    # ── Status, ticks, quit ──────────────────────────────────────────────────

    def set_status(self, message: str | None, error: bool = False) -> None:
        self.status_message = message
        self.status_is_error = error
        self.scheduler.mark_dirty(STATUS)

    def busy(self) -> bool:
        return self.fetch.in_flight > 0

    def tick(self) -> None:
        """Advance the spinner and repaint everything that shows it."""
        self.spinner.advance()
        for target in self.fetch.pending_targets():
            self.invalidate_target(target)
        for widget in self.widgets.values():
            if isinstance(widget, SubmittableWidget) and widget.submitting:
                widget.touch()

    def quit(self) -> None:
        self.should_quit = True

"""Issue body and comments, rendered as markdown."""
from __future__ import annotations

from typing import TYPE_CHECKING, Union

from issuedeck_tui.components import panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import Line, Span, Style

from .. import theme
from ..errors import describe
from ..models import Comment, Issue, ReactionKind, ReactionSummary, ReactionTarget
from ..targets import comments_target
from .base import Widget
from .issue_list import EMPTY_HINT

if TYPE_CHECKING:
    from ..context import AppContext

Entry = Union[Issue, Comment]

INDENT = "  "
PLACEHOLDER = "…"


def reaction_chips(summary: ReactionSummary) -> list[Span]:
    spans: list[Span] = []
    for kind in ReactionKind:
        count = summary.counts.get(kind, 0)
        if not count:
            continue
        style = theme.REACTION_MINE if kind in summary.viewer_reacted else Style()
        if spans:
            spans.append(Span("  "))
        spans.append(Span(f"{kind.glyph} {count}", style))
    return spans


class Conversation(Widget):
    """
    One entry per post: the issue itself first, then its comments.

    j/k (handled by the details screen) select an entry and the view follows
    the selection; page keys scroll freely. The selected entry is what the
    reaction picker acts on.
    """

    def __init__(self) -> None:
        super().__init__("conversation")
        self.selected = 0
        self.scroll = 0
        self._follow = True
        self._issue_number: int | None = None
        self._page = 1

    # ── Entries ──────────────────────────────────────────────────────────────

    def entries(self, ctx: "AppContext") -> list[Entry]:
        issue = ctx.current_issue
        if issue is None:
            return []
        return [issue, *ctx.store.comments.get(issue.number, [])]

    def _sync_issue(self, ctx: "AppContext") -> None:
        number = ctx.current_issue.number if ctx.current_issue else None
        if number != self._issue_number:
            self._issue_number = number
            self.selected = 0
            self.scroll = 0
            self._follow = True

    def selected_subject(self, ctx: "AppContext") -> ReactionTarget | None:
        self._sync_issue(ctx)
        entries = self.entries(ctx)
        if not entries:
            return None
        entry = entries[min(self.selected, len(entries) - 1)]
        if isinstance(entry, Issue):
            return ReactionTarget(kind="issue", id=entry.number)
        return ReactionTarget(kind="comment", id=entry.id)

    def move(self, delta: int, ctx: "AppContext") -> None:
        self._sync_issue(ctx)
        count = len(self.entries(ctx))
        self.selected = max(0, min(self.selected + delta, count - 1))
        self._follow = True
        self.touch()

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent):
            return False
        kb = get_keybindings()
        if kb.matches(event.data, "selectPageDown"):
            self.scroll += self._page
        elif kb.matches(event.data, "selectPageUp"):
            self.scroll = max(0, self.scroll - self._page)
        else:
            return False
        self._follow = False
        self.touch()
        return True

    # ── Rendering ────────────────────────────────────────────────────────────

    def _reactions_line(self, entry: Entry, ctx: "AppContext") -> Line | None:
        if isinstance(entry, Issue):
            summary = ctx.store.reactions.get(ReactionTarget(kind="issue", id=entry.number).target_id)
            if summary is None:
                # painted before the reactions arrive
                return (Span(INDENT + PLACEHOLDER, theme.DIM),)
        else:
            summary = ctx.store.reactions.get(ReactionTarget(kind="comment", id=entry.id).target_id, entry.reactions)
        chips = reaction_chips(summary)
        return (Span(INDENT),) + tuple(chips) if chips else None

    def _entry_lines(self, entry: Entry, width: int, ctx: "AppContext", selected: bool) -> list[Line]:
        viewer = ctx.store.viewer
        marker = Span("▌ " if selected else "  ", theme.OPEN if selected else Style())
        author_style = theme.AUTHOR_SELF if viewer is not None and entry.author == viewer else theme.AUTHOR_OTHER
        stamp = Span(entry.created_at.strftime(theme.TIMESTAMP_FORMAT), theme.TIMESTAMP)
        out: list[Line] = []

        if isinstance(entry, Issue):
            glyph, glyph_style = (
                (theme.OPEN_GLYPH + " open", theme.OPEN) if entry.is_open else (theme.CLOSED_GLYPH + " closed", theme.CLOSED)
            )
            out.append((marker, Span(f"#{entry.number} ", theme.ISSUE_NUMBER), Span(entry.title, theme.TITLE)))
            out.append((Span(INDENT), Span(glyph, glyph_style), Span("  "), Span(entry.author, author_style), Span(" · "), stamp))
            if entry.labels:
                labels: list[Span] = [Span(INDENT), Span("Labels: ", theme.DIM)]
                for label in entry.labels:
                    labels += [Span(theme.LABEL_MARKER + " ", Style(fg=label.rgb)), Span(label.name + "  ")]
                out.append(tuple(labels))
            if entry.assignees:
                out.append((Span(INDENT), Span("Assignees: ", theme.DIM), Span(", ".join(entry.assignees))))
            body = entry.body or "_No description provided._"
        else:
            out.append((marker, Span(entry.author, author_style), Span(" · "), stamp))
            body = entry.body

        content_width = max(1, width - len(INDENT))
        for ln in ctx.markdown.lines(body, content_width):
            out.append((Span(INDENT),) + ln)
        reactions = self._reactions_line(entry, ctx)
        if reactions is not None:
            out.append(reactions)
        return out

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        self._sync_issue(ctx)
        focused = self.is_focused(ctx)
        inner_w, inner_h = max(1, width - 2), max(1, height - 2)
        issue = ctx.current_issue
        if issue is None:
            return panel([(Span(EMPTY_HINT, theme.HINT),)], width, height, " Conversation ", focused)

        target = comments_target(issue.number)
        if ctx.fetch.is_pending(target):
            title: Line = (Span(" "),) + ctx.spinner.span("Loading") + (Span(" "),)
        else:
            title = (Span(f" #{issue.number} · {issue.comments_count} comments ", theme.TITLE),)

        banner: list[Line] = []
        failure = ctx.fetch.error(target)
        if failure is not None:
            banner.append((Span(f"✖ Failed to load comments: {describe(failure.cause)} (r to retry)", theme.ERROR_BANNER),))
        view_h = max(1, inner_h - len(banner))
        self._page = max(1, view_h - 1)

        entries = self.entries(ctx)
        self.selected = max(0, min(self.selected, len(entries) - 1))
        lines: list[Line] = []
        selected_start = 0
        for idx, entry in enumerate(entries):
            if idx:
                lines.append(())
            if idx == self.selected:
                selected_start = len(lines)
            lines.extend(self._entry_lines(entry, inner_w, ctx, idx == self.selected))

        if self._follow and not (self.scroll <= selected_start < self.scroll + view_h):
            self.scroll = selected_start
        self.scroll = max(0, min(self.scroll, len(lines) - view_h))
        body = banner + lines[self.scroll:self.scroll + view_h]
        footer = "j/k select · c comment · l labels · e react · x close/reopen · esc back" if focused else ""
        return panel(body, width, height, title, focused, footer=footer)

"""Tests for the dashboard widgets and their submission state machine"""
import asyncio

import pytest

from fakes import (
    BUG,
    CTRL_O,
    CTRL_R,
    CTRL_S,
    DOCS,
    DOWN,
    ENHANCEMENT,
    ENTER,
    ESCAPE,
    LEFT,
    RIGHT,
    UP,
    FakeTracker,
    key,
    make_comment,
    make_issue,
    press,
    started_app,
    type_text,
)
from issuedeck.errors import InvalidTransition, MutationFailed, TrackerError
from issuedeck.messages import MutationCompleted
from issuedeck.models import ReactionKind, ReactionTarget
from issuedeck.widgets import ColorPicker, SubmittableWidget, WidgetState, filter_labels
from issuedeck.widgets.color_picker import DEFAULT_CELL, HUES, cell_for_hex
from issuedeck.widgets.comment_editor import EMPTY_COMMENT
from issuedeck.widgets.label_picker import INVALID_PATTERN_HINT


class DraftWidget(SubmittableWidget):
    def __init__(self):
        super().__init__("draft")
        self.value = ""

    def snapshot(self):
        return self.value

    def restore(self, snapshot):
        self.value = snapshot


def tracker_with_issue(**kwargs) -> FakeTracker:
    issue = make_issue(7, "Crash on start", labels=(BUG,), body="It **crashes** on launch.")
    return FakeTracker(issues=[issue], comments={7: [make_comment(1, "Same here")]}, **kwargs)


async def details_app(tracker: FakeTracker):
    app = await started_app(tracker)
    press(app, ENTER)
    await app.drain()
    assert app.ctx.focus_tree.active == "conversation"
    return app


# ─── State machine ───────────────────────────────────────────────────────────

class TestSubmittableWidget:
    def test_starts_inactive(self):
        assert DraftWidget().state == WidgetState.INACTIVE

    def test_activate_and_deactivate(self):
        w = DraftWidget()
        w.activate()
        assert w.state == WidgetState.ACTIVE
        w.activate()
        assert w.state == WidgetState.ACTIVE
        w.deactivate()
        assert w.state == WidgetState.INACTIVE

    def test_submit_requires_active(self):
        w = DraftWidget()
        with pytest.raises(InvalidTransition):
            w.begin_submit()

    def test_succeed_requires_submitting(self):
        w = DraftWidget()
        w.activate()
        with pytest.raises(InvalidTransition):
            w.submit_succeeded()

    def test_failure_restores_value_and_returns_to_active(self):
        w = DraftWidget()
        w.activate()
        w.value = "draft"
        w.begin_submit()
        w.value = "changed while sending"
        w.submit_failed("HTTP 500")
        assert w.state == WidgetState.ACTIVE
        assert w.value == "draft"
        assert w.error_message == "HTTP 500"

    def test_success_goes_inactive(self):
        w = DraftWidget()
        w.activate()
        w.begin_submit()
        w.submit_succeeded()
        assert w.state == WidgetState.INACTIVE
        assert w.error_message is None

    def test_deactivate_while_submitting_is_ignored(self):
        w = DraftWidget()
        w.activate()
        w.begin_submit()
        w.deactivate()
        assert w.state == WidgetState.SUBMITTING

    def test_edit_clears_error(self):
        w = DraftWidget()
        w.activate()
        w.fail_validation("nope")
        assert w.state == WidgetState.ACTIVE
        w.edited()
        assert w.error_message is None

    def test_unauthorized_failure_text(self):
        w = DraftWidget()
        w.activate()
        w.begin_submit()
        error = MutationFailed("draft", TrackerError(401, "Bad credentials"))
        w.on_mutation(MutationCompleted("draft", error=error), None)
        assert w.error_message == "Not authorized (check your token)"
        assert w.state == WidgetState.ACTIVE


# ─── Comment editor ──────────────────────────────────────────────────────────

class TestCommentEditor:
    @pytest.mark.asyncio
    async def test_failed_post_keeps_draft_with_inline_error(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        assert app.ctx.focus_tree.active == "comment_editor"
        type_text(app, "just quit")
        tracker.fail["post_comment"] = TrackerError(500, "Server Error")
        press(app, CTRL_S)
        assert editor.state == WidgetState.SUBMITTING
        await app.drain()
        assert editor.state == WidgetState.ACTIVE
        assert editor.draft == "just quit"
        assert editor.error_message == "Server Error"
        assert "✖ Server Error" in app.render().text()
        assert app.ctx.focus_tree.active == "comment_editor"

    @pytest.mark.asyncio
    async def test_captured_keys_are_typed_literally(self):
        app = await details_app(tracker_with_issue())
        press(app, "c")
        type_text(app, "jkqx?#")
        assert app.ctx.widgets["comment_editor"].draft == "jkqx?#"
        assert not app.ctx.should_quit
        assert app.ctx.overlays == []

    @pytest.mark.asyncio
    async def test_typing_after_failure_clears_error(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "hi")
        tracker.fail["post_comment"] = TrackerError(None, "connection reset")
        press(app, CTRL_S)
        await app.drain()
        assert editor.error_message == "connection reset"
        type_text(app, "!")
        assert editor.error_message is None
        assert editor.draft == "hi!"

    @pytest.mark.asyncio
    async def test_successful_post_clears_draft_and_refetches(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "Fixed in main")
        press(app, CTRL_S)
        await app.drain()
        assert tracker.called("post_comment") == [("post_comment", 7, "Fixed in main")]
        assert editor.state == WidgetState.INACTIVE
        assert editor.draft == ""
        assert app.ctx.status_message == "Comment posted"
        assert app.ctx.focus_tree.active == "conversation"
        assert [c.body for c in app.ctx.store.comments[7]] == ["Same here", "Fixed in main"]

    @pytest.mark.asyncio
    async def test_preview_renders_draft_markdown(self):
        app = await details_app(tracker_with_issue())
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "> [!WARNING]")
        press(app, ENTER)
        type_text(app, "> **Ship** it")
        press(app, CTRL_R)
        assert editor.previewing
        lines = editor.render(60, 8, app.ctx)
        text = "\n".join("".join(span.text for span in line) for line in lines)
        assert "Preview" in text
        assert "⚠ Warning" in text
        assert "[!WARNING]" not in text
        assert "**" not in text
        assert any(span.text == "Ship" and span.style.bold for line in lines for span in line)

    @pytest.mark.asyncio
    async def test_preview_is_read_only_until_toggled_off(self):
        app = await details_app(tracker_with_issue())
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c", CTRL_R)
        lines = editor.render(60, 8, app.ctx)
        assert any("Nothing to preview" in "".join(s.text for s in line) for line in lines)
        type_text(app, "jk")
        assert editor.draft == ""
        assert app.ctx.focus_tree.active == "comment_editor"
        press(app, CTRL_R)
        type_text(app, "ok")
        assert not editor.previewing
        assert editor.draft == "ok"

    @pytest.mark.asyncio
    async def test_successful_post_leaves_preview(self):
        app = await details_app(tracker_with_issue())
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "*done*")
        press(app, CTRL_R, CTRL_S)
        await app.drain()
        assert editor.draft == ""
        assert not editor.previewing

    @pytest.mark.asyncio
    async def test_empty_comment_is_rejected_without_request(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "   ")
        press(app, CTRL_S)
        assert editor.error_message == EMPTY_COMMENT
        assert editor.state == WidgetState.ACTIVE
        await app.drain()
        assert tracker.called("post_comment") == []

    @pytest.mark.asyncio
    async def test_escape_returns_to_conversation_keeping_draft(self):
        app = await details_app(tracker_with_issue())
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "later")
        press(app, ESCAPE)
        assert app.ctx.focus_tree.active == "conversation"
        assert editor.state == WidgetState.INACTIVE
        assert editor.draft == "later"

    @pytest.mark.asyncio
    async def test_edits_are_ignored_while_submitting(self):
        tracker = tracker_with_issue()
        gate = tracker.gates["post_comment"] = asyncio.Event()
        app = await details_app(tracker)
        editor = app.ctx.widgets["comment_editor"]
        press(app, "c")
        type_text(app, "hi")
        press(app, CTRL_S)
        type_text(app, "xyz")
        assert editor.draft == "hi"
        gate.set()
        await app.drain()
        assert editor.draft == ""


# ─── Label picker ────────────────────────────────────────────────────────────

class TestFilterLabels:
    LABELS = [BUG, DOCS, ENHANCEMENT]

    def test_empty_pattern_matches_all(self):
        assert filter_labels(self.LABELS, "") == (self.LABELS, None)

    def test_regex(self):
        labels, hint = filter_labels(self.LABELS, "^(bug|docs)$")
        assert labels == [BUG, DOCS]
        assert hint is None

    def test_case_insensitive(self):
        assert filter_labels(self.LABELS, "ENH")[0] == [ENHANCEMENT]

    def test_invalid_pattern_matches_literally(self):
        labels, hint = filter_labels(self.LABELS, "bug(")
        assert labels == []
        assert hint == INVALID_PATTERN_HINT

    def test_invalid_pattern_literal_hit(self):
        labels, hint = filter_labels(self.LABELS + [BUG.model_copy(update={"name": "c++["})], "c++[")
        assert [label.name for label in labels] == ["c++["]
        assert hint == INVALID_PATTERN_HINT


class TestLabelPicker:
    @pytest.mark.asyncio
    async def test_toggle_and_apply(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        picker = app.ctx.widgets["label_picker"]
        press(app, "l")
        await app.drain()
        assert app.ctx.focus_tree.active == "label_picker"
        assert picker.chosen == {"bug"}
        type_text(app, "docs")
        assert [label.name for label in picker.visible_labels(app.ctx)[0]] == ["docs"]
        press(app, " ", ENTER)
        await app.drain()
        assert tracker.called("set_labels") == [("set_labels", 7, ["bug", "docs"])]
        assert app.ctx.overlays == []
        assert app.ctx.focus_tree.active == "conversation"
        assert app.ctx.current_issue.label_names == {"bug", "docs"}
        assert app.ctx.status_message == "Labels updated on #7"

    @pytest.mark.asyncio
    async def test_escape_discards_changes(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        press(app, "l")
        await app.drain()
        press(app, " ", ESCAPE)
        await app.drain()
        assert tracker.called("set_labels") == []
        assert app.ctx.current_issue.label_names == {"bug"}

    @pytest.mark.asyncio
    async def test_failed_apply_restores_selection(self):
        tracker = tracker_with_issue()
        tracker.fail["set_labels"] = TrackerError(422, "Validation Failed")
        app = await details_app(tracker)
        picker = app.ctx.widgets["label_picker"]
        press(app, "l")
        await app.drain()
        press(app, DOWN, " ", ENTER)
        await app.drain()
        assert picker.state == WidgetState.ACTIVE
        assert picker.chosen == {"bug", "docs"}
        assert picker.error_message == "Validation Failed"
        assert app.ctx.overlays == ["label_picker"]

    @pytest.mark.asyncio
    async def test_new_label_through_color_picker(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        picker = app.ctx.widgets["label_picker"]
        press(app, "l")
        await app.drain()
        type_text(app, "triage")
        press(app, CTRL_O)
        assert app.ctx.focus_tree.active == "color_picker"
        assert app.ctx.overlays == ["label_picker", "color_picker"]
        press(app, "g", RIGHT, ENTER)
        await app.drain()
        assert tracker.called("create_label") == [("create_label", "triage", "4ac26b")]
        assert app.ctx.overlays == ["label_picker"]
        assert app.ctx.focus_tree.active == "label_picker"
        assert "triage" in picker.chosen
        assert picker.filter.value == ""
        assert "triage" in [label.name for label in app.ctx.store.labels]

    @pytest.mark.asyncio
    async def test_new_label_rejects_existing_name(self):
        app = await details_app(tracker_with_issue())
        picker = app.ctx.widgets["label_picker"]
        press(app, "l")
        await app.drain()
        type_text(app, "BUG")
        press(app, CTRL_O)
        assert app.ctx.overlays == ["label_picker"]
        assert picker.error_message == "Label 'BUG' already exists."

    @pytest.mark.asyncio
    async def test_new_label_needs_a_name(self):
        app = await details_app(tracker_with_issue())
        picker = app.ctx.widgets["label_picker"]
        press(app, "l")
        await app.drain()
        press(app, CTRL_O)
        assert picker.error_message is not None
        assert app.ctx.overlays == ["label_picker"]

    @pytest.mark.asyncio
    async def test_invalid_pattern_hint_is_rendered(self):
        app = await details_app(tracker_with_issue())
        press(app, "l")
        await app.drain()
        type_text(app, "[")
        assert INVALID_PATTERN_HINT in app.render().text()


# ─── Color picker ────────────────────────────────────────────────────────────

class TestColorPicker:
    def test_default_cell(self):
        picker = ColorPicker()
        assert (picker.row, picker.col) == DEFAULT_CELL
        assert picker.selected_hex == HUES[DEFAULT_CELL[0]][1][DEFAULT_CELL[1]]

    def test_initial_hex(self):
        picker = ColorPicker("#A475F9")
        assert (picker.row, picker.col) == (6, 4)

    def test_cell_for_unknown_hex(self):
        assert cell_for_hex("123456") == DEFAULT_CELL

    def test_arrows_clamp_at_edges(self):
        picker = ColorPicker()
        for _ in range(12):
            picker.handle_input(key(UP), None)
            picker.handle_input(key(LEFT), None)
        assert (picker.row, picker.col) == (0, 0)
        for _ in range(12):
            picker.handle_input(key(DOWN), None)
            picker.handle_input(key(RIGHT), None)
        assert (picker.row, picker.col) == (len(HUES) - 1, len(HUES[0][1]) - 1)

    @pytest.mark.parametrize("letter, row", [("r", 0), ("B", 5), ("k", 7), ("T", 4)])
    def test_hue_letters_jump_rows(self, letter, row):
        picker = ColorPicker()
        picker.handle_input(key(letter), None)
        assert picker.row == row
        assert picker.col == DEFAULT_CELL[1]

    def test_other_keys_are_swallowed(self):
        picker = ColorPicker()
        assert picker.handle_input(key("z"), None)
        assert (picker.row, picker.col) == DEFAULT_CELL


# ─── Reaction picker ─────────────────────────────────────────────────────────

class TestReactionPicker:
    @pytest.mark.asyncio
    async def test_add_then_remove(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        assert "reactions-issue-7" in app.ctx.store.reactions

        press(app, "e")
        await app.drain()
        assert app.ctx.focus_tree.active == "reaction_picker"
        press(app, ENTER)
        await app.drain()
        assert tracker.called("add_reaction") == [("add_reaction", "reactions-issue-7", ReactionKind.PLUS_ONE)]
        assert app.ctx.status_message == "Reacted 👍"
        assert app.ctx.overlays == []
        summary = app.ctx.store.reactions["reactions-issue-7"]
        assert ReactionKind.PLUS_ONE in summary.viewer_reacted

        press(app, "e")
        await app.drain()
        press(app, ENTER)
        await app.drain()
        assert tracker.called("remove_reaction") == [("remove_reaction", "reactions-issue-7", ReactionKind.PLUS_ONE)]
        assert app.ctx.status_message == "Removed 👍"
        assert app.ctx.store.reactions["reactions-issue-7"].total == 0

    @pytest.mark.asyncio
    async def test_selected_comment_is_the_subject(self):
        tracker = tracker_with_issue()
        app = await details_app(tracker)
        press(app, "j", "e")
        picker = app.ctx.widgets["reaction_picker"]
        assert picker.subject == ReactionTarget(kind="comment", id=1)
        await app.drain()
        press(app, "6", ENTER)
        await app.drain()
        assert tracker.called("add_reaction") == [("add_reaction", "reactions-comment-1", ReactionKind.HEART)]

    @pytest.mark.asyncio
    async def test_navigation_wraps(self):
        app = await details_app(tracker_with_issue())
        picker = app.ctx.widgets["reaction_picker"]
        press(app, "e")
        press(app, LEFT)
        assert picker.kind == ReactionKind.EYES
        press(app, RIGHT)
        assert picker.kind == ReactionKind.PLUS_ONE
        press(app, "9")
        assert picker.kind == ReactionKind.PLUS_ONE
        await app.drain()


# ─── Number navigation ───────────────────────────────────────────────────────

class TestNumberNav:
    @pytest.mark.asyncio
    async def test_jump_opens_issue(self):
        tracker = tracker_with_issue()
        app = await started_app(tracker)
        press(app, "#")
        assert app.ctx.focus_tree.active == "number_nav"
        type_text(app, "7")
        press(app, ENTER)
        await app.drain()
        assert app.ctx.current_issue.number == 7
        assert app.ctx.focus_tree.active == "conversation"
        assert app.ctx.overlays == []

    @pytest.mark.asyncio
    async def test_missing_issue_keeps_digits(self):
        app = await started_app(tracker_with_issue())
        nav = app.ctx.widgets["number_nav"]
        press(app, "g")
        type_text(app, "404")
        press(app, ENTER)
        await app.drain()
        assert nav.error_message == "Issue #404 not found"
        assert nav.digits.value == "404"
        assert nav.state == WidgetState.ACTIVE
        assert app.ctx.overlays == ["number_nav"]
        assert "Issue #404 not found" in app.render().text()

    @pytest.mark.asyncio
    async def test_non_digits_are_ignored(self):
        app = await started_app(tracker_with_issue())
        press(app, "#")
        type_text(app, "1a2q")
        assert app.ctx.widgets["number_nav"].digits.value == "12"
        assert not app.ctx.should_quit

    @pytest.mark.asyncio
    async def test_empty_input(self):
        app = await started_app(tracker_with_issue())
        press(app, "#", ENTER)
        assert app.ctx.widgets["number_nav"].error_message == "Type an issue number."

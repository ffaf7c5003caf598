"""Tests for issuedeck.app (event loop, screens, focus and rendering)"""
import asyncio

import pytest

from fakes import (
    BUG,
    CTRL_T,
    ENTER,
    ESCAPE,
    TAB,
    FakeTracker,
    MockTerminal,
    key,
    make_comment,
    make_config,
    make_issue,
    press,
    started_app,
    type_text,
)
from issuedeck.app import App, create_context, run_app
from issuedeck.errors import TrackerError
from issuedeck.messages import FetchCompleted, Quit, Tick
from issuedeck_tui.events import ResizeEvent


def two_issues(**kwargs) -> FakeTracker:
    return FakeTracker(
        issues=[
            make_issue(7, "Crash on start", labels=(BUG,), body="It **crashes** on launch."),
            make_issue(8, "Docs typo"),
            make_issue(3, "Old bug", state="closed"),
        ],
        comments={7: [make_comment(1, "Same here")]},
        **kwargs,
    )


class TestWidgetTree:
    @pytest.mark.asyncio
    async def test_initial_focus_and_visibility(self):
        ctx = create_context(make_config(), FakeTracker(), 100, 30)
        assert ctx.focus_tree.active == "issues"
        assert ctx.screen == "list_screen"
        assert not ctx.focus_tree.is_reachable("conversation")
        assert not ctx.focus_tree.is_reachable("label_picker")
        assert ctx.focus_tree.node("search").captures_input is False


class TestStartup:
    @pytest.mark.asyncio
    async def test_loads_viewer_and_issues(self):
        tracker = two_issues()
        app = await started_app(tracker)
        assert app.ctx.store.viewer == "octocat"
        assert [i.number for i in app.ctx.store.issues] == [8, 7]
        text = app.render().text()
        assert "Logged in as octocat" in text
        assert "octo/demo" in text
        assert "Issues (2)" in text
        assert "Crash on start" in text
        assert "Docs typo" in text

    @pytest.mark.asyncio
    async def test_spinner_while_loading(self):
        tracker = two_issues()
        gate = tracker.gates["search_issues"] = asyncio.Event()
        app = App(make_config(), tracker, MockTerminal())
        ctx = app.setup()
        app.start()
        assert "Loading" in app.render().text()
        assert ctx.busy()
        before = ctx.spinner.glyph
        app.handle(Tick())
        assert ctx.spinner.glyph != before
        assert "issues" in ctx.scheduler.dirty
        gate.set()
        await app.drain()
        assert not ctx.busy()
        assert "Issues (2)" in app.render().text()

    @pytest.mark.asyncio
    async def test_failure_banner_and_retry(self):
        tracker = two_issues()
        tracker.fail["search_issues"] = TrackerError(503, "Service Unavailable")
        app = await started_app(tracker)
        text = app.render().text()
        assert "Failed to load issues: Service Unavailable" in text
        assert "Press r to retry." in text

        del tracker.fail["search_issues"]
        press(app, "r")
        await app.drain()
        text = app.render().text()
        assert "Failed to load issues" not in text
        assert "Issues (2)" in text

    @pytest.mark.asyncio
    async def test_not_logged_in(self):
        tracker = two_issues()
        tracker.fail["current_user"] = TrackerError(401, "Bad credentials")
        app = await started_app(tracker)
        assert "Not logged in" in app.render().text()


class TestNavigation:
    @pytest.mark.asyncio
    async def test_open_issue_and_go_back(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, "j", ENTER)
        assert app.ctx.screen == "details"
        assert app.ctx.current_issue.number == 7
        await app.drain()
        text = app.render().text()
        assert "Crash on start" in text
        assert "crashes on launch." in text
        assert "**" not in text
        assert "Same here" in text
        assert tracker.called("fetch_comments") == [("fetch_comments", 7)]

        press(app, ESCAPE)
        assert app.ctx.screen == "list_screen"
        assert app.ctx.focus_tree.active == "issues"
        assert app.ctx.widgets["issues"].selected == 1
        assert "Same here" not in app.render().text()

    @pytest.mark.asyncio
    async def test_lazy_reactions_follow_comments(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, "j", ENTER)
        assert not app.ctx.fetch.is_pending("reactions-issue-7")
        await app.drain()
        assert tracker.called("fetch_reactions") == [("fetch_reactions", "reactions-issue-7")]

    @pytest.mark.asyncio
    async def test_eager_reactions_when_disabled(self):
        from issuedeck.config import FeatureFlags

        tracker = two_issues()
        app = await started_app(tracker, features=FeatureFlags(lazy_reactions=False))
        press(app, "j", ENTER)
        assert app.ctx.fetch.is_pending("reactions-issue-7")
        await app.drain()
        assert tracker.called("fetch_reactions") == [("fetch_reactions", "reactions-issue-7")]

    @pytest.mark.asyncio
    async def test_tab_moves_between_panes(self):
        app = await started_app(two_issues())
        press(app, TAB)
        assert app.ctx.focus_tree.active == "search"
        assert app.ctx.focus_tree.capturing_node() == "search"
        press(app, ESCAPE)
        assert app.ctx.focus_tree.active == "issues"
        assert app.ctx.focus_tree.capturing_node() is None

    @pytest.mark.asyncio
    async def test_search(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, TAB)
        type_text(app, "crash")
        press(app, ENTER)
        assert app.ctx.focus_tree.active == "issues"
        assert app.ctx.search == ("crash", "", "Open")
        await app.drain()
        assert tracker.called("search_issues")[-1] == ("search_issues", "crash", "", "Open")
        assert [i.number for i in app.ctx.store.issues] == [7]

    @pytest.mark.asyncio
    async def test_search_state_cycles(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, TAB, CTRL_T, ENTER)
        await app.drain()
        assert app.ctx.search == ("", "", "Closed")
        assert [i.number for i in app.ctx.store.issues] == [3]

    @pytest.mark.asyncio
    async def test_search_labels_field(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, TAB, TAB)
        type_text(app, "bug")
        press(app, ENTER)
        await app.drain()
        assert app.ctx.search == ("", "bug", "Open")
        assert [i.number for i in app.ctx.store.issues] == [7]


class TestGlobalKeys:
    @pytest.mark.asyncio
    async def test_quit(self):
        app = await started_app(two_issues())
        press(app, "q")
        assert app.ctx.should_quit

    @pytest.mark.asyncio
    async def test_help_overlay_shields_quit(self):
        app = await started_app(two_issues())
        press(app, "?")
        assert app.ctx.overlays == ["help"]
        assert "Help" in app.render().text()
        press(app, "q")
        assert app.ctx.overlays == []
        assert not app.ctx.should_quit
        assert app.ctx.focus_tree.active == "issues"

    @pytest.mark.asyncio
    async def test_quit_message(self):
        app = await started_app(two_issues())
        app.handle(Quit())
        assert app.ctx.should_quit


class TestIssueState:
    @pytest.mark.asyncio
    async def test_close_issue(self):
        tracker = two_issues()
        app = await started_app(tracker)
        press(app, "j", ENTER)
        await app.drain()
        press(app, "x")
        assert app.ctx.status_message == "Closing #7…"
        await app.drain()
        assert tracker.called("close") == [("close", 7)]
        assert app.ctx.current_issue.state == "closed"
        assert app.ctx.status_message == "#7 is now closed"
        assert [i.number for i in app.ctx.store.issues] == [8]

    @pytest.mark.asyncio
    async def test_close_failure_is_reported(self):
        tracker = two_issues()
        tracker.fail["close"] = TrackerError(403, "Must have admin rights")
        app = await started_app(tracker)
        press(app, "j", ENTER)
        await app.drain()
        press(app, "x")
        await app.drain()
        assert app.ctx.status_is_error
        assert app.ctx.status_message == "Could not change state: Must have admin rights"
        assert app.ctx.current_issue.state == "open"

    @pytest.mark.asyncio
    async def test_repeated_toggle_sends_one_request(self):
        tracker = two_issues()
        tracker.gates["close"] = asyncio.Event()
        app = await started_app(tracker)
        press(app, "j", ENTER)
        await app.drain()
        press(app, "x", "x", "x")
        for _ in range(5):
            await asyncio.sleep(0)
        tracker.gates["close"].set()
        await app.drain()
        assert tracker.called("close") == [("close", 7)]
        assert tracker.called("reopen") == []
        assert app.ctx.status_message == "#7 is now closed"
        press(app, "x")
        await app.drain()
        assert tracker.called("reopen") == [("reopen", 7)]


class TestMessages:
    @pytest.mark.asyncio
    async def test_superseded_issue_result_is_not_applied(self):
        tracker = FakeTracker(issues=[make_issue(42, "Fresh title")])
        app = await started_app(tracker)
        ctx = app.ctx
        ctx.request("issue-42")
        ctx.request("issue-42")
        app.handle(FetchCompleted("issue-42", 1, payload=make_issue(42, "Stale title")))
        assert 42 not in ctx.store.issue_cache
        await app.drain()
        assert ctx.store.issue_cache[42].title == "Fresh title"

    @pytest.mark.asyncio
    async def test_handler_exception_keeps_loop_alive(self, monkeypatch):
        app = await started_app(two_issues())
        issues = app.ctx.widgets["issues"]

        def boom(event, ctx):
            raise RuntimeError("kaput")

        monkeypatch.setattr(issues, "handle_input", boom)
        app.handle(key("j"))
        assert app.ctx.status_message == "Internal error: kaput"
        assert app.ctx.status_is_error
        monkeypatch.undo()
        press(app, "j")
        assert issues.selected == 1

    @pytest.mark.asyncio
    async def test_widget_draw_error_keeps_loop_alive(self, monkeypatch):
        app = await started_app(two_issues())
        issues = app.ctx.widgets["issues"]

        def boom(width, height, ctx):
            raise RuntimeError("kaput")

        monkeypatch.setattr(issues, "draw", boom)
        app.handle(key("j"))
        frame = app.render()
        assert "✖ issues: kaput" in frame.text()
        assert "octo/demo" in frame.text()
        monkeypatch.undo()
        press(app, "j")
        frame = app.render()
        assert "Docs typo" in frame.text()
        assert "kaput" not in frame.text()

    @pytest.mark.asyncio
    async def test_focus_error_leaves_focus_unchanged(self, monkeypatch):
        app = await started_app(two_issues())
        monkeypatch.setattr(app.ctx.widgets["issues"], "handle_input", lambda event, ctx: ctx.focus("missing"))
        app.handle(key("j"))
        assert app.ctx.focus_tree.active == "issues"
        assert app.ctx.status_is_error
        assert "missing" in app.ctx.status_message

    @pytest.mark.asyncio
    async def test_resize(self):
        app = await started_app(two_issues())
        app.handle(ResizeEvent(60, 20))
        frame = app.render()
        assert (frame.width, frame.height) == (60, 20)
        assert "Issues (2)" in frame.text()

    @pytest.mark.asyncio
    async def test_only_dirty_regions_are_repainted(self):
        app = await started_app(two_issues())
        app.render()
        assert app.ctx.scheduler.last_recomputed == []
        press(app, "j")
        app.render()
        recomputed = app.ctx.scheduler.last_recomputed
        assert "issues" in recomputed
        assert "search" not in recomputed

    @pytest.mark.asyncio
    async def test_terminal_events_are_queued(self):
        app = App(make_config(), two_issues(), MockTerminal())
        app.setup()
        app._on_terminal_event(key("j"))
        await asyncio.sleep(0)
        assert app.queue.get_nowait() == key("j")


class TestRun:
    @pytest.mark.asyncio
    async def test_run_until_quit(self):
        terminal = MockTerminal()
        task = asyncio.ensure_future(run_app(make_config(), terminal=terminal, client=two_issues()))
        for _ in range(200):
            if terminal.on_event is not None:
                break
            await asyncio.sleep(0)
        terminal.on_event(key("q"))
        assert await asyncio.wait_for(task, timeout=5) == 0
        assert not terminal.started
        output = terminal.get_output()
        assert "issuedeck · octo/demo" in output
        assert "Issues" in output

    @pytest.mark.asyncio
    async def test_broken_widget_does_not_stop_run(self, monkeypatch):
        from issuedeck.widgets import IssueList

        monkeypatch.setattr(IssueList, "draw", lambda self, width, height, ctx: 1 / 0)
        terminal = MockTerminal()
        task = asyncio.ensure_future(run_app(make_config(), terminal=terminal, client=two_issues()))
        for _ in range(200):
            if terminal.on_event is not None:
                break
            await asyncio.sleep(0)
        terminal.on_event(key("j"))
        for _ in range(20):
            await asyncio.sleep(0)
        assert not task.done()
        terminal.on_event(key("q"))
        assert await asyncio.wait_for(task, timeout=5) == 0
        assert "division by zero" in terminal.get_output()

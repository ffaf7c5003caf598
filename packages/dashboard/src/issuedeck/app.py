"""
App: the single event loop.

Everything that changes UI state arrives as a message on one asyncio.Queue:
terminal input (posted from the reader thread with call_soon_threadsafe),
fetch and mutation results (posted by background tasks) and spinner ticks.
Messages are handled strictly in arrival order; after each batch the App
renders the dirty regions once and presents the frame.

    reader thread ──┐
    fetch tasks ────┼──▶ queue ──▶ handle() ──▶ render() ──▶ ScreenWriter
    ticker ─────────┘
"""
from __future__ import annotations

import asyncio
import logging

from issuedeck_tui.components.spinner import TICK_INTERVAL
from issuedeck_tui.errors import FocusError
from issuedeck_tui.events import KeyEvent, PasteEvent, ResizeEvent, TerminalEvent
from issuedeck_tui.focus import ROOT
from issuedeck_tui.frame import RenderFrame
from issuedeck_tui.screen import ScreenWriter
from issuedeck_tui.terminal import ProcessTerminal, Terminal

from .config import AppConfig
from .context import DETAILS_SCREEN, LIST_SCREEN, STATUS, AppContext
from .errors import describe
from .fetch import Sink
from .github import GitHubClient, TrackerClient
from .messages import FetchCompleted, Message, MutationCompleted, Quit, Tick
from .targets import ISSUES, VIEWER
from .widgets import (
    ColorPicker,
    CommentEditor,
    Conversation,
    DetailsScreen,
    GlobalKeys,
    HelpOverlay,
    IssueList,
    LabelPicker,
    NumberNav,
    ReactionPicker,
    SearchBar,
    StatusBar,
)

logger = logging.getLogger(__name__)


def create_context(
    config: AppConfig,
    client: TrackerClient,
    width: int,
    height: int,
    sink: Sink | None = None,
) -> AppContext:
    """
    Build the widget tree:

        root (global keys)
        ├─ list_screen ─ search, issues
        ├─ details ───── conversation, comment_editor
        ├─ label_picker ─ color_picker
        ├─ reaction_picker
        ├─ number_nav
        └─ help

    Regions are registered in this order, so overlays paint on top. The
    status bar is a region with no focus node.
    """
    ctx = AppContext(config, client, width, height, sink)
    root_keys = GlobalKeys()
    ctx.focus_tree.node(ROOT).widget = root_keys
    ctx.widgets[ROOT] = root_keys

    ctx.mount(LIST_SCREEN, None)
    ctx.mount("search", SearchBar(), parent=LIST_SCREEN)
    ctx.mount("issues", IssueList(), parent=LIST_SCREEN)
    ctx.mount(DETAILS_SCREEN, DetailsScreen(), visible=False, region=False)
    ctx.mount("conversation", Conversation(), parent=DETAILS_SCREEN)
    ctx.mount("comment_editor", CommentEditor(), parent=DETAILS_SCREEN)
    ctx.mount(STATUS, StatusBar(), parent=None)
    ctx.mount("label_picker", LabelPicker(), visible=False)
    ctx.mount("color_picker", ColorPicker(), parent="label_picker", visible=False)
    ctx.mount("reaction_picker", ReactionPicker(), visible=False)
    ctx.mount("number_nav", NumberNav(), visible=False)
    ctx.mount("help", HelpOverlay(), visible=False)
    ctx.focus("issues")
    ctx.sync_regions()
    return ctx


class App:
    def __init__(self, config: AppConfig, client: TrackerClient, terminal: Terminal) -> None:
        self.config = config
        self.client = client
        self.terminal = terminal
        self.writer = ScreenWriter(terminal, hyperlinks=config.features.hyperlinks)
        self.ctx: AppContext | None = None
        self.queue: asyncio.Queue[Message] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._ticker: asyncio.Task | None = None

    # ── Setup ────────────────────────────────────────────────────────────────

    def setup(self) -> AppContext:
        """Create the queue and the context; must run on the event loop."""
        self._loop = asyncio.get_running_loop()
        self.queue = asyncio.Queue()
        width, height = self.config.viewport or (self.terminal.columns, self.terminal.rows)
        self.ctx = create_context(self.config, self.client, width, height, sink=self.post)
        return self.ctx

    def _require_setup(self) -> None:
        if self.ctx is None or self.queue is None or self._loop is None:
            raise RuntimeError("App.setup() has not run")

    def start(self) -> None:
        """Kick off the initial loads."""
        self._require_setup()
        self.ctx.request(VIEWER)
        self.ctx.request(ISSUES)

    def post(self, message: Message) -> None:
        self._require_setup()
        self.queue.put_nowait(message)

    def _on_terminal_event(self, event: TerminalEvent) -> None:
        # reader thread: hand over to the loop, never touch state here
        self._require_setup()
        self._loop.call_soon_threadsafe(self.post, event)

    # ── Loop ─────────────────────────────────────────────────────────────────

    async def run(self) -> None:
        ctx = self.setup()
        self.terminal.start(self._on_terminal_event)
        self.terminal.set_title(f"issuedeck · {self.config.full_name}")
        self._ticker = asyncio.get_running_loop().create_task(self._tick_loop(), name="ticker")
        logger.info("started for %s", self.config.full_name)
        try:
            self.start()
            self.render()
            while not ctx.should_quit:
                message = await self.queue.get()
                self.handle(message)
                while not ctx.should_quit and not self.queue.empty():
                    self.handle(self.queue.get_nowait())
                self.render()
        finally:
            await self.shutdown()
            logger.info("stopped")

    async def shutdown(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            await asyncio.gather(self._ticker, return_exceptions=True)
            self._ticker = None
        if self.ctx is not None:
            await self.ctx.fetch.aclose()
        self.terminal.stop()

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(TICK_INTERVAL)
            if self.ctx is not None and self.ctx.busy():
                self.post(Tick())

    async def drain(self, max_rounds: int = 1000) -> None:
        """
        Handle queued messages until no background task is left, then render.

        Used by tests and headless runs in place of ``run``.
        """
        self._require_setup()
        for _ in range(max_rounds):
            while not self.queue.empty():
                self.handle(self.queue.get_nowait())
            if self.ctx.fetch.in_flight == 0 and self.queue.empty():
                break
            await asyncio.sleep(0)
        self.render()

    # ── Messages ─────────────────────────────────────────────────────────────

    def handle(self, message: Message) -> None:
        """Apply one message. Nothing raised here may stop the loop."""
        self._require_setup()
        ctx = self.ctx
        try:
            if isinstance(message, (KeyEvent, PasteEvent)):
                ctx.focus_tree.dispatch(message, ctx)
            elif isinstance(message, ResizeEvent):
                ctx.resize(message.columns, message.rows)
                self.writer.invalidate()
            elif isinstance(message, Tick):
                ctx.tick()
            elif isinstance(message, FetchCompleted):
                if ctx.fetch.settle(message) is not None:
                    ctx.apply_fetch(message)
            elif isinstance(message, MutationCompleted):
                ctx.apply_mutation(message)
            elif isinstance(message, Quit):
                ctx.quit()
        except FocusError as exc:
            logger.warning("focus error while handling %r: %s", message, exc)
            ctx.set_status(str(exc), error=True)
        except Exception as exc:
            logger.exception("error while handling %r", message)
            ctx.set_status(f"Internal error: {describe(exc)}", error=True)

    def render(self) -> RenderFrame:
        self._require_setup()
        scheduler = self.ctx.scheduler
        scheduler.cursor_region = self.ctx.focus_tree.active
        try:
            frame = scheduler.render(context=self.ctx)
        except Exception as exc:
            logger.exception("render failed")
            self.ctx.set_status(f"Internal error: {describe(exc)}", error=True)
            frame = scheduler.frame
        self.writer.present(frame)
        return frame


async def run_app(config: AppConfig, terminal: Terminal | None = None, client: TrackerClient | None = None) -> int:
    """Run the dashboard until the user quits; returns the exit code."""
    own_client = client is None
    tracker = client or GitHubClient(config.owner, config.repo, token=config.token, api_url=config.api_url)
    app = App(config, tracker, terminal or ProcessTerminal())
    try:
        await app.run()
    finally:
        if own_client:
            await tracker.aclose()
    return 0

"""
Terminal abstraction.

Provides:
- Terminal: abstract base class (interface)
- ProcessTerminal: real terminal using sys.stdin/sys.stdout + raw mode
"""
from __future__ import annotations

import logging
import os
import select
import signal
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable

from .events import ResizeEvent, TerminalEvent
from .stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

EventCallback = Callable[[TerminalEvent], None]

# ─────────────────────────────────────────────────────────────────────────────
# Terminal ABC
# ─────────────────────────────────────────────────────────────────────────────


class Terminal(ABC):
    """Minimal terminal interface used by the screen writer and the App."""

    @abstractmethod
    def start(self, on_event: EventCallback) -> None:
        """
        Start delivering input and resize events to ``on_event``.
        The callback may run on a reader thread.
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop the terminal and restore state."""

    @abstractmethod
    def write(self, data: str) -> None:
        """Write output to the terminal."""

    @property
    @abstractmethod
    def columns(self) -> int:
        """Terminal width in columns."""

    @property
    @abstractmethod
    def rows(self) -> int:
        """Terminal height in rows."""

    def hide_cursor(self) -> None:
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self.write("\x1b[?25h")

    def move_to(self, col: int, row: int) -> None:
        self.write(f"\x1b[{row + 1};{col + 1}H")

    def clear_screen(self) -> None:
        self.write("\x1b[2J\x1b[H")

    def set_title(self, title: str) -> None:
        self.write(f"\x1b]0;{title}\x07")


# ─────────────────────────────────────────────────────────────────────────────
# ProcessTerminal
# ─────────────────────────────────────────────────────────────────────────────


class ProcessTerminal(Terminal):
    """
    Real terminal using sys.stdin/sys.stdout.

    Enables raw mode, the alternate screen and bracketed paste; a daemon
    thread reads stdin and hands complete events to the callback.
    """

    def __init__(self) -> None:
        self._on_event: EventCallback | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._old_termios: object | None = None
        self._prev_sigwinch: object | None = None
        self._read_thread: threading.Thread | None = None
        self._running = False

    def start(self, on_event: EventCallback) -> None:
        self._on_event = on_event
        self._enable_raw_mode()

        # alternate screen + bracketed paste
        self.write("\x1b[?1049h\x1b[?2004h")

        if hasattr(signal, "SIGWINCH"):
            self._prev_sigwinch = signal.signal(signal.SIGWINCH, lambda *_: self._emit_resize())

        self._stdin_buffer = StdinBuffer(self._dispatch, timeout_ms=10)
        self._running = True
        self._read_thread = threading.Thread(target=self._read_loop, name="issuedeck-stdin", daemon=True)
        self._read_thread.start()

    def _dispatch(self, event: TerminalEvent) -> None:
        if self._on_event:
            self._on_event(event)

    def _emit_resize(self) -> None:
        self._dispatch(ResizeEvent(self.columns, self.rows))

    def _read_loop(self) -> None:
        fd = sys.stdin.fileno()
        while self._running:
            try:
                ready, _, _ = select.select([fd], [], [], 0.05)
                if not ready:
                    continue
                data = os.read(fd, 1024)
                if not data:
                    break
                buf = self._stdin_buffer
                if buf:
                    buf.process(data)
            except (OSError, ValueError):
                logger.debug("stdin reader stopped", exc_info=True)
                break

    def _enable_raw_mode(self) -> None:
        """Put stdin in raw mode (no echo, no line buffering)."""
        import termios
        import tty

        fd = sys.stdin.fileno()
        try:
            self._old_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except termios.error:
            logger.warning("stdin is not a tty; raw mode unavailable")

    def _disable_raw_mode(self) -> None:
        import termios

        if self._old_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._old_termios)
            self._old_termios = None

    def stop(self) -> None:
        """Leave the alternate screen, restore cursor, signals and tty mode."""
        self._running = False
        if self._read_thread is not None:
            self._read_thread.join(timeout=0.2)
            self._read_thread = None
        if self._stdin_buffer:
            self._stdin_buffer.clear()
            self._stdin_buffer = None
        self._on_event = None

        if self._prev_sigwinch is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch)
            self._prev_sigwinch = None

        self.write("\x1b[?2004l\x1b[?25h\x1b[0m\x1b[?1049l")
        self._disable_raw_mode()

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        sys.stdout.flush()

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size().columns
        except OSError:
            return int(os.environ.get("COLUMNS", "80"))

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size().lines
        except OSError:
            return int(os.environ.get("LINES", "24"))

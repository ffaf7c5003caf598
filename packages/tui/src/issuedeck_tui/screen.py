"""
ScreenWriter: differential output of RenderFrames to a Terminal.

Only rows that differ from the previously presented frame are rewritten.
The whole write is wrapped in synchronized-output markers so terminals that
support mode 2026 never show a half-drawn frame.
"""
from __future__ import annotations

import logging

from .frame import RenderFrame, Row
from .style import PLAIN, osc8, sgr
from .terminal import Terminal

logger = logging.getLogger(__name__)

SYNC_BEGIN = "\x1b[?2026h"
SYNC_END = "\x1b[?2026l"


def encode_row(row: Row, hyperlinks: bool = True) -> str:
    """Serialize one row of cells into text plus SGR/OSC 8 escapes."""
    out: list[str] = []
    style = PLAIN
    link: str | None = None
    for cell in row:
        if cell.char == "":
            continue
        if cell.style != style:
            out.append(sgr(cell.style))
            style = cell.style
        if hyperlinks and cell.link != link:
            out.append(osc8(cell.link))
            link = cell.link
        out.append(cell.char)
    if link is not None:
        out.append(osc8(None))
    if style != PLAIN:
        out.append("\x1b[0m")
    return "".join(out)


class ScreenWriter:
    """Writes frames to a terminal, repainting only changed rows."""

    def __init__(self, terminal: Terminal, hyperlinks: bool = True) -> None:
        self.terminal = terminal
        self.hyperlinks = hyperlinks
        self._previous: RenderFrame | None = None
        self._full_redraw_count = 0
        self._rows_written = 0

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    @property
    def rows_written(self) -> int:
        """Rows written by the most recent present()."""
        return self._rows_written

    def invalidate(self) -> None:
        """Forget the previous frame; the next present() repaints everything."""
        self._previous = None

    def present(self, frame: RenderFrame) -> None:
        prev = self._previous
        full = prev is None or prev.width != frame.width or prev.height != frame.height

        buf = [SYNC_BEGIN, "\x1b[?25l"]
        if full:
            self._full_redraw_count += 1
            buf.append("\x1b[0m\x1b[2J")
            changed = range(frame.height)
        else:
            changed = [y for y in range(frame.height) if frame.rows[y] != prev.rows[y]]

        for y in changed:
            buf.append(f"\x1b[{y + 1};1H")
            buf.append(encode_row(frame.rows[y], self.hyperlinks))
        self._rows_written = len(changed)

        if frame.cursor is not None:
            col, row = frame.cursor
            buf.append(f"\x1b[{row + 1};{col + 1}H\x1b[?25h")
        buf.append(SYNC_END)

        if full or self._rows_written or frame.cursor != (prev.cursor if prev else None):
            self.terminal.write("".join(buf))
        if self._rows_written:
            logger.debug("presented %d row(s)%s", self._rows_written, " (full)" if full else "")
        self._previous = frame

"""
Cell grid primitives: Rect, Cell, CellBuffer and RenderFrame.

A RenderFrame is the whole viewport. Widgets never touch it directly: their
styled lines are rasterized into a CellBuffer sized to their region, and the
RenderScheduler blits those buffers into a frame.
"""
from __future__ import annotations

from dataclasses import dataclass

from .style import PLAIN, Line, Style
from .utils import grapheme_width, segment_graphemes


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom

    def intersection(self, other: "Rect") -> "Rect":
        x = max(self.x, other.x)
        y = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        return Rect(x, y, max(0, right - x), max(0, bottom - y))

    def intersects(self, other: "Rect") -> bool:
        return not self.intersection(other).is_empty()


@dataclass(frozen=True)
class Cell:
    char: str = " "
    style: Style = PLAIN
    link: str | None = None


BLANK = Cell()
# Right half of a double-width glyph
CONTINUATION = Cell("")

Row = list[Cell]


def _is_wide(cell: Cell) -> bool:
    return grapheme_width(cell.char) == 2


def rasterize(lines: list[Line], width: int, height: int, base: Style = PLAIN) -> list[Row]:
    """
    Convert styled lines into exactly ``height`` rows of ``width`` cells.

    Overlong lines are cut at a glyph boundary (a wide glyph that would
    straddle the edge is replaced by a blank), short ones are padded.
    """
    blank = Cell(" ", base)
    rows: list[Row] = []
    for ln in lines[:height]:
        row: Row = []
        col = 0
        full = False
        for span in ln:
            style = base.patch(span.style) if not base.is_plain else span.style
            for g in segment_graphemes(span.text):
                gw = grapheme_width(g)
                if gw == 0:
                    continue
                if col + gw > width:
                    full = True
                    break
                row.append(Cell(g, style, span.link))
                if gw == 2:
                    row.append(CONTINUATION)
                col += gw
            if full or col >= width:
                break
        row.extend([blank] * (width - len(row)))
        rows.append(row)
    while len(rows) < height:
        rows.append([blank] * width)
    return rows


class RenderFrame:
    """Viewport-sized grid of cells plus the hardware cursor position."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.rows: list[Row] = [[BLANK] * width for _ in range(height)]
        self.cursor: tuple[int, int] | None = None

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)

    def copy(self) -> "RenderFrame":
        """Independent copy; cells are immutable so copying rows is enough."""
        other = RenderFrame.__new__(RenderFrame)
        other.width = self.width
        other.height = self.height
        other.rows = [row[:] for row in self.rows]
        other.cursor = self.cursor
        return other

    def fill(self, rect: Rect, cell: Cell = BLANK) -> None:
        clip = rect.intersection(self.bounds)
        for y in range(clip.y, clip.bottom):
            self.rows[y][clip.x:clip.right] = [cell] * clip.width

    def blit(self, buffer: list[Row], origin: Rect, clip: Rect | None = None) -> None:
        """Copy ``buffer`` (laid out at ``origin``) into the frame, limited to ``clip``."""
        area = origin.intersection(self.bounds)
        if clip is not None:
            area = area.intersection(clip)
        if area.is_empty():
            return
        for y in range(area.y, area.bottom):
            src = buffer[y - origin.y]
            dst = self.rows[y]
            dst[area.x:area.right] = src[area.x - origin.x:area.right - origin.x]
            # never leave half a wide glyph on a clip edge
            if dst[area.x] is CONTINUATION:
                dst[area.x] = BLANK
            if area.x > 0 and _is_wide(dst[area.x - 1]):
                dst[area.x - 1] = BLANK
            if _is_wide(dst[area.right - 1]):
                dst[area.right - 1] = BLANK
            if area.right < self.width and dst[area.right] is CONTINUATION:
                dst[area.right] = BLANK

    def row_text(self, y: int) -> str:
        return "".join(c.char for c in self.rows[y])

    def text(self) -> str:
        return "\n".join(self.row_text(y) for y in range(self.height))

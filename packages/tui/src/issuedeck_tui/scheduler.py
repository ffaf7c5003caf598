"""
RenderScheduler: dirty-region rendering.

Each region owns a rectangle of the viewport and a widget. The scheduler
keeps the last rasterized CellBuffer of every region; ``render`` recomputes
buffers only for regions in the DirtyMask and re-composites just the damaged
rectangles (old and new bounds of each dirty region). Everything else in the
frame is carried over from the previous frame untouched.

Z-order is registration order: a region registered later is painted later,
so overlays registered after the screens they cover always end up on top.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .focus import Widget
from .frame import RenderFrame, Rect, Row, rasterize
from .style import PLAIN, RED, Span, Style

logger = logging.getLogger(__name__)

_ERROR_STYLE = Style(fg=RED, bold=True)


@dataclass
class Region:
    id: str
    rect: Rect
    widget: Widget
    visible: bool = True
    base_style: Style = PLAIN
    buffer: list[Row] | None = None
    # where the buffer currently sits in the frame (None if not painted)
    painted: Rect | None = None


class RenderScheduler:
    """Composes RenderFrames from registered regions, recomputing only dirty ones."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._regions: dict[str, Region] = {}
        self._dirty: dict[str, None] = {}  # insertion-ordered set
        self._damage: list[Rect] = []
        self._frame = RenderFrame(width, height)
        self._needs_full = True
        self.cursor_region: str | None = None
        self.last_recomputed: list[str] = []
        self.full_recomputes = 0
        # region id -> message of its last failed render
        self.render_errors: dict[str, str] = {}

    # ── Registration ─────────────────────────────────────────────────────────

    def register(
        self,
        region_id: str,
        rect: Rect,
        widget: Widget,
        visible: bool = True,
        base_style: Style = PLAIN,
    ) -> Region:
        """Add a region on top of all existing ones; re-registering keeps its z-order."""
        region = self._regions.get(region_id)
        if region is None:
            region = Region(region_id, rect, widget, visible, base_style)
            self._regions[region_id] = region
        else:
            region.rect = rect
            region.widget = widget
            region.visible = visible
            region.base_style = base_style
        self.mark_dirty(region_id)
        return region

    def unregister(self, region_id: str) -> None:
        region = self._regions.pop(region_id, None)
        if region is None:
            return
        if region.painted is not None:
            self._damage.append(region.painted)
        self._dirty.pop(region_id, None)

    def region(self, region_id: str) -> Region:
        return self._regions[region_id]

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    @property
    def region_ids(self) -> list[str]:
        """Region ids in paint order (bottom first)."""
        return list(self._regions)

    def set_rect(self, region_id: str, rect: Rect) -> None:
        region = self._regions[region_id]
        if region.rect != rect:
            region.rect = rect
            self.mark_dirty(region_id)

    def set_visible(self, region_id: str, visible: bool) -> None:
        region = self._regions[region_id]
        if region.visible != visible:
            region.visible = visible
            self.mark_dirty(region_id)

    def resize(self, width: int, height: int) -> None:
        """New viewport size: the next render recomputes every region."""
        if (width, height) != (self.width, self.height):
            self.width = width
            self.height = height
            self._needs_full = True

    # ── Dirty mask ───────────────────────────────────────────────────────────

    def mark_dirty(self, region_id: str) -> None:
        """Add a region to the DirtyMask. Idempotent; unknown ids are ignored at render."""
        self._dirty[region_id] = None

    def mark_all_dirty(self) -> None:
        for region_id in self._regions:
            self._dirty[region_id] = None

    @property
    def dirty(self) -> frozenset[str]:
        return frozenset(self._dirty)

    def has_pending(self) -> bool:
        return bool(self._needs_full or self._damage or self._pending_ids())

    def _pending_ids(self) -> list[str]:
        ids = [rid for rid in self._dirty if rid in self._regions]
        for rid, region in self._regions.items():
            if rid not in self._dirty and region.visible and region.widget.is_dirty():
                ids.append(rid)
        return ids

    # ── Rendering ────────────────────────────────────────────────────────────

    def render(self, frame_budget: int | None = None, context: Any = None) -> RenderFrame:
        """
        Recompute dirty regions and return the composed frame.

        ``frame_budget`` caps how many regions are recomputed this call; the
        rest stay in the DirtyMask for the next call. With an empty mask the
        previous frame is returned as is.
        """
        if self._needs_full:
            return self._render_full(context)

        pending = self._pending_ids()
        # ids marked for regions that no longer exist are simply discarded
        for rid in list(self._dirty):
            if rid not in self._regions:
                del self._dirty[rid]

        if frame_budget is not None:
            pending = pending[:max(0, frame_budget)]

        if not pending and not self._damage:
            self.last_recomputed = []
            return self._frame

        damage = self._damage
        self._damage = []
        for rid in pending:
            region = self._regions[rid]
            if region.painted is not None:
                damage.append(region.painted)
            self._recompute(region, context)
            if region.painted is not None:
                damage.append(region.painted)
            self._dirty.pop(rid, None)

        frame = self._frame.copy()
        for rect in damage:
            frame.fill(rect)
        for region in self._regions.values():
            if region.painted is None or region.buffer is None:
                continue
            for rect in damage:
                if region.painted.intersects(rect):
                    frame.blit(region.buffer, region.painted, clip=rect)

        self.last_recomputed = pending
        frame.cursor = self._cursor()
        self._frame = frame
        return frame

    def _render_full(self, context: Any) -> RenderFrame:
        self.full_recomputes += 1
        frame = RenderFrame(self.width, self.height)
        recomputed: list[str] = []
        for region in self._regions.values():
            self._recompute(region, context)
            recomputed.append(region.id)
            if region.painted is not None and region.buffer is not None:
                frame.blit(region.buffer, region.painted)
        self._dirty.clear()
        self._damage = []
        self._needs_full = False
        self.last_recomputed = recomputed
        frame.cursor = self._cursor()
        self._frame = frame
        logger.debug("full render %dx%d, %d region(s)", self.width, self.height, len(recomputed))
        return frame

    def _recompute(self, region: Region, context: Any) -> None:
        rect = region.rect.intersection(Rect(0, 0, self.width, self.height))
        if not region.visible or rect.is_empty():
            region.buffer = None
            region.painted = None
            return
        try:
            lines = region.widget.render(region.rect.width, region.rect.height, context)
        except Exception as exc:
            # one broken widget must not take the frame down with it
            logger.exception("region %s failed to render", region.id)
            self.render_errors[region.id] = str(exc) or type(exc).__name__
            lines = [(Span(f"✖ {region.id}: {self.render_errors[region.id]}", _ERROR_STYLE),)]
        else:
            self.render_errors.pop(region.id, None)
        region.buffer = rasterize(lines, region.rect.width, region.rect.height, region.base_style)
        region.painted = region.rect

    def _cursor(self) -> tuple[int, int] | None:
        if self.cursor_region is None:
            return None
        region = self._regions.get(self.cursor_region)
        if region is None or region.painted is None:
            return None
        cursor_fn = getattr(region.widget, "cursor", None)
        pos = cursor_fn() if cursor_fn is not None else None
        if pos is None:
            return None
        col, row = pos
        x, y = region.rect.x + col, region.rect.y + row
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return (x, y)

    @property
    def frame(self) -> RenderFrame:
        return self._frame

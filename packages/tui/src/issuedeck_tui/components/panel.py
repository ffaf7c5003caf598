"""Bordered panel drawing and list scrolling helpers."""
from __future__ import annotations

from ..style import GRAY, YELLOW, Line, Span, Style, line_width
from ..utils import truncate_to_width, visible_width

FOCUSED_BORDER = Style(fg=YELLOW)
BLURRED_BORDER = Style(fg=GRAY)


def border_style(focused: bool) -> Style:
    return FOCUSED_BORDER if focused else BLURRED_BORDER


def _fit(ln: Line, width: int) -> Line:
    """Cut or pad a line to exactly ``width`` columns."""
    out: list[Span] = []
    used = 0
    for span in ln:
        if used >= width:
            break
        if used + span.width > width:
            out.append(Span(truncate_to_width(span.text, width - used, ellipsis=""), span.style, span.link))
            used = line_width(tuple(out))
            break
        out.append(span)
        used += span.width
    if used < width:
        out.append(Span(" " * (width - used)))
    return tuple(out)


def panel(
    body: list[Line],
    width: int,
    height: int,
    title: str | Line = "",
    focused: bool = False,
    footer: str = "",
) -> list[Line]:
    """
    Draw ``body`` inside a rounded border of exactly width × height cells.
    The border turns yellow when focused.
    """
    if width < 2 or height < 2:
        return body[:height]
    border = border_style(focused)
    inner_w = width - 2
    if isinstance(title, str):
        title_line: Line = (Span(f" {title} ", Style(bold=True)),) if title else ()
    else:
        title_line = title
    title_w = min(line_width(title_line), max(0, inner_w - 1))
    title_line = _fit(title_line, title_w) if title_w else ()
    top: Line = (Span("╭─", border),) + title_line + (Span("─" * (inner_w - 1 - title_w) + "╮", border),)

    footer_text = truncate_to_width(footer, max(0, inner_w - 2), ellipsis="") if footer else ""
    bottom: Line = (
        Span("╰" + "─" * max(0, inner_w - visible_width(footer_text) - 1), border),
        Span(footer_text, Style(dim=True)),
        Span("─╯" if footer_text else "╯", border),
    ) if footer_text else (Span("╰" + "─" * inner_w + "╯", border),)

    rows: list[Line] = [top]
    side = Span("│", border)
    for i in range(height - 2):
        content = body[i] if i < len(body) else ()
        rows.append((side,) + _fit(content, inner_w) + (side,))
    rows.append(bottom)
    return rows


def visible_window(selected: int, count: int, rows: int) -> tuple[int, int]:
    """Start/end indices of a scrolled window that keeps ``selected`` centred."""
    if count <= rows:
        return 0, count
    start = max(0, min(selected - rows // 2, count - rows))
    return start, start + rows

"""Region rectangles for a given viewport size."""
from __future__ import annotations

from issuedeck_tui.frame import Rect

SEARCH_HEIGHT = 3
EDITOR_HEIGHT = 6
MIN_WIDTH = 20
MIN_HEIGHT = 8


def _centered(width: int, height: int, w: int, h: int) -> Rect:
    w = max(1, min(w, width))
    h = max(1, min(h, height))
    return Rect((width - w) // 2, (height - h) // 2, w, h)


def compute(width: int, height: int) -> dict[str, Rect]:
    """
    Rectangles for every region, keyed by region id.

    The list and details screens share the area above the status bar;
    overlays are centred over it.
    """
    width = max(MIN_WIDTH, width)
    height = max(MIN_HEIGHT, height)
    body = height - 1
    editor = min(EDITOR_HEIGHT, body // 2)
    return {
        "search": Rect(0, 0, width, SEARCH_HEIGHT),
        "issues": Rect(0, SEARCH_HEIGHT, width, body - SEARCH_HEIGHT),
        "conversation": Rect(0, 0, width, body - editor),
        "comment_editor": Rect(0, body - editor, width, editor),
        "status": Rect(0, height - 1, width, 1),
        "label_picker": _centered(width, body, 60, 20),
        "color_picker": _centered(width, body, 30, 11),
        "reaction_picker": _centered(width, body, 56, 5),
        "number_nav": _centered(width, body, 32, 4),
        "help": _centered(width, body, 64, 24),
    }

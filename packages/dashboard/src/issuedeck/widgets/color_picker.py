"""Color picker for new labels."""
from __future__ import annotations

from typing import TYPE_CHECKING

from issuedeck_tui.components import panel
from issuedeck_tui.events import InputEvent, KeyEvent
from issuedeck_tui.keybindings import get_keybindings
from issuedeck_tui.style import BLACK, Line, Span, Style, parse_hex_color

from .. import theme
from ..messages import MutationCompleted
from ..targets import LABELS
from .base import SubmittableWidget

if TYPE_CHECKING:
    from ..context import AppContext

HUES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Red", ("ffebe9", "ffcecb", "ffaba8", "ff8182", "fa4549")),
    ("Orange", ("fff8c5", "ffec99", "f7c843", "e16f24", "bc4c00")),
    ("Yellow", ("fff8c5", "fae17d", "eac54f", "d4a72c", "bf8700")),
    ("Green", ("dafbe1", "aceebb", "6fdd8b", "4ac26b", "2da44e")),
    ("Teal", ("d2f4ea", "96e9da", "4ac9b0", "1ea7a1", "0a7f7f")),
    ("Blue", ("ddf4ff", "b6e3ff", "80ccff", "54aeff", "0969da")),
    ("Purple", ("fbefff", "ecd8ff", "d8b9ff", "c297ff", "a475f9")),
    ("Gray", ("f6f8fa", "eaeef2", "d0d7de", "8c959f", "57606a")),
)
HUE_KEYS = ("R", "O", "Y", "G", "T", "B", "P", "K")
DEFAULT_CELL = (7, 2)


def cell_for_hex(value: str) -> tuple[int, int]:
    """Grid position of ``value``; the default cell when it is not in the grid."""
    normalized = value.strip().lstrip("#").lower()
    for r, (_, shades) in enumerate(HUES):
        for c, shade in enumerate(shades):
            if shade == normalized:
                return r, c
    return DEFAULT_CELL


class ColorPicker(SubmittableWidget):
    """
    8×5 grid of shades. Arrows move (clamped at the edges), a hue letter
    jumps to its row, enter creates the label with the selected color.
    """

    captures_when_focused = True

    def __init__(self, initial_hex: str = "") -> None:
        super().__init__("color_picker")
        self.row, self.col = cell_for_hex(initial_hex) if initial_hex else DEFAULT_CELL
        self.label_name = ""

    @property
    def selected_hex(self) -> str:
        return HUES[self.row][1][self.col]

    def open(self, ctx: "AppContext", name: str) -> None:
        self.label_name = name
        self.error_message = None
        ctx.open_overlay(self.node_id)
        self.touch()

    def snapshot(self) -> tuple[int, int]:
        return self.row, self.col

    def restore(self, snapshot: tuple[int, int]) -> None:
        self.row, self.col = snapshot

    def handle_input(self, event: InputEvent, ctx: "AppContext") -> bool:
        if not isinstance(event, KeyEvent):
            return True
        kb = get_keybindings()
        data = event.data
        if kb.matches(data, "selectCancel"):
            ctx.close_overlay(self.node_id)
            return True
        if self.submitting:
            return True
        if kb.matches(data, "selectConfirm"):
            self.confirm(ctx)
        elif kb.matches(data, "cursorUp"):
            self.row = max(0, self.row - 1)
        elif kb.matches(data, "cursorDown"):
            self.row = min(len(HUES) - 1, self.row + 1)
        elif kb.matches(data, "cursorLeft"):
            self.col = max(0, self.col - 1)
        elif kb.matches(data, "cursorRight"):
            self.col = min(len(HUES[0][1]) - 1, self.col + 1)
        elif event.is_printable and data.upper() in HUE_KEYS:
            self.row = HUE_KEYS.index(data.upper())
        else:
            return True
        self.edited()
        self.touch()
        return True

    def confirm(self, ctx: "AppContext") -> None:
        if self.submitting or not self.label_name:
            return
        name, color = self.label_name, self.selected_hex
        self.begin_submit()
        ctx.submit(self.node_id, lambda: ctx.client.create_label(name, color), refetch=(LABELS,))

    def on_success(self, message: MutationCompleted, ctx: "AppContext") -> None:
        ctx.close_overlay(self.node_id)
        ctx.widgets["label_picker"].on_label_created(message.payload)
        ctx.set_status(f"Created label {self.label_name!r}")

    def draw(self, width: int, height: int, ctx: "AppContext") -> list[Line]:
        focused = self.is_focused(ctx)
        body: list[Line] = []
        for r, ((_, shades), key) in enumerate(zip(HUES, HUE_KEYS)):
            spans: list[Span] = [Span(f"{key} ", theme.TITLE)]
            for c, shade in enumerate(shades):
                chosen = r == self.row and c == self.col
                style = Style(bg=parse_hex_color(shade))
                if chosen:
                    style = style.patch(Style(fg=BLACK, bold=True))
                spans += [Span("  "), Span("<>" if chosen else "  ", style)]
            body.append(tuple(spans))
        preview = Style(bg=parse_hex_color(self.selected_hex))
        if self.error_message:
            body.append((Span(f"✖ {self.error_message}", theme.ERROR),))
        elif self.submitting:
            body.append(ctx.spinner.span("Creating"))
        else:
            body.append((Span(" ", preview), Span(f" #{self.selected_hex}")))
        title = f"Color picker: {self.label_name}" if self.label_name else "Color picker"
        return panel(body, width, height, title, focused)

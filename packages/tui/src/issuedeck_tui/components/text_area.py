"""Multi-line text editor used for composing comments."""
from __future__ import annotations

from ..events import InputEvent, KeyEvent, PasteEvent
from ..keybindings import get_keybindings
from ..style import GRAY, Line, Span, Style
from ..undo_stack import UndoStack
from ..utils import grapheme_width, is_whitespace_char, segment_graphemes

_CURSOR_STYLE = Style(reverse=True)
_PLACEHOLDER_STYLE = Style(fg=GRAY, italic=True)


class _EditorState:
    __slots__ = ("lines", "row", "col")

    def __init__(self, lines: list[str], row: int, col: int) -> None:
        self.lines = lines
        self.row = row
        self.col = col


class TextArea:
    """
    Multi-line editing model with soft-wrapped rendering.

    Enter inserts a newline. Submit, escape and tab are left to the owner:
    ``handle_input`` returns False for them.
    """

    def __init__(self, text: str = "", placeholder: str = "") -> None:
        self._lines: list[str] = text.split("\n") if text else [""]
        self._row = len(self._lines) - 1
        self._col = len(self._lines[-1])
        self._scroll = 0
        self.placeholder = placeholder
        self._undo_stack: UndoStack[_EditorState] = UndoStack()
        self._typing = False

    # ── Value ────────────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    def set_text(self, text: str) -> None:
        self._lines = text.split("\n") if text else [""]
        self._row = len(self._lines) - 1
        self._col = len(self._lines[-1])
        self._scroll = 0
        self._typing = False

    def clear(self) -> None:
        self.set_text("")
        self._undo_stack.clear()

    def is_empty(self) -> bool:
        return not self.text.strip()

    @property
    def cursor_position(self) -> tuple[int, int]:
        """(row, col) in logical lines; col is a string index."""
        return self._row, self._col

    # ── Input ────────────────────────────────────────────────────────────────

    def handle_input(self, event: InputEvent) -> bool:
        if isinstance(event, PasteEvent):
            self._push_undo()
            self._insert(event.text.replace("\r\n", "\n").replace("\r", "\n"))
            return True
        if not isinstance(event, KeyEvent):
            return False

        kb = get_keybindings()
        data = event.data

        if kb.matches(data, "submit"):
            return False
        if kb.matches(data, "undo"):
            snapshot = self._undo_stack.pop()
            if snapshot is not None:
                self._lines, self._row, self._col = snapshot.lines, snapshot.row, snapshot.col
            self._typing = False
            return True
        if kb.matches(data, "newLine"):
            self._push_undo()
            self._insert("\n")
            return True
        if kb.matches(data, "deleteCharBackward"):
            self._backspace()
            return True
        if kb.matches(data, "deleteCharForward"):
            self._forward_delete()
            return True
        if kb.matches(data, "deleteWordBackward"):
            self._delete_word_backward()
            return True
        if kb.matches(data, "deleteToLineStart"):
            if self._col > 0:
                self._push_undo()
                line = self._lines[self._row]
                self._lines[self._row] = line[self._col:]
                self._col = 0
            return True
        if kb.matches(data, "deleteToLineEnd"):
            line = self._lines[self._row]
            if self._col < len(line):
                self._push_undo()
                self._lines[self._row] = line[:self._col]
            return True
        if kb.matches(data, "cursorUp"):
            self._move_vertical(-1)
            return True
        if kb.matches(data, "cursorDown"):
            self._move_vertical(1)
            return True
        if kb.matches(data, "cursorLeft"):
            self._move_left()
            return True
        if kb.matches(data, "cursorRight"):
            self._move_right()
            return True
        if kb.matches(data, "cursorLineStart"):
            self._col = 0
            self._typing = False
            return True
        if kb.matches(data, "cursorLineEnd"):
            self._col = len(self._lines[self._row])
            self._typing = False
            return True

        if event.is_printable:
            if is_whitespace_char(data) or not self._typing:
                self._push_undo()
            self._typing = True
            self._insert(data)
            return True
        return False

    def _push_undo(self) -> None:
        self._undo_stack.push(_EditorState(self._lines, self._row, self._col))

    def _insert(self, text: str) -> None:
        line = self._lines[self._row]
        before, after = line[:self._col], line[self._col:]
        parts = text.split("\n")
        if len(parts) == 1:
            self._lines[self._row] = before + text + after
            self._col += len(text)
            return
        self._typing = False
        new_lines = [before + parts[0], *parts[1:-1], parts[-1] + after]
        self._lines[self._row:self._row + 1] = new_lines
        self._row += len(parts) - 1
        self._col = len(parts[-1])

    def _backspace(self) -> None:
        self._typing = False
        if self._col > 0:
            self._push_undo()
            line = self._lines[self._row]
            graphemes = segment_graphemes(line[:self._col])
            length = len(graphemes[-1]) if graphemes else 1
            self._lines[self._row] = line[:self._col - length] + line[self._col:]
            self._col -= length
        elif self._row > 0:
            self._push_undo()
            prev = self._lines[self._row - 1]
            self._lines[self._row - 1] = prev + self._lines.pop(self._row)
            self._row -= 1
            self._col = len(prev)

    def _forward_delete(self) -> None:
        self._typing = False
        line = self._lines[self._row]
        if self._col < len(line):
            self._push_undo()
            graphemes = segment_graphemes(line[self._col:])
            length = len(graphemes[0]) if graphemes else 1
            self._lines[self._row] = line[:self._col] + line[self._col + length:]
        elif self._row < len(self._lines) - 1:
            self._push_undo()
            self._lines[self._row] = line + self._lines.pop(self._row + 1)

    def _delete_word_backward(self) -> None:
        if self._col == 0:
            self._backspace()
            return
        self._push_undo()
        line = self._lines[self._row]
        graphemes = segment_graphemes(line[:self._col])
        start = self._col
        while graphemes and is_whitespace_char(graphemes[-1]):
            start -= len(graphemes.pop())
        while graphemes and not is_whitespace_char(graphemes[-1]):
            start -= len(graphemes.pop())
        self._lines[self._row] = line[:start] + line[self._col:]
        self._col = start
        self._typing = False

    def _move_left(self) -> None:
        self._typing = False
        if self._col > 0:
            graphemes = segment_graphemes(self._lines[self._row][:self._col])
            self._col -= len(graphemes[-1]) if graphemes else 1
        elif self._row > 0:
            self._row -= 1
            self._col = len(self._lines[self._row])

    def _move_right(self) -> None:
        self._typing = False
        line = self._lines[self._row]
        if self._col < len(line):
            graphemes = segment_graphemes(line[self._col:])
            self._col += len(graphemes[0]) if graphemes else 1
        elif self._row < len(self._lines) - 1:
            self._row += 1
            self._col = 0

    def _move_vertical(self, delta: int) -> None:
        self._typing = False
        target = self._row + delta
        if 0 <= target < len(self._lines):
            # keep the same grapheme column where the target line allows
            column = len(segment_graphemes(self._lines[self._row][:self._col]))
            graphemes = segment_graphemes(self._lines[target])
            self._row = target
            self._col = len("".join(graphemes[:column]))

    # ── Rendering ────────────────────────────────────────────────────────────

    def _visual_rows(self, width: int) -> tuple[list[str], tuple[int, int]]:
        """Soft-wrap logical lines; also return the cursor's (visual row, column)."""
        rows: list[str] = []
        cursor = (0, 0)
        for li, line in enumerate(self._lines):
            graphemes = segment_graphemes(line)
            row_text, row_w, offset = "", 0, 0
            for g in graphemes:
                gw = grapheme_width(g)
                if row_w + gw > width and row_text:
                    rows.append(row_text)
                    row_text, row_w = "", 0
                if li == self._row and offset == self._col:
                    cursor = (len(rows), row_w)
                row_text += g
                row_w += gw
                offset += len(g)
            if li == self._row and offset <= self._col:
                # cursor at end of line; wrap if the row is full
                if row_w >= width and row_text:
                    rows.append(row_text)
                    row_text, row_w = "", 0
                cursor = (len(rows), row_w)
            rows.append(row_text)
        return rows, cursor

    def render(self, width: int, height: int, focused: bool = True) -> tuple[list[Line], tuple[int, int] | None]:
        """Visible rows plus the cursor's (col, row) inside them, if focused."""
        width = max(1, width)
        height = max(1, height)
        if not focused and self.is_empty() and self.placeholder:
            return [(Span(self.placeholder, _PLACEHOLDER_STYLE),)], None

        rows, (crow, ccol) = self._visual_rows(width)
        if crow < self._scroll:
            self._scroll = crow
        elif crow >= self._scroll + height:
            self._scroll = crow - height + 1

        out: list[Line] = []
        for vr in range(self._scroll, min(len(rows), self._scroll + height)):
            text = rows[vr]
            if focused and vr == crow:
                out.append(self._with_cursor(text, ccol))
            else:
                out.append((Span(text),) if text else ())
        cursor = (ccol, crow - self._scroll) if focused else None
        return out, cursor

    @staticmethod
    def _with_cursor(text: str, col: int) -> Line:
        before, used = "", 0
        graphemes = segment_graphemes(text)
        idx = 0
        while idx < len(graphemes) and used < col:
            before += graphemes[idx]
            used += grapheme_width(graphemes[idx])
            idx += 1
        at = graphemes[idx] if idx < len(graphemes) else " "
        after = "".join(graphemes[idx + 1:])
        spans = [Span(before)] if before else []
        spans.append(Span(at, _CURSOR_STYLE))
        if after:
            spans.append(Span(after))
        return tuple(spans)

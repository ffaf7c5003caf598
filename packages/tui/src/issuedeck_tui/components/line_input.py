"""Single-line text input with horizontal scrolling and undo."""
from __future__ import annotations

from ..events import InputEvent, KeyEvent, PasteEvent
from ..keybindings import get_keybindings
from ..style import GRAY, Line, Span, Style
from ..undo_stack import UndoStack
from ..utils import is_punctuation_char, is_whitespace_char, segment_graphemes, visible_width

_CURSOR_STYLE = Style(reverse=True)
_PLACEHOLDER_STYLE = Style(fg=GRAY, italic=True)


class _InputState:
    __slots__ = ("value", "cursor")

    def __init__(self, value: str, cursor: int) -> None:
        self.value = value
        self.cursor = cursor


class LineInput:
    """
    Editing model for one line of text.

    ``handle_input`` returns True when it consumed the event. Enter, escape and
    tab are never consumed; the owning widget decides what they mean.
    """

    def __init__(self, value: str = "", prompt: str = "", placeholder: str = "") -> None:
        self._value = value
        self._cursor = len(value)
        self.prompt = prompt
        self.placeholder = placeholder
        self._undo_stack: UndoStack[_InputState] = UndoStack()
        self._typing = False

    @property
    def value(self) -> str:
        return self._value

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_value(self, value: str) -> None:
        self._value = value
        self._cursor = len(value)
        self._typing = False

    def clear(self) -> None:
        self.set_value("")
        self._undo_stack.clear()

    # ── Input ────────────────────────────────────────────────────────────────

    def handle_input(self, event: InputEvent) -> bool:
        if isinstance(event, PasteEvent):
            self._push_undo()
            clean = event.text.replace("\r\n", "").replace("\r", "").replace("\n", "")
            self._insert(clean)
            return True
        if not isinstance(event, KeyEvent):
            return False

        kb = get_keybindings()
        data = event.data

        if kb.matches(data, "undo"):
            snapshot = self._undo_stack.pop()
            if snapshot is not None:
                self._value, self._cursor = snapshot.value, snapshot.cursor
            self._typing = False
            return True
        if kb.matches(data, "deleteCharBackward"):
            self._backspace()
            return True
        if kb.matches(data, "deleteCharForward"):
            self._forward_delete()
            return True
        if kb.matches(data, "deleteWordBackward"):
            if self._cursor > 0:
                self._push_undo()
                end = self._cursor
                self._word_left()
                self._value = self._value[:self._cursor] + self._value[end:]
            return True
        if kb.matches(data, "deleteToLineStart"):
            if self._cursor > 0:
                self._push_undo()
                self._value = self._value[self._cursor:]
                self._cursor = 0
            return True
        if kb.matches(data, "deleteToLineEnd"):
            if self._cursor < len(self._value):
                self._push_undo()
                self._value = self._value[:self._cursor]
            return True
        if kb.matches(data, "cursorLeft"):
            graphemes = segment_graphemes(self._value[:self._cursor])
            if graphemes:
                self._cursor -= len(graphemes[-1])
            self._typing = False
            return True
        if kb.matches(data, "cursorRight"):
            graphemes = segment_graphemes(self._value[self._cursor:])
            if graphemes:
                self._cursor += len(graphemes[0])
            self._typing = False
            return True
        if kb.matches(data, "cursorLineStart"):
            self._cursor = 0
            self._typing = False
            return True
        if kb.matches(data, "cursorLineEnd"):
            self._cursor = len(self._value)
            self._typing = False
            return True
        if kb.matches(data, "cursorWordLeft"):
            self._word_left()
            return True
        if kb.matches(data, "cursorWordRight"):
            self._word_right()
            return True

        if event.is_printable:
            # one undo step per typed word
            if is_whitespace_char(data) or not self._typing:
                self._push_undo()
            self._typing = True
            self._insert(data)
            return True
        return False

    def _insert(self, text: str) -> None:
        self._value = self._value[:self._cursor] + text + self._value[self._cursor:]
        self._cursor += len(text)

    def _backspace(self) -> None:
        self._typing = False
        if self._cursor > 0:
            self._push_undo()
            graphemes = segment_graphemes(self._value[:self._cursor])
            length = len(graphemes[-1]) if graphemes else 1
            self._value = self._value[:self._cursor - length] + self._value[self._cursor:]
            self._cursor -= length

    def _forward_delete(self) -> None:
        self._typing = False
        if self._cursor < len(self._value):
            self._push_undo()
            graphemes = segment_graphemes(self._value[self._cursor:])
            length = len(graphemes[0]) if graphemes else 1
            self._value = self._value[:self._cursor] + self._value[self._cursor + length:]

    def _push_undo(self) -> None:
        self._undo_stack.push(_InputState(self._value, self._cursor))

    def _word_left(self) -> None:
        self._typing = False
        graphemes = segment_graphemes(self._value[:self._cursor])
        while graphemes and is_whitespace_char(graphemes[-1]):
            self._cursor -= len(graphemes.pop())
        if graphemes and is_punctuation_char(graphemes[-1]):
            while graphemes and is_punctuation_char(graphemes[-1]):
                self._cursor -= len(graphemes.pop())
        else:
            while graphemes and not is_whitespace_char(graphemes[-1]) and not is_punctuation_char(graphemes[-1]):
                self._cursor -= len(graphemes.pop())

    def _word_right(self) -> None:
        self._typing = False
        graphemes = segment_graphemes(self._value[self._cursor:])
        idx = 0
        while idx < len(graphemes) and is_whitespace_char(graphemes[idx]):
            self._cursor += len(graphemes[idx])
            idx += 1
        punct = idx < len(graphemes) and is_punctuation_char(graphemes[idx])
        while idx < len(graphemes) and not is_whitespace_char(graphemes[idx]):
            if is_punctuation_char(graphemes[idx]) != punct:
                break
            self._cursor += len(graphemes[idx])
            idx += 1

    # ── Rendering ────────────────────────────────────────────────────────────

    def render_line(self, width: int, focused: bool = True, style: Style | None = None) -> tuple[Line, int | None]:
        """
        Render into one line of ``width`` columns.

        Returns the line and the cursor column (None when not focused). The
        visible window scrolls so the cursor always stays on screen.
        """
        prompt = (Span(self.prompt, Style(bold=True)),) if self.prompt else ()
        available = width - visible_width(self.prompt)
        if available <= 0:
            return prompt, None

        text_style = style or Style()
        if not self._value and not focused and self.placeholder:
            return prompt + (Span(self.placeholder[:available], _PLACEHOLDER_STYLE),), None

        graphemes = segment_graphemes(self._value)
        # grapheme index of the cursor
        pos, consumed = 0, 0
        while pos < len(graphemes) and consumed < self._cursor:
            consumed += len(graphemes[pos])
            pos += 1

        # leave a column for the cursor block at end of line
        window = available - 1
        start = 0
        widths = [visible_width(g) for g in graphemes]
        while sum(widths[start:pos]) > window:
            start += 1
        end = start
        used = 0
        while end < len(graphemes) and used + widths[end] <= available:
            used += widths[end]
            end += 1

        before = "".join(graphemes[start:pos])
        spans = [Span(before, text_style)] if before else []
        if focused:
            at = graphemes[pos] if pos < end else " "
            spans.append(Span(at, text_style.patch(_CURSOR_STYLE)))
            after = "".join(graphemes[pos + 1:end])
        else:
            after = "".join(graphemes[pos:end])
        if after:
            spans.append(Span(after, text_style))
        cursor_col = visible_width(self.prompt) + visible_width(before) if focused else None
        return prompt + tuple(spans), cursor_col

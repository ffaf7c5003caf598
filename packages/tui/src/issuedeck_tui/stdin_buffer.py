"""
StdinBuffer: splits raw terminal input into complete key sequences.

Handles partial escape sequences that arrive across reads and reassembles
bracketed paste (ESC[200~ … ESC[201~) into a single PasteEvent.
"""
from __future__ import annotations

import re
import threading
from typing import Callable

from .events import InputEvent, KeyEvent, PasteEvent

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


# ─────────────────────────────────────────────────────────────────────────────
# Sequence completeness detection
# ─────────────────────────────────────────────────────────────────────────────

def _csi_complete(data: str) -> bool:
    if len(data) < 3:
        return False
    payload = data[2:]
    if not 0x40 <= ord(payload[-1]) <= 0x7e:
        return False
    if payload.startswith("<"):
        return bool(_SGR_MOUSE_RE.match(payload))
    return True


def _is_complete(data: str) -> bool:
    """Whether an escape-prefixed candidate forms a whole sequence."""
    if len(data) == 1:
        return False
    lead = data[1]
    if lead == "[":
        if data.startswith(ESC + "[M"):
            return len(data) >= 6
        return _csi_complete(data)
    if lead == "]":
        return data.endswith(ESC + "\\") or data.endswith("\x07")
    if lead in ("P", "_"):
        return data.endswith(ESC + "\\")
    if lead == "O":
        return len(data) >= 3
    # ESC + one char is an alt-modified key
    return True


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split ``buffer`` into complete sequences plus an incomplete remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue
        end = pos + 1
        while end <= len(buffer):
            if _is_complete(buffer[pos:end]):
                break
            end += 1
        else:
            return sequences, buffer[pos:]
        sequences.append(buffer[pos:end])
        pos = end
    return sequences, ""


# ─────────────────────────────────────────────────────────────────────────────
# StdinBuffer
# ─────────────────────────────────────────────────────────────────────────────

class StdinBuffer:
    """
    Buffers stdin input and emits complete events via ``on_event``.

    A lone ESC is ambiguous (escape key or the start of a sequence); it is
    held for ``timeout_ms`` and then flushed as the escape key.
    """

    def __init__(self, on_event: Callable[[InputEvent], None], timeout_ms: int = 10) -> None:
        self._on_event = on_event
        self._timeout_ms = timeout_ms
        self._buffer = ""
        self._paste: str | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _cancel_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
            self._timer = None

    def process(self, data: str | bytes) -> None:
        """Feed input data into the buffer."""
        if isinstance(data, bytes):
            if len(data) == 1 and data[0] > 127:
                # high-bit meta encoding
                data = ESC + chr(data[0] - 128)
            else:
                data = data.decode("utf-8", errors="replace")
        with self._lock:
            self._cancel_timer()
            events = self._consume(self._buffer + data)
            if self._buffer:
                self._timer = threading.Timer(self._timeout_ms / 1000.0, self._flush_timer)
                self._timer.daemon = True
                self._timer.start()
        for event in events:
            self._on_event(event)

    def _consume(self, text: str) -> list[InputEvent]:
        events: list[InputEvent] = []
        self._buffer = ""
        while text:
            if self._paste is not None:
                end = (self._paste + text).find(BRACKETED_PASTE_END)
                if end == -1:
                    self._paste += text
                    return events
                joined = self._paste + text
                events.append(PasteEvent(joined[:end]))
                self._paste = None
                text = joined[end + len(BRACKETED_PASTE_END):]
                continue

            start = text.find(BRACKETED_PASTE_START)
            head = text if start == -1 else text[:start]
            seqs, remainder = split_sequences(head)
            events.extend(KeyEvent.from_sequence(s) for s in seqs)
            if start == -1:
                self._buffer = remainder
                return events
            self._paste = ""
            text = text[start + len(BRACKETED_PASTE_START):]
        return events

    def _flush_timer(self) -> None:
        for event in self.flush():
            self._on_event(event)

    def flush(self) -> list[InputEvent]:
        """Flush pending input, returning it as key events."""
        with self._lock:
            self._cancel_timer()
            if not self._buffer:
                return []
            pending, self._buffer = self._buffer, ""
        # an unterminated sequence is delivered as ESC followed by its characters
        return [KeyEvent.from_sequence(ESC)] + [KeyEvent.from_sequence(c) for c in pending[1:]]

    def clear(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._buffer = ""
            self._paste = None

    @property
    def pending(self) -> str:
        return self._buffer

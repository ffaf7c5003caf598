"""Input events delivered by the terminal collaborator."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .keys import is_printable, parse_key


@dataclass(frozen=True)
class KeyEvent:
    """One complete key sequence. ``key`` is the parsed key id, if known."""
    data: str
    key: str | None = None

    @classmethod
    def from_sequence(cls, data: str) -> "KeyEvent":
        return cls(data, parse_key(data))

    @property
    def is_printable(self) -> bool:
        return is_printable(self.data)

    @property
    def char(self) -> str | None:
        return self.data if self.is_printable else None


@dataclass(frozen=True)
class PasteEvent:
    text: str


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    rows: int


InputEvent = Union[KeyEvent, PasteEvent]
TerminalEvent = Union[KeyEvent, PasteEvent, ResizeEvent]

"""Messages consumed by the App's event loop, in arrival order."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from issuedeck_tui.events import KeyEvent, PasteEvent, ResizeEvent

from .errors import FetchFailed, MutationFailed


@dataclass(frozen=True)
class Tick:
    """Spinner animation step; only sent while something is pending."""


@dataclass(frozen=True)
class FetchCompleted:
    target: str
    generation: int
    payload: Any = None
    error: FetchFailed | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MutationCompleted:
    """A write finished. ``refetch`` lists targets to reload on success."""
    origin: str
    payload: Any = None
    error: MutationFailed | None = None
    refetch: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Quit:
    pass


Message = Union[KeyEvent, PasteEvent, ResizeEvent, Tick, FetchCompleted, MutationCompleted, Quit]

"""Bounded undo stack for editor snapshots."""
from __future__ import annotations

import copy
from typing import Generic, TypeVar

S = TypeVar("S")


class UndoStack(Generic[S]):
    """
    Undo stack with clone-on-push semantics.

    Pushed states are deep-copied so later edits never reach a snapshot.
    When ``max_depth`` is exceeded the oldest snapshot is dropped.
    """

    def __init__(self, max_depth: int = 200) -> None:
        self._stack: list[S] = []
        self._max_depth = max_depth

    def push(self, state: S) -> None:
        self._stack.append(copy.deepcopy(state))
        if len(self._stack) > self._max_depth:
            del self._stack[0]

    def pop(self) -> S | None:
        """Pop and return the most recent snapshot, or None if empty."""
        return self._stack.pop() if self._stack else None

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)

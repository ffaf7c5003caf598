"""Focus errors raised by the FocusTree.

Both signal a programmer or state error: callers catch them at the widget
boundary, log them, and keep the previous focus.
"""
from __future__ import annotations


class FocusError(Exception):
    """Base class for focus-routing errors."""

    def __init__(self, node_id: str, message: str) -> None:
        super().__init__(message)
        self.node_id = node_id


class InvalidFocusTarget(FocusError):
    """The node is not part of the tree, or is itself invisible."""

    def __init__(self, node_id: str, reason: str = "not in the focus tree") -> None:
        super().__init__(node_id, f"cannot focus {node_id!r}: {reason}")
        self.reason = reason


class FocusUnreachable(FocusError):
    """An ancestor of the node is hidden."""

    def __init__(self, node_id: str, hidden_ancestor: str) -> None:
        super().__init__(node_id, f"cannot focus {node_id!r}: ancestor {hidden_ancestor!r} is hidden")
        self.hidden_ancestor = hidden_ancestor

"""
FocusTree / InputRouter.

The tree is an arena: nodes live in a dict keyed by stable string ids and
refer to each other by id only. Exactly one node is active at any time; it is
always visible and every ancestor on its path from the root is visible.

Input routing:

    root ─ details ─ editor*      (* = active)

``dispatch`` walks the path root → active. Ancestors may ``intercept`` an
event (global shortcuts, screen-level navigation) before it reaches the
active node, outermost first. A node with ``captures_input`` cuts that off:
no ancestor above it sees any event, so a capturing text editor receives
``j`` as a literal character rather than as "scroll down".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Protocol, runtime_checkable

from .errors import InvalidFocusTarget, FocusUnreachable
from .events import InputEvent
from .style import Line

logger = logging.getLogger(__name__)

ROOT = "root"


# ─────────────────────────────────────────────────────────────────────────────
# Widget capability interface
# ─────────────────────────────────────────────────────────────────────────────

@runtime_checkable
class Widget(Protocol):
    """Anything that can sit on a FocusNode and/or own a screen region."""

    def handle_input(self, event: InputEvent, context: Any) -> bool:
        """Handle an event delivered to this widget; True if it was consumed."""
        ...

    def render(self, width: int, height: int, context: Any) -> list[Line]:
        """Styled lines for a region of the given size."""
        ...

    def is_dirty(self) -> bool:
        ...


@runtime_checkable
class Interceptor(Protocol):
    """A widget that may claim events on their way to a descendant."""

    def intercept(self, event: InputEvent, context: Any) -> bool:
        ...


@dataclass
class FocusNode:
    id: str
    parent: str | None
    children: list[str] = field(default_factory=list)
    captures_input: bool = False
    visible: bool = True
    widget: Widget | None = None


# ─────────────────────────────────────────────────────────────────────────────
# FocusTree
# ─────────────────────────────────────────────────────────────────────────────

class FocusTree:
    """Arena-backed focus hierarchy with a single active node."""

    def __init__(self, on_dirty: Callable[[str], None] | None = None) -> None:
        self._nodes: dict[str, FocusNode] = {ROOT: FocusNode(ROOT, None)}
        self._active = ROOT
        self.on_dirty = on_dirty

    # ── Structure ────────────────────────────────────────────────────────────

    def add(
        self,
        node_id: str,
        parent: str = ROOT,
        widget: Widget | None = None,
        visible: bool = True,
        index: int | None = None,
    ) -> FocusNode:
        if node_id in self._nodes:
            raise ValueError(f"duplicate focus node id: {node_id!r}")
        parent_node = self._nodes.get(parent)
        if parent_node is None:
            raise InvalidFocusTarget(parent, "parent is not in the focus tree")
        node = FocusNode(node_id, parent, visible=visible, widget=widget)
        self._nodes[node_id] = node
        if index is None:
            parent_node.children.append(node_id)
        else:
            parent_node.children.insert(index, node_id)
        return node

    def remove(self, node_id: str) -> None:
        """Remove a node and its subtree; focus inside it moves to its parent."""
        if node_id == ROOT:
            raise ValueError("the root node cannot be removed")
        node = self.node(node_id)
        if self.is_descendant(self._active, node_id):
            self._change_active(node.parent)
        self._nodes[node.parent].children.remove(node_id)
        for nid in list(self.walk(node_id)):
            del self._nodes[nid]

    def node(self, node_id: str) -> FocusNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise InvalidFocusTarget(node_id) from None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def walk(self, start: str = ROOT) -> Iterator[str]:
        """Node ids of the subtree at ``start`` in tree (pre-)order."""
        stack = [start]
        while stack:
            nid = stack.pop()
            yield nid
            stack.extend(reversed(self._nodes[nid].children))

    def path(self, node_id: str) -> list[str]:
        """Ids from the root down to ``node_id`` inclusive."""
        chain: list[str] = []
        cur: str | None = node_id
        while cur is not None:
            chain.append(cur)
            cur = self.node(cur).parent
        chain.reverse()
        return chain

    def is_descendant(self, node_id: str, ancestor: str) -> bool:
        """True if ``ancestor`` is on the path to ``node_id`` (a node is its own descendant)."""
        return ancestor in self.path(node_id)

    def is_reachable(self, node_id: str) -> bool:
        return node_id in self._nodes and all(self._nodes[n].visible for n in self.path(node_id))

    # ── Visibility ───────────────────────────────────────────────────────────

    def set_visible(self, node_id: str, visible: bool) -> None:
        node = self.node(node_id)
        if node_id == ROOT and not visible:
            raise ValueError("the root node cannot be hidden")
        if node.visible == visible:
            return
        if not visible and self.is_descendant(self._active, node_id):
            self._change_active(node.parent)
        node.visible = visible
        self._mark_dirty(node_id)

    # ── Focus ────────────────────────────────────────────────────────────────

    @property
    def active(self) -> str:
        return self._active

    @property
    def active_node(self) -> FocusNode:
        return self._nodes[self._active]

    def set_active(self, node_id: str) -> None:
        """
        Make ``node_id`` the active node.

        Raises InvalidFocusTarget for unknown or invisible nodes and
        FocusUnreachable when an ancestor is hidden; focus is unchanged then.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise InvalidFocusTarget(node_id)
        if not node.visible:
            raise InvalidFocusTarget(node_id, "node is hidden")
        for ancestor in self.path(node_id)[:-1]:
            if not self._nodes[ancestor].visible:
                raise FocusUnreachable(node_id, ancestor)
        self._change_active(node_id)

    def focus_next(self) -> str:
        return self._cycle(1)

    def focus_prev(self) -> str:
        return self._cycle(-1)

    def _cycle(self, step: int) -> str:
        current = self.active_node
        if current.parent is None:
            return self._active
        siblings = self._nodes[current.parent].children
        candidates = [
            sid for sid in siblings
            if sid == self._active
            or (self._nodes[sid].visible and not self._nodes[sid].captures_input)
        ]
        if len(candidates) > 1:
            pos = candidates.index(self._active)
            self._change_active(candidates[(pos + step) % len(candidates)])
        return self._active

    def _change_active(self, node_id: str) -> None:
        previous = self._active
        if previous == node_id:
            return
        self._active = node_id
        logger.debug("focus %s -> %s", previous, node_id)
        self._mark_dirty(previous)
        self._mark_dirty(node_id)

    # ── Capture ──────────────────────────────────────────────────────────────

    def capture(self, node_id: str) -> None:
        node = self.node(node_id)
        if not node.captures_input:
            node.captures_input = True
            self._mark_dirty(node_id)

    def release(self, node_id: str) -> None:
        node = self.node(node_id)
        if node.captures_input:
            node.captures_input = False
            self._mark_dirty(node_id)

    def capturing_node(self) -> str | None:
        """The deepest capturing node on the active path, if any."""
        for nid in reversed(self.path(self._active)):
            if self._nodes[nid].captures_input:
                return nid
        return None

    # ── Dispatch ─────────────────────────────────────────────────────────────

    def dispatch(self, event: InputEvent, context: Any = None) -> str | None:
        """
        Deliver ``event`` to exactly one node and return its id.

        Returns None when the event is dropped (no widget to receive it).
        """
        chain = self.path(self._active)
        capturing = self.capturing_node()
        start = chain.index(capturing) if capturing is not None else 0
        for nid in chain[start:-1]:
            widget = self._nodes[nid].widget
            if isinstance(widget, Interceptor) and widget.intercept(event, context):
                return nid
        widget = self.active_node.widget
        if widget is None:
            logger.debug("dropped %r: active node %s has no widget", event, self._active)
            return None
        widget.handle_input(event, context)
        return self._active

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _mark_dirty(self, node_id: str) -> None:
        if self.on_dirty is not None:
            self.on_dirty(node_id)

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the tree, for assertions and debugging."""
        return {
            "active": self._active,
            "nodes": {
                nid: {
                    "parent": n.parent,
                    "children": list(n.children),
                    "captures_input": n.captures_input,
                    "visible": n.visible,
                }
                for nid, n in self._nodes.items()
            },
        }

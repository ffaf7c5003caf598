"""
Issue-tracker data model.

All models are frozen: widgets hold references to the instances the fetch
layer produced and replace them wholesale when a refetch lands.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from issuedeck_tui.style import parse_hex_color

_FROZEN = ConfigDict(frozen=True)


class User(BaseModel):
    model_config = _FROZEN

    login: str


class Label(BaseModel):
    model_config = _FROZEN

    id: int = 0
    name: str
    color: str = "ededed"
    description: str | None = None

    @property
    def rgb(self) -> tuple[int, int, int]:
        return parse_hex_color(self.color) or (0xED, 0xED, 0xED)


# ─── Reactions ───────────────────────────────────────────────────────────────

class ReactionKind(str, Enum):
    PLUS_ONE = "+1"
    MINUS_ONE = "-1"
    LAUGH = "laugh"
    HOORAY = "hooray"
    CONFUSED = "confused"
    HEART = "heart"
    ROCKET = "rocket"
    EYES = "eyes"

    @property
    def glyph(self) -> str:
        return _REACTION_GLYPHS[self]


_REACTION_GLYPHS = {
    ReactionKind.PLUS_ONE: "👍",
    ReactionKind.MINUS_ONE: "👎",
    ReactionKind.LAUGH: "😄",
    ReactionKind.HOORAY: "🎉",
    ReactionKind.CONFUSED: "😕",
    ReactionKind.HEART: "❤️",
    ReactionKind.ROCKET: "🚀",
    ReactionKind.EYES: "👀",
}


class Reaction(BaseModel):
    """One reaction as the tracker reports it (needed to delete it again)."""
    model_config = _FROZEN

    id: int
    kind: ReactionKind
    user: str


class ReactionSummary(BaseModel):
    model_config = _FROZEN

    counts: dict[ReactionKind, int] = Field(default_factory=dict)
    viewer_reacted: frozenset[ReactionKind] = frozenset()
    # reaction id per kind for the viewer's own reactions
    viewer_ids: dict[ReactionKind, int] = Field(default_factory=dict)

    @classmethod
    def from_reactions(cls, reactions: list[Reaction], viewer: str | None) -> "ReactionSummary":
        counts: dict[ReactionKind, int] = {}
        mine: dict[ReactionKind, int] = {}
        for r in reactions:
            counts[r.kind] = counts.get(r.kind, 0) + 1
            if viewer is not None and r.user == viewer:
                mine[r.kind] = r.id
        return cls(counts=counts, viewer_reacted=frozenset(mine), viewer_ids=mine)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


# ─── Issues and comments ─────────────────────────────────────────────────────

class Comment(BaseModel):
    model_config = _FROZEN

    id: int
    author: str
    body: str = ""
    created_at: datetime
    reactions: ReactionSummary = Field(default_factory=ReactionSummary)
    editable: bool = False


IssueState = Literal["open", "closed"]


class Issue(BaseModel):
    model_config = _FROZEN

    number: int
    title: str
    body: str = ""
    state: IssueState = "open"
    author: str = ""
    created_at: datetime
    labels: tuple[Label, ...] = ()
    assignees: tuple[str, ...] = ()
    comments_count: int = 0
    reactions: ReactionSummary = Field(default_factory=ReactionSummary)

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @property
    def label_names(self) -> frozenset[str]:
        return frozenset(label.name for label in self.labels)


class ReactionTarget(BaseModel):
    model_config = _FROZEN

    kind: Literal["issue", "comment"]
    id: int

    @property
    def target_id(self) -> str:
        return f"reactions-{self.kind}-{self.id}"


# ─── REST payload conversion ─────────────────────────────────────────────────

def _summary(payload: dict[str, Any]) -> ReactionSummary:
    """Counts from the ``reactions`` rollup GitHub embeds in issues and comments."""
    rollup = payload.get("reactions") or {}
    counts = {kind: int(rollup.get(kind.value) or 0) for kind in ReactionKind}
    return ReactionSummary(counts={k: v for k, v in counts.items() if v})


def label_from_api(payload: dict[str, Any]) -> Label:
    return Label(
        id=payload.get("id") or 0,
        name=payload["name"],
        color=payload.get("color") or "ededed",
        description=payload.get("description"),
    )


def issue_from_api(payload: dict[str, Any]) -> Issue:
    return Issue(
        number=payload["number"],
        title=payload.get("title") or "",
        body=payload.get("body") or "",
        state="closed" if payload.get("state") == "closed" else "open",
        author=(payload.get("user") or {}).get("login", ""),
        created_at=payload["created_at"],
        labels=tuple(label_from_api(lbl) for lbl in payload.get("labels") or []),
        assignees=tuple(a["login"] for a in payload.get("assignees") or []),
        comments_count=payload.get("comments") or 0,
        reactions=_summary(payload),
    )


def comment_from_api(payload: dict[str, Any], viewer: str | None = None) -> Comment:
    author = (payload.get("user") or {}).get("login", "")
    return Comment(
        id=payload["id"],
        author=author,
        body=payload.get("body") or "",
        created_at=payload["created_at"],
        reactions=_summary(payload),
        editable=viewer is not None and author == viewer,
    )


def reaction_from_api(payload: dict[str, Any]) -> Reaction:
    return Reaction(
        id=payload["id"],
        kind=ReactionKind(payload["content"]),
        user=(payload.get("user") or {}).get("login", ""),
    )

"""
Fetch target ids.

Every loadable resource has a string id; the fetch coordinator keeps one
generation counter per id and the App maps ids to screen regions.

    issues                  current search results
    labels                  repository labels
    viewer                  the authenticated user
    issue-<n>               one issue
    comments-<n>            comments of issue n
    reactions-issue-<n>     reactions on issue n
    reactions-comment-<id>  reactions on a comment
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .errors import UnknownTarget
from .github import TrackerClient
from .models import ReactionTarget

ISSUES = "issues"
LABELS = "labels"
VIEWER = "viewer"

_NUMBERED_RE = re.compile(r"^(issue|comments|reactions-issue|reactions-comment)-(\d+)$")

Loader = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Target:
    kind: str
    number: int | None = None


def issue_target(number: int) -> str:
    return f"issue-{number}"


def comments_target(number: int) -> str:
    return f"comments-{number}"


def reactions_target(subject: ReactionTarget) -> str:
    return subject.target_id


def parse_target(target_id: str) -> Target:
    if target_id in (ISSUES, LABELS, VIEWER):
        return Target(target_id)
    m = _NUMBERED_RE.match(target_id)
    if m is None:
        raise UnknownTarget(target_id)
    return Target(m.group(1), int(m.group(2)))


def resolve_target(
    client: TrackerClient,
    target_id: str,
    search: tuple[str, str, str] = ("", "", "Open"),
) -> Loader:
    """
    Coroutine factory that loads ``target_id``.

    ``search`` is the (text, labels, state) triple used for the ``issues``
    target; it is captured now so a later edit of the search bar never
    changes what an in-flight request fetches.
    """
    target = parse_target(target_id)
    n = target.number
    if target.kind == ISSUES:
        text, labels, state = search
        return lambda: client.search_issues(text, labels, state)
    if target.kind == LABELS:
        return client.list_labels
    if target.kind == VIEWER:
        return client.current_user
    if n is None:
        raise UnknownTarget(target_id)
    if target.kind == "issue":
        return lambda: client.fetch_issue(n)
    if target.kind == "comments":
        return lambda: client.fetch_comments(n)
    if target.kind == "reactions-issue":
        return lambda: client.fetch_reactions(ReactionTarget(kind="issue", id=n))
    return lambda: client.fetch_reactions(ReactionTarget(kind="comment", id=n))

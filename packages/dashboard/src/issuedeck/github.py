"""
Issue-tracker client.

TrackerClient is the boundary the rest of the dashboard talks to; every
method is a coroutine and every failure surfaces as TrackerError.
GitHubClient implements it over the GitHub REST API with httpx.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol, runtime_checkable

import httpx

from .config import DEFAULT_API_URL, VERSION
from .errors import TrackerError
from .models import (
    Comment,
    Issue,
    Label,
    Reaction,
    ReactionKind,
    ReactionTarget,
    User,
    comment_from_api,
    issue_from_api,
    label_from_api,
    reaction_from_api,
)

logger = logging.getLogger(__name__)

PER_PAGE = 100
STATE_CHOICES: tuple[str, ...] = ("Open", "Closed", "All")


@runtime_checkable
class TrackerClient(Protocol):
    async def current_user(self) -> User: ...
    async def search_issues(self, text: str = "", labels: str = "", state: str = "Open") -> list[Issue]: ...
    async def fetch_issue(self, number: int) -> Issue: ...
    async def fetch_comments(self, number: int) -> list[Comment]: ...
    async def post_comment(self, number: int, body: str) -> Comment: ...
    async def list_labels(self) -> list[Label]: ...
    async def create_label(self, name: str, color: str) -> Label: ...
    async def set_labels(self, number: int, names: Iterable[str]) -> list[Label]: ...
    async def fetch_reactions(self, target: ReactionTarget) -> list[Reaction]: ...
    async def add_reaction(self, target: ReactionTarget, kind: ReactionKind) -> Reaction: ...
    async def remove_reaction(self, target: ReactionTarget, kind: ReactionKind) -> None: ...
    async def set_assignees(self, number: int, logins: Iterable[str]) -> Issue: ...
    async def close(self, number: int) -> Issue: ...
    async def reopen(self, number: int) -> Issue: ...
    async def aclose(self) -> None: ...


def build_search_query(owner: str, repo: str, text: str = "", labels: str = "", state: str = "Open") -> str:
    """
    Search query in GitHub's syntax.

    ``labels`` is a ``;``-separated list, each entry becoming a ``label:``
    term; ``state`` is one of STATE_CHOICES ("All" adds no state term).
    """
    parts = [text.strip()] if text.strip() else []
    parts.extend(f"label:{name.strip()}" for name in labels.split(";") if name.strip())
    if state.lower() in ("open", "closed"):
        parts.append(f"is:{state.lower()}")
    parts.append(f"repo:{owner}/{repo}")
    parts.append("is:issue")
    return " ".join(parts)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        message = str(payload.get("message") or response.reason_phrase)
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            details = [e.get("message") or e.get("code", "") for e in errors if isinstance(e, dict)]
            details = [d for d in details if d]
            if details:
                message += " (" + ", ".join(details) + ")"
        return message
    return response.reason_phrase


class GitHubClient:
    """TrackerClient over the GitHub REST API for one repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.viewer: str | None = None
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"issuedeck/{VERSION}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TrackerError(None, str(exc) or type(exc).__name__) from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("%s %s -> %d %s", method, path, response.status_code, message)
            raise TrackerError(response.status_code, message)
        logger.debug("%s %s -> %d", method, path, response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ── Reads ────────────────────────────────────────────────────────────────

    async def current_user(self) -> User:
        data = await self._request("GET", "/user")
        user = User(login=data["login"])
        self.viewer = user.login
        return user

    async def search_issues(self, text: str = "", labels: str = "", state: str = "Open") -> list[Issue]:
        query = build_search_query(self.owner, self.repo, text, labels, state)
        logger.info("searching: %s", query)
        data = await self._request(
            "GET",
            "/search/issues",
            params={"q": query, "sort": "created", "order": "desc", "per_page": PER_PAGE},
        )
        return [issue_from_api(item) for item in data.get("items", [])]

    async def fetch_issue(self, number: int) -> Issue:
        return issue_from_api(await self._request("GET", f"{self._repo_path}/issues/{number}"))

    async def fetch_comments(self, number: int) -> list[Comment]:
        data = await self._request(
            "GET", f"{self._repo_path}/issues/{number}/comments", params={"per_page": PER_PAGE, "page": 1},
        )
        return [comment_from_api(item, self.viewer) for item in data]

    async def list_labels(self) -> list[Label]:
        data = await self._request("GET", f"{self._repo_path}/labels", params={"per_page": PER_PAGE})
        return [label_from_api(item) for item in data]

    async def fetch_reactions(self, target: ReactionTarget) -> list[Reaction]:
        data = await self._request("GET", self._reactions_path(target), params={"per_page": PER_PAGE})
        return [reaction_from_api(item) for item in data]

    # ── Writes ───────────────────────────────────────────────────────────────

    async def post_comment(self, number: int, body: str) -> Comment:
        data = await self._request("POST", f"{self._repo_path}/issues/{number}/comments", json={"body": body})
        return comment_from_api(data, self.viewer)

    async def create_label(self, name: str, color: str) -> Label:
        data = await self._request(
            "POST", f"{self._repo_path}/labels", json={"name": name, "color": color.lstrip("#")},
        )
        return label_from_api(data)

    async def set_labels(self, number: int, names: Iterable[str]) -> list[Label]:
        data = await self._request(
            "PUT", f"{self._repo_path}/issues/{number}/labels", json={"labels": sorted(names)},
        )
        return [label_from_api(item) for item in data]

    async def add_reaction(self, target: ReactionTarget, kind: ReactionKind) -> Reaction:
        data = await self._request("POST", self._reactions_path(target), json={"content": kind.value})
        return reaction_from_api(data)

    async def remove_reaction(self, target: ReactionTarget, kind: ReactionKind) -> None:
        """Delete the viewer's ``kind`` reaction; a no-op if there is none."""
        viewer = self.viewer or (await self.current_user()).login
        for reaction in await self.fetch_reactions(target):
            if reaction.kind == kind and reaction.user == viewer:
                await self._request("DELETE", f"{self._reactions_path(target)}/{reaction.id}")
                return
        logger.info("no %s reaction by %s on %s", kind.value, viewer, target.target_id)

    async def set_assignees(self, number: int, logins: Iterable[str]) -> Issue:
        return await self._patch_issue(number, {"assignees": sorted(logins)})

    async def close(self, number: int) -> Issue:
        return await self._patch_issue(number, {"state": "closed"})

    async def reopen(self, number: int) -> Issue:
        return await self._patch_issue(number, {"state": "open"})

    async def _patch_issue(self, number: int, body: dict[str, Any]) -> Issue:
        return issue_from_api(await self._request("PATCH", f"{self._repo_path}/issues/{number}", json=body))

    def _reactions_path(self, target: ReactionTarget) -> str:
        if target.kind == "issue":
            return f"{self._repo_path}/issues/{target.id}/reactions"
        return f"{self._repo_path}/issues/comments/{target.id}/reactions"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

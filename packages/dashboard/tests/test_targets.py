"""Tests for issuedeck.targets and region routing"""
import pytest

from fakes import FakeTracker, make_comment, make_issue
from issuedeck.context import regions_for
from issuedeck.errors import UnknownTarget
from issuedeck.models import ReactionTarget
from issuedeck.targets import (
    ISSUES,
    LABELS,
    VIEWER,
    Target,
    comments_target,
    issue_target,
    parse_target,
    reactions_target,
    resolve_target,
)


class TestParseTarget:
    @pytest.mark.parametrize("target_id, expected", [
        ("issues", Target("issues")),
        ("labels", Target("labels")),
        ("viewer", Target("viewer")),
        ("issue-42", Target("issue", 42)),
        ("comments-7", Target("comments", 7)),
        ("reactions-issue-7", Target("reactions-issue", 7)),
        ("reactions-comment-99", Target("reactions-comment", 99)),
    ])
    def test_known(self, target_id, expected):
        assert parse_target(target_id) == expected

    @pytest.mark.parametrize("target_id", ["", "issue-", "issue-x", "pulls-3", "reactions-7"])
    def test_unknown(self, target_id):
        with pytest.raises(UnknownTarget):
            parse_target(target_id)

    def test_builders(self):
        assert issue_target(4) == "issue-4"
        assert comments_target(4) == "comments-4"
        assert reactions_target(ReactionTarget(kind="comment", id=4)) == "reactions-comment-4"


class TestResolveTarget:
    @pytest.mark.asyncio
    async def test_loaders_call_the_client(self):
        tracker = FakeTracker(issues=[make_issue(7)], comments={7: [make_comment(1, "hi")]})
        assert (await resolve_target(tracker, "issue-7")()).number == 7
        assert [c.body for c in await resolve_target(tracker, "comments-7")()] == ["hi"]
        assert (await resolve_target(tracker, VIEWER)()).login == "octocat"
        assert len(await resolve_target(tracker, LABELS)()) == 3
        await resolve_target(tracker, "reactions-comment-1")()
        assert tracker.calls[-1] == ("fetch_reactions", "reactions-comment-1")

    @pytest.mark.asyncio
    async def test_issues_loader_uses_search_triple(self):
        tracker = FakeTracker()
        loader = resolve_target(tracker, ISSUES, ("crash", "bug", "All"))
        assert tracker.calls == []
        await loader()
        assert tracker.calls == [("search_issues", "crash", "bug", "All")]


class TestRegions:
    @pytest.mark.parametrize("target, regions", [
        (ISSUES, {"issues", "status"}),
        (LABELS, {"label_picker"}),
        (VIEWER, {"status", "conversation"}),
        ("issue-3", {"conversation", "issues"}),
        ("comments-3", {"conversation"}),
        ("reactions-issue-3", {"conversation", "reaction_picker"}),
        ("reactions-comment-3", {"conversation", "reaction_picker"}),
    ])
    def test_regions_for(self, target, regions):
        assert set(regions_for(target)) == regions

"""Tests for issuedeck.fetch (AsyncFetchCoordinator)"""
import asyncio
import random

import pytest

from issuedeck.errors import FetchFailed, MutationFailed
from issuedeck.fetch import AsyncFetchCoordinator, FetchStatus
from issuedeck.messages import FetchCompleted, MutationCompleted


def gated(gate: asyncio.Event, value):
    async def load():
        await gate.wait()
        return value
    return load


def immediate(value):
    async def load():
        return value
    return load


def failing(exc: Exception):
    async def load():
        raise exc
    return load


def no_resolver(target):
    raise AssertionError(f"resolver should not be used for {target}")


async def until(predicate, rounds: int = 200) -> None:
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestRequest:
    @pytest.mark.asyncio
    async def test_request_returns_immediately_with_pending_status(self):
        gate = asyncio.Event()
        coord = AsyncFetchCoordinator(no_resolver)
        generation = coord.request("issue-42", gated(gate, "x"))
        assert generation == 1
        assert coord.status("issue-42") == FetchStatus.PENDING
        assert coord.is_pending("issue-42")
        assert coord.any_pending()
        gate.set()
        await coord.aclose()

    @pytest.mark.asyncio
    async def test_generations_are_per_target(self):
        coord = AsyncFetchCoordinator(no_resolver)
        assert coord.request("issue-1", immediate(1)) == 1
        assert coord.request("issue-1", immediate(1)) == 2
        assert coord.request("issue-2", immediate(2)) == 1
        assert coord.generation("issue-1") == 2
        assert coord.generation("never") == 0
        await until(lambda: coord.in_flight == 0)

    @pytest.mark.asyncio
    async def test_resolver_supplies_loader(self):
        seen = []

        def resolver(target):
            seen.append(target)
            return immediate(f"loaded {target}")

        coord = AsyncFetchCoordinator(resolver)
        coord.request("labels")
        await until(lambda: coord.in_flight == 0)
        [result] = coord.poll_results()
        assert seen == ["labels"]
        assert result.payload == "loaded labels"


class TestStaleResults:
    @pytest.mark.asyncio
    async def test_superseded_result_is_discarded(self):
        # request issue-42 twice, then the first task completes
        first, second = asyncio.Event(), asyncio.Event()
        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("issue-42", gated(first, "old"))
        coord.request("issue-42", gated(second, "new"))

        first.set()
        await until(lambda: coord.in_flight == 1)
        assert coord.poll_results() == []
        assert coord.is_pending("issue-42")

        second.set()
        await until(lambda: coord.in_flight == 0)
        [result] = coord.poll_results()
        assert isinstance(result, FetchCompleted)
        assert result.payload == "new"
        assert result.generation == 2
        assert coord.status("issue-42") == FetchStatus.DONE

    @pytest.mark.asyncio
    async def test_late_old_result_after_current_one_is_a_noop(self):
        first, second = asyncio.Event(), asyncio.Event()
        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("issue-42", gated(first, "old"))
        coord.request("issue-42", gated(second, "new"))

        second.set()
        await until(lambda: coord.in_flight == 1)
        [result] = coord.poll_results()
        assert result.payload == "new"

        first.set()
        await until(lambda: coord.in_flight == 0)
        assert coord.poll_results() == []
        assert coord.status("issue-42") == FetchStatus.DONE

    @pytest.mark.asyncio
    async def test_settle_reports_stale_messages(self):
        received = []
        coord = AsyncFetchCoordinator(no_resolver, sink=received.append)
        first, second = asyncio.Event(), asyncio.Event()
        coord.request("issue-42", gated(first, "old"))
        coord.request("issue-42", gated(second, "new"))
        first.set()
        second.set()
        await until(lambda: len(received) == 2)
        applied = [m for m in received if coord.settle(m) is not None]
        assert [m.payload for m in applied] == ["new"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(8))
    async def test_only_latest_generation_applies_in_any_completion_order(self, seed):
        rng = random.Random(seed)
        received = []
        coord = AsyncFetchCoordinator(no_resolver, sink=received.append)
        gates = [asyncio.Event() for _ in range(6)]
        for i, gate in enumerate(gates):
            coord.request("comments-7", gated(gate, i))
        order = list(range(len(gates)))
        rng.shuffle(order)
        for i in order:
            gates[i].set()
            await asyncio.sleep(0)
        await until(lambda: len(received) == len(gates))
        applied = [m for m in received if coord.settle(m) is not None]
        assert len(applied) == 1
        assert applied[0].payload == len(gates) - 1
        assert applied[0].generation == len(gates)


class TestFailures:
    @pytest.mark.asyncio
    async def test_failure_becomes_fetch_failed(self):
        cause = RuntimeError("boom")
        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("issues", failing(cause))
        await until(lambda: coord.in_flight == 0)
        [result] = coord.poll_results()
        assert not result.ok
        assert isinstance(result.error, FetchFailed)
        assert result.error.target == "issues"
        assert result.error.cause is cause
        assert coord.status("issues") == FetchStatus.ERROR
        assert coord.error("issues") is result.error

    @pytest.mark.asyncio
    async def test_new_request_clears_error(self):
        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("issues", failing(RuntimeError("boom")))
        await until(lambda: coord.in_flight == 0)
        coord.poll_results()
        coord.request("issues", immediate([]))
        assert coord.error("issues") is None
        assert coord.is_pending("issues")
        await until(lambda: coord.in_flight == 0)
        coord.poll_results()
        assert coord.status("issues") == FetchStatus.DONE

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_mark_error(self):
        first, second = asyncio.Event(), asyncio.Event()

        async def fail_later():
            await first.wait()
            raise RuntimeError("old failure")

        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("labels", fail_later)
        coord.request("labels", gated(second, ["bug"]))
        first.set()
        await until(lambda: coord.in_flight == 1)
        assert coord.poll_results() == []
        assert coord.error("labels") is None
        second.set()
        await coord.aclose()


class TestMutations:
    @pytest.mark.asyncio
    async def test_success_carries_payload_and_refetch(self):
        received = []
        coord = AsyncFetchCoordinator(no_resolver, sink=received.append)
        coord.submit("comment_editor", immediate("posted"), refetch=("comments-3",))
        await until(lambda: received)
        [message] = received
        assert isinstance(message, MutationCompleted)
        assert message.ok
        assert message.origin == "comment_editor"
        assert message.payload == "posted"
        assert message.refetch == ("comments-3",)

    @pytest.mark.asyncio
    async def test_failure_becomes_mutation_failed(self):
        coord = AsyncFetchCoordinator(no_resolver)
        cause = ValueError("rejected")
        coord.submit("label_picker", failing(cause))
        await until(lambda: coord.in_flight == 0)
        [message] = coord.poll_results()
        assert not message.ok
        assert isinstance(message.error, MutationFailed)
        assert message.error.origin == "label_picker"
        assert message.error.cause is cause

    @pytest.mark.asyncio
    async def test_mutations_do_not_touch_fetch_status(self):
        coord = AsyncFetchCoordinator(no_resolver)
        coord.submit("details", immediate(None))
        assert not coord.any_pending()
        assert coord.in_flight == 1
        await until(lambda: coord.in_flight == 0)


class TestShutdown:
    @pytest.mark.asyncio
    async def test_aclose_cancels_outstanding_tasks(self):
        coord = AsyncFetchCoordinator(no_resolver)
        coord.request("issues", gated(asyncio.Event(), None))
        coord.submit("details", gated(asyncio.Event(), None))
        assert coord.in_flight == 2
        await coord.aclose()
        assert coord.in_flight == 0
        assert coord.poll_results() == []

"""
AsyncFetchCoordinator: non-blocking loads with last-request-wins semantics.

Each target id has a FetchRequest with a generation counter. ``request``
bumps the generation and starts a task; when the task finishes it posts a
FetchCompleted message carrying the generation it was started with.
``settle`` applies a message only if that generation is still the latest,
so a superseded task may run to completion but its result is inert.

Tasks never touch UI state. Their only output is the message they post.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from .errors import FetchFailed, MutationFailed
from .messages import FetchCompleted, Message, MutationCompleted

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]
Resolver = Callable[[str], Loader]
Sink = Callable[[Message], None]


class FetchStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


@dataclass
class FetchRequest:
    target: str
    generation: int = 0
    status: FetchStatus | None = None
    error: FetchFailed | None = None


class AsyncFetchCoordinator:
    """
    Issues background fetches and mutations on the running event loop.

    Completed work is delivered to ``sink`` (the App's queue) when one is
    given, otherwise it is buffered for ``poll_results``.
    """

    def __init__(self, resolver: Resolver, sink: Sink | None = None) -> None:
        self._resolver = resolver
        self._sink = sink
        self._requests: dict[str, FetchRequest] = {}
        self._tasks: set[asyncio.Task] = set()
        self._completed: deque[Message] = deque()

    # ── Fetches ──────────────────────────────────────────────────────────────

    def request(self, target: str, loader: Loader | None = None) -> int:
        """
        Start loading ``target``; returns the new generation immediately.

        A request already in flight for the same target is superseded.
        """
        load = loader or self._resolver(target)
        req = self._requests.get(target)
        if req is None:
            req = self._requests[target] = FetchRequest(target)
        req.generation += 1
        req.status = FetchStatus.PENDING
        req.error = None
        generation = req.generation
        logger.debug("fetch %s gen=%d", target, generation)
        self._spawn(self._run_fetch(target, generation, load), f"fetch:{target}:{generation}")
        return generation

    async def _run_fetch(self, target: str, generation: int, load: Loader) -> None:
        try:
            payload = await load()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("fetch %s gen=%d failed: %s", target, generation, exc)
            self._deliver(FetchCompleted(target, generation, error=FetchFailed(target, exc)))
            return
        self._deliver(FetchCompleted(target, generation, payload=payload))

    def settle(self, message: FetchCompleted) -> FetchCompleted | None:
        """
        Apply a completion to the request table.

        Returns the message when it is current, or None when it is stale
        (a newer request for the target has been issued since).
        """
        req = self._requests.get(message.target)
        if req is None or message.generation != req.generation:
            latest = req.generation if req else None
            logger.debug("stale %s gen=%d (latest %s) discarded", message.target, message.generation, latest)
            return None
        if message.ok:
            req.status = FetchStatus.DONE
            req.error = None
        else:
            req.status = FetchStatus.ERROR
            req.error = message.error
        return message

    def poll_results(self) -> list[Message]:
        """
        Drain buffered completions (sink-less mode).

        Current fetch results and all mutation results are returned in
        completion order; stale fetch results are dropped.
        """
        out: list[Message] = []
        while self._completed:
            message = self._completed.popleft()
            if isinstance(message, FetchCompleted):
                if self.settle(message) is None:
                    continue
            out.append(message)
        return out

    # ── Mutations ────────────────────────────────────────────────────────────

    def submit(
        self,
        origin: str,
        call: Callable[[], Awaitable[Any]],
        refetch: tuple[str, ...] = (),
    ) -> None:
        """Run a write in the background; the result arrives as MutationCompleted."""
        logger.debug("mutation from %s", origin)
        self._spawn(self._run_mutation(origin, call, refetch), f"mutation:{origin}")

    async def _run_mutation(self, origin: str, call: Callable[[], Awaitable[Any]], refetch: tuple[str, ...]) -> None:
        try:
            payload = await call()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("mutation from %s failed: %s", origin, exc)
            self._deliver(MutationCompleted(origin, error=MutationFailed(origin, exc), refetch=refetch))
            return
        self._deliver(MutationCompleted(origin, payload=payload, refetch=refetch))

    # ── Status ───────────────────────────────────────────────────────────────

    def status(self, target: str) -> FetchStatus | None:
        req = self._requests.get(target)
        return req.status if req else None

    def is_pending(self, target: str) -> bool:
        return self.status(target) == FetchStatus.PENDING

    def any_pending(self) -> bool:
        return any(r.status == FetchStatus.PENDING for r in self._requests.values())

    def pending_targets(self) -> list[str]:
        return [t for t, r in self._requests.items() if r.status == FetchStatus.PENDING]

    def error(self, target: str) -> FetchFailed | None:
        req = self._requests.get(target)
        return req.error if req else None

    def generation(self, target: str) -> int:
        req = self._requests.get(target)
        return req.generation if req else 0

    @property
    def in_flight(self) -> int:
        """Background tasks not yet finished (including superseded ones)."""
        return len(self._tasks)

    # ── Plumbing ─────────────────────────────────────────────────────────────

    def _spawn(self, coro: Awaitable[None], name: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)  # type: ignore[arg-type]
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _deliver(self, message: Message) -> None:
        if self._sink is not None:
            self._sink(message)
        else:
            self._completed.append(message)

    async def aclose(self) -> None:
        """Cancel outstanding tasks (shutdown only; superseding never cancels)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

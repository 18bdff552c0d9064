"""In-process serial lane with in-flight request coalescing.

Notes:
- Per-process only: running multiple workers multiplies the effective rate.
- Event-loop bound: the in-flight table and the chain tail are only touched
  from the loop thread, so no lock is taken.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import time
from collections.abc import Awaitable, Callable

from nif_lookup.adapters.rate_limit.base import AbstractLane, K, KeyedOperation, V
from nif_lookup.core.logging import clear_request_id

logger = logging.getLogger(__name__)


class RateLimitedLane(AbstractLane[K, V]):
    """Serialize calls to an async operation and coalesce identical keys.

    Every accepted call becomes one link of a single chain. A link starts its
    operation only after the previous link's operation finished and the
    cool-down that follows it elapsed, so the lane dispatches at most once per
    ``cooldown_seconds`` whatever the keys are.

    Callers asking for a key whose link has not settled yet share that link's
    outcome, value or exception alike. The key leaves the in-flight table the
    moment its outcome settles: this is request coalescing, not memoization.

    There is no queue bound; callers arriving while the lane is busy simply
    wait for their turn.
    """

    def __init__(
        self,
        operation: KeyedOperation[K, V],
        *,
        cooldown_seconds: float,
        name: str = "lane",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the lane.

        Args:
            operation: Async callable invoked once per dispatched key.
            cooldown_seconds: Minimum idle time between the end of one
                dispatch and the start of the next.
            name: Label used in log events.
            clock: Monotonic time source in seconds.
            sleep: Awaitable sleep used for the cool-down.

        Raises:
            ValueError: If cooldown_seconds is negative.
        """
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")

        self.name = name
        self._operation = operation
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._sleep = sleep
        self._in_flight: dict[K, asyncio.Future[V]] = {}
        self._tail: asyncio.Future[None] | None = None
        self._links: set[asyncio.Task[None]] = set()

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    @property
    def pending_keys(self) -> list[K]:
        """Keys whose outcome has not settled yet, in arrival order."""
        return list(self._in_flight)

    async def call(self, key: K) -> V:
        outcome = self._in_flight.get(key)
        if outcome is None:
            outcome = self._enqueue(key)
        else:
            logger.debug("lane.coalesced", extra={"lane": self.name, "key": key})
        # A cancelled caller must not cancel the shared outcome.
        return await asyncio.shield(outcome)

    def _enqueue(self, key: K) -> asyncio.Future[V]:
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[V] = loop.create_future()
        link_done: asyncio.Future[None] = loop.create_future()

        previous, self._tail = self._tail, link_done
        self._in_flight[key] = outcome

        # The link serves every caller of ``key``, not only the one enqueuing it
        context = contextvars.copy_context()
        context.run(clear_request_id)
        link = loop.create_task(
            self._run_link(key, previous, outcome, link_done),
            context=context,
        )
        self._links.add(link)
        link.add_done_callback(self._links.discard)

        logger.debug(
            "lane.enqueued",
            extra={"lane": self.name, "key": key, "queued": len(self._links)},
        )
        return outcome

    async def _run_link(
        self,
        key: K,
        previous: asyncio.Future[None] | None,
        outcome: asyncio.Future[V],
        link_done: asyncio.Future[None],
    ) -> None:
        try:
            if previous is not None:
                await previous
            await self._dispatch(key, outcome)
            await self._cool_down()
        except asyncio.CancelledError:
            if not outcome.done():
                outcome.cancel()
            raise
        finally:
            self._evict(key, outcome)
            link_done.set_result(None)

    async def _dispatch(self, key: K, outcome: asyncio.Future[V]) -> None:
        logger.debug("lane.dispatch", extra={"lane": self.name, "key": key})
        try:
            value = await self._operation(key)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            outcome.set_exception(exc)
            logger.debug(
                "lane.dispatch_failed",
                extra={"lane": self.name, "key": key, "error_type": type(exc).__name__},
            )
        else:
            outcome.set_result(value)
        finally:
            self._evict(key, outcome)

    def _evict(self, key: K, outcome: asyncio.Future[V]) -> None:
        if self._in_flight.get(key) is outcome:
            del self._in_flight[key]

    async def _cool_down(self) -> None:
        """Wait until ``cooldown_seconds`` have passed on the lane clock."""
        deadline = self._clock() + self._cooldown_seconds
        remaining = self._cooldown_seconds
        while remaining > 0:
            await self._sleep(remaining)
            remaining = deadline - self._clock()

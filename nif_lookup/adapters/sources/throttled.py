"""Source adapter decorator that routes lookups through a RateLimitedLane."""

from __future__ import annotations

from nif_lookup.adapters.rate_limit import RateLimitedLane
from nif_lookup.adapters.sources.base import AbstractSourceAdapter
from nif_lookup.schemas.record import PartialRecord


class ThrottledSourceAdapter(AbstractSourceAdapter):
    """Wrap any source so its lookups are spaced out and coalesced per NIF.

    Exposes the wrapped adapter's name, so callers cannot tell a throttled
    source from a direct one.
    """

    def __init__(self, inner: AbstractSourceAdapter, *, cooldown_seconds: float) -> None:
        self.inner = inner
        self.name = inner.name
        self.lane: RateLimitedLane[str, PartialRecord] = RateLimitedLane(
            inner.fetch,
            cooldown_seconds=cooldown_seconds,
            name=inner.name,
        )

    async def fetch(self, nif: str) -> PartialRecord:
        return await self.lane.call(nif)

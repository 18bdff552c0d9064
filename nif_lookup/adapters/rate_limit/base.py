"""Lane interfaces.

Keeps the lane contract separate from the in-process implementation, so a
lane shared across processes can be dropped in behind the same interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

KeyedOperation = Callable[[K], Awaitable[V]]


class AbstractLane(ABC, Generic[K, V]):
    """Interface for throttled, key-coalescing call lanes."""

    name: str

    @abstractmethod
    async def call(self, key: K) -> V:
        """Run the wrapped operation for ``key`` through the lane.

        Args:
            key: Argument passed to the wrapped operation; also the
                coalescing key for concurrent callers.

        Returns:
            The wrapped operation's result.

        Raises:
            Exception: Whatever the wrapped operation raised for this key.
        """
        raise NotImplementedError

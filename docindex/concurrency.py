"""Bounded concurrent lookups with per-item failure isolation."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Generic, Hashable, Iterable, Optional, TypeVar

from .logging import get_logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CONCURRENCY = 5
DEFAULT_TIMEOUT = 5.0


class ConcurrentFetchCoordinator(Generic[K, V]):
    """Runs one async lookup per item with a cap on in-flight lookups.

    Items are admitted in input order. Each lookup is bounded by its own
    timeout. A lookup that raises or times out maps its item to ``None``
    without affecting sibling lookups.
    """

    def __init__(
        self,
        limit: int = DEFAULT_CONCURRENCY,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.timeout = timeout
        self.logger = get_logger("concurrency")

    async def run(
        self,
        items: Iterable[K],
        lookup: Callable[[K], Awaitable[V]],
    ) -> Dict[K, Optional[V]]:
        """Return ``item -> result`` for every distinct item, in input order."""
        ordered = list(dict.fromkeys(items))
        if not ordered:
            return {}

        semaphore = asyncio.Semaphore(self.limit)
        outcomes: Dict[K, Optional[V]] = {}

        async def _guarded(item: K) -> None:
            async with semaphore:
                try:
                    outcomes[item] = await asyncio.wait_for(lookup(item), timeout=self.timeout)
                except asyncio.TimeoutError:
                    self.logger.warning("Lookup for %s timed out after %ss", item, self.timeout)
                    outcomes[item] = None
                except Exception as exc:
                    self.logger.warning("Lookup for %s failed: %s", item, exc)
                    outcomes[item] = None

        await asyncio.gather(*(_guarded(item) for item in ordered))
        return {item: outcomes.get(item) for item in ordered}


async def fetch_all(
    items: Iterable[K],
    lookup: Callable[[K], Awaitable[V]],
    *,
    limit: int = DEFAULT_CONCURRENCY,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
) -> Dict[K, Optional[V]]:
    """Convenience wrapper around :class:`ConcurrentFetchCoordinator`."""
    coordinator: ConcurrentFetchCoordinator[K, V] = ConcurrentFetchCoordinator(limit, timeout)
    return await coordinator.run(items, lookup)


__all__ = ["ConcurrentFetchCoordinator", "DEFAULT_CONCURRENCY", "DEFAULT_TIMEOUT", "fetch_all"]

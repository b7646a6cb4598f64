"""
Request Cache

Session-lifetime memoization of provider lookups keyed by
(engine_id, query, options).

Features:
- In-flight sharing: concurrent identical lookups await one task
- Success and failure are both cached (a failure replays on hit)
- Unbounded by default; optional LRU bound via cachetools.LRUCache
- No expiry, no invalidation
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, TypeVar

from cachetools import LRUCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0


def make_key(engine_id: str, query: str, options: dict[str, Any] | None = None) -> str:
    """Deterministic serialization of a lookup, independent of option order."""
    return json.dumps([engine_id, query, options or {}], sort_keys=True, separators=(",", ":"), default=str)


class RequestCache:
    """
    Memoizes provider lookups for the lifetime of the session.

    Example:
        cache = RequestCache()
        task = cache.get("jira", "login bug", {}, lambda: engine.search("login bug", {}))
        results = await task

    The stored value is the asyncio.Task itself, so a second caller that
    arrives while the first lookup is still pending awaits the same task
    instead of issuing another provider call.
    """

    def __init__(self, max_size: int | None = None) -> None:
        """
        Args:
            max_size: Maximum number of entries (LRU eviction). None keeps
                      every entry for the whole session.
        """
        self._max_size = max_size
        self._entries: MutableMapping[str, asyncio.Task[Any]] = (
            LRUCache(maxsize=max_size) if max_size else {}
        )
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def max_size(self) -> int | None:
        return self._max_size

    def get(
        self,
        engine_id: str,
        query: str,
        options: dict[str, Any] | None,
        fetch: Callable[[], Awaitable[T]],
    ) -> asyncio.Task[T]:
        """
        Return the pending or completed lookup for this key.

        Must be called from within a running event loop. ``fetch`` is only
        invoked on a miss.
        """
        key = make_key(engine_id, query, options)
        task = self._entries.get(key)
        if task is not None:
            self._stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return task

        self._stats.misses += 1
        logger.debug(f"Cache miss: {key}")
        task = asyncio.ensure_future(_invoke(fetch))
        task.add_done_callback(_consume_exception)
        self._entries[key] = task
        return task

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


def _consume_exception(task: asyncio.Future[Any]) -> None:
    # Failures are replayed to awaiters; an entry may have none left
    if not task.cancelled():
        task.exception()


async def _invoke(fetch: Callable[[], Awaitable[T]]) -> T:
    # fetch() may raise before returning an awaitable; keep that inside the task
    return await fetch()

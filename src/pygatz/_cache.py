"""Internal memoization of feed fetches and pagination cursors."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pygatz.config import DEFAULT_FEED_CACHE_TTL
from pygatz.ingestion.normalize import feed_query_key
from pygatz.models.feed import FeedQuery

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _CacheEntry(Generic[T]):
    value: T
    stored_at: float


class FeedFetchCache(Generic[T]):
    """Last successful result per query, fresh for ``ttl`` seconds.

    Entries are keyed by :func:`feed_query_key`, so the cursor of a query
    does not take part in the lookup.
    """

    def __init__(self, ttl: float = DEFAULT_FEED_CACHE_TTL, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry[T]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, query: FeedQuery) -> T | None:
        """Return the cached value for *query*, or ``None`` if absent or stale."""
        key = feed_query_key(query)
        entry = self._entries.get(key)
        if entry is None:
            _logger.debug("Feed cache miss for %s", key)
            return None
        age = self._clock() - entry.stored_at
        if age >= self._ttl:
            _logger.debug("Feed cache stale for %s (age %.1fs)", key, age)
            return None
        _logger.debug("Feed cache hit for %s (age %.1fs)", key, age)
        return entry.value

    def put(self, query: FeedQuery, value: T) -> None:
        self._entries[feed_query_key(query)] = _CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, query: FeedQuery | None = None) -> None:
        """Drop the entry for *query*, or every entry when *query* is ``None``."""
        if query is None:
            self._entries.clear()
        else:
            self._entries.pop(feed_query_key(query), None)


class CursorIndex:
    """Last-seen id per query, used as the cursor of the next page."""

    def __init__(self) -> None:
        self._cursors: dict[str, str] = {}

    def get(self, query: FeedQuery) -> str | None:
        return self._cursors.get(feed_query_key(query))

    def set(self, query: FeedQuery, last_id: str | None) -> None:
        key = feed_query_key(query)
        if last_id is None:
            self._cursors.pop(key, None)
        else:
            self._cursors[key] = last_id

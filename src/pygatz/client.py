"""High-level feed operations over a store and a gateway."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pygatz._cache import FeedFetchCache
from pygatz.config import GatzConfig
from pygatz.gateway import Gateway
from pygatz.ingestion.apply import apply_feed_response, apply_incoming_feed_response, apply_search_response
from pygatz.models.discussion import DiscussionAggregate
from pygatz.models.feed import FeedQuery
from pygatz.state.store import FrontendStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedResult:
    """Aggregates of one fetched page, as held by the store after the write."""

    aggregates: list[DiscussionAggregate] = field(default_factory=list)


class FeedClient:
    """Feed refresh, pagination and search.

    Every fetched page is written into *store* in a single transaction, so
    screens subscribed to the store re-render once per page.

    Usage::

        async with HttpGateway(config) as gateway:
            feed = FeedClient(store, gateway, config=config)
            await feed.refresh(FeedQuery(), hard=False)
    """

    def __init__(
        self,
        store: FrontendStore,
        gateway: Gateway,
        *,
        config: GatzConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._config = config or GatzConfig()
        self._cache: FeedFetchCache[FeedResult] = FeedFetchCache(self._config.feed_cache_ttl, clock=clock)

    @property
    def store(self) -> FrontendStore:
        return self._store

    async def refresh(self, query: FeedQuery, *, hard: bool = True) -> FeedResult:
        """Fetch the first page of *query*.

        A hard refresh always hits the gateway.  A soft refresh returns the
        last result for the same query if it is younger than the cache TTL.
        """
        if hard:
            return await self._fetch(query)

        cached = self._cache.get(query)
        if cached is not None:
            return cached
        result = await self._fetch(query)
        self._cache.put(query, result)
        return result

    async def load_more(self, query: FeedQuery) -> FeedResult:
        """Fetch the page after the last one the gateway returned for *query*."""
        cursor = self._gateway.last_cursor_for(query)
        _logger.debug("Loading more from cursor %s", cursor)
        return await self._fetch(query.with_cursor(cursor))

    async def search(self, query: FeedQuery) -> FeedResult:
        response = await self._gateway.fetch_search(query)
        return FeedResult(aggregates=apply_search_response(self._store, response))

    async def prepare_incoming(self, query: FeedQuery) -> set[str]:
        """Fetch *query* in the background and stage its new items as incoming.

        Returns the staged feed item ids.  Call :meth:`integrate_incoming`
        when the user asks to see them.
        """
        response = await self._gateway.fetch_feed(query)
        return apply_incoming_feed_response(self._store, response)

    def integrate_incoming(self) -> None:
        self._store.integrate_incoming_feed()

    async def _fetch(self, query: FeedQuery) -> FeedResult:
        _logger.debug("Fetching feed %s", query.feed_type)
        response = await self._gateway.fetch_feed(query)
        return FeedResult(aggregates=apply_feed_response(self._store, response))

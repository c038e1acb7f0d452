"""Remote gateway: fetches feed and search pages from the Gatz API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from pygatz._cache import CursorIndex
from pygatz._transport import JsonTransport, Transport
from pygatz.config import GatzConfig
from pygatz.exceptions import GatzError, GatzTransportError
from pygatz.ingestion.feed import decode_feed_response, decode_search_response
from pygatz.models.feed import FeedQuery, FeedType
from pygatz.models.responses import DiscussionsFeedResponse, ItemsFeedResponse, SearchResponse

_logger = logging.getLogger(__name__)

FEED_ITEMS_ENDPOINT = "/api/feed/items"
ACTIVE_DISCUSSIONS_ENDPOINT = "/api/feed/active"
SEARCH_ENDPOINT = "/api/search"


class Gateway(Protocol):
    """What the feed client needs from the remote side."""

    async def fetch_feed(self, query: FeedQuery) -> DiscussionsFeedResponse | ItemsFeedResponse: ...

    async def fetch_search(self, query: FeedQuery) -> SearchResponse: ...

    def last_cursor_for(self, query: FeedQuery) -> str | None: ...


def _sort_key(value: datetime | None) -> float:
    return value.timestamp() if value is not None else float("-inf")


class HttpGateway:
    """aiohttp-backed :class:`Gateway`.

    After each successful page the cursor of the query is advanced, so the
    next :meth:`last_cursor_for` call returns the id to page from.

    Usage::

        async with HttpGateway(config) as gateway:
            response = await gateway.fetch_feed(FeedQuery())
    """

    def __init__(
        self,
        config: GatzConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._headers = headers
        self._transport: Transport | None = transport
        self._cursors = CursorIndex()

    async def __aenter__(self) -> HttpGateway:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = JsonTransport(self._config, self._http_session, headers=self._headers)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise GatzError("Gateway not initialized. Use 'async with HttpGateway(...) as gateway:'")
        return self._transport

    def last_cursor_for(self, query: FeedQuery) -> str | None:
        return self._cursors.get(query)

    async def fetch_feed(self, query: FeedQuery) -> DiscussionsFeedResponse | ItemsFeedResponse:
        if query.feed_type == FeedType.SEARCH:
            raise GatzError("Search queries go through fetch_search")
        if query.feed_type == FeedType.ACTIVE_DISCUSSIONS:
            endpoint = ACTIVE_DISCUSSIONS_ENDPOINT
        else:
            endpoint = FEED_ITEMS_ENDPOINT

        raw = await self._require_transport().get_json(endpoint, query.to_params())
        response = _decode(decode_feed_response, raw, endpoint)

        if isinstance(response, ItemsFeedResponse):
            newest = max(response.items, key=lambda item: _sort_key(item.created_at), default=None)
            self._advance(query, newest.id if newest is not None else None)
        else:
            least_recent = min(
                response.discussions,
                key=lambda a: _sort_key(a.discussion.latest_activity_ts),
                default=None,
            )
            self._advance(query, least_recent.discussion.id if least_recent is not None else None)
        return response

    async def fetch_search(self, query: FeedQuery) -> SearchResponse:
        raw = await self._require_transport().get_json(SEARCH_ENDPOINT, query.to_params())
        response = _decode(decode_search_response, raw, SEARCH_ENDPOINT)
        earliest = min(
            response.discussions,
            key=lambda a: _sort_key(a.discussion.created_at),
            default=None,
        )
        self._advance(query, earliest.discussion.id if earliest is not None else None)
        return response

    def _advance(self, query: FeedQuery, last_id: str | None) -> None:
        # An empty page keeps the previous cursor.
        if last_id is None:
            return
        _logger.debug("Cursor for %s advanced to %s", query.feed_type, last_id)
        self._cursors.set(query, last_id)


def _decode(decoder: Callable[[dict[str, Any]], Any], raw: dict[str, Any], endpoint: str) -> Any:
    try:
        return decoder(raw)
    except ValidationError as exc:
        raise GatzTransportError(
            f"Unexpected payload from {endpoint}: {exc.error_count()} validation error(s)",
            endpoint=endpoint,
        ) from exc

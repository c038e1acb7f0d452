"""Feed item and feed query models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from pygatz.models._base import GatzBaseModel, GatzTimestamp


class FeedType(StrEnum):
    ALL_POSTS = "all_posts"
    ACTIVE_DISCUSSIONS = "active_discussions"
    SEARCH = "search"


class FeedItem(GatzBaseModel):
    """An entry of the activity feed.

    ``ref`` is whatever the item points at.  For ``ref_type ==
    "discussion"`` the server embeds a hydrated discussion (the discussion
    fields plus ``messages``); other ref types carry their own payloads.
    """

    id: str
    created_at: GatzTimestamp
    updated_at: GatzTimestamp | None = None
    ref_type: str
    feed_type: str | None = None
    ref: dict[str, Any] | str | None = None
    dismissed_by: list[str] = Field(default_factory=list)
    hidden_for: list[str] = Field(default_factory=list)
    uids: list[str] = Field(default_factory=list)
    seen_at: dict[str, Any] = Field(default_factory=dict)


class FeedQuery(GatzBaseModel):
    """Parameters of a feed (or search) request.

    ``last_id`` is the pagination cursor.  It is not part of the query's
    identity: cache and cursor entries are keyed by the query without it
    (see :func:`pygatz.ingestion.normalize.feed_query_key`).
    """

    type: str = "all"
    feed_type: FeedType = Field(default=FeedType.ALL_POSTS, alias="feedType")
    group_id: str | None = None
    contact_id: str | None = None
    location_id: str | None = None
    term: str | None = None
    hidden: bool | None = None
    last_id: str | None = None

    def with_cursor(self, last_id: str | None) -> FeedQuery:
        """Return a copy of this query requesting the page after *last_id*."""
        return self.model_copy(update={"last_id": last_id})

    def to_params(self) -> dict[str, str]:
        """Serialize to HTTP query-string parameters (wire names, no ``None``)."""
        dumped = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        params: dict[str, str] = {}
        for key, value in dumped.items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params

"""Feed and search payload decoding.

Raw JSON is decoded once, at the gateway boundary, into the typed
responses of :mod:`pygatz.models.responses`.  Everything downstream works
on those models.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter

from pygatz.exceptions import InvalidFeedItemError
from pygatz.ingestion.normalize import is_discussion_ref, missing_ref_keys
from pygatz.models.discussion import Discussion, Message, ShallowDiscussionAggregate
from pygatz.models.responses import (
    DiscussionsFeedResponse,
    FeedResponse,
    ItemsFeedResponse,
    SearchResponse,
)

_logger = logging.getLogger(__name__)

_FEED_RESPONSE_ADAPTER: TypeAdapter[DiscussionsFeedResponse | ItemsFeedResponse] = TypeAdapter(FeedResponse)

# Keys a discussion ref must embed to be turned into an aggregate.
_HYDRATED_DISCUSSION_KEYS = ("messages", "members")


def _tag_feed_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Add the ``kind`` discriminator based on which list the payload carries."""
    if "kind" in raw:
        return raw
    if "discussions" in raw:
        return {**raw, "kind": "discussions"}
    return {**raw, "kind": "items"}


def decode_feed_response(raw: dict[str, Any]) -> DiscussionsFeedResponse | ItemsFeedResponse:
    """Validate a raw ``/api/feed/*`` payload into the matching response model.

    Raises
    ------
    pydantic.ValidationError
        If the payload does not match either feed shape.
    """
    return _FEED_RESPONSE_ADAPTER.validate_python(_tag_feed_payload(raw))


def decode_search_response(raw: dict[str, Any]) -> SearchResponse:
    return SearchResponse.model_validate(raw)


def feed_aggregates(
    response: DiscussionsFeedResponse | ItemsFeedResponse,
) -> list[ShallowDiscussionAggregate]:
    """Return the discussion aggregates carried by a feed response.

    The ``discussions`` shape carries them directly.  In the ``items`` shape,
    every discussion-typed item embeds a hydrated discussion in ``ref``
    (the discussion fields plus its ``messages``; ``members`` doubles as
    the participant ids).  Items of other ref types carry no aggregate.

    Raises
    ------
    InvalidFeedItemError
        If a discussion ref lacks ``messages`` or ``members``.
    """
    if isinstance(response, DiscussionsFeedResponse):
        return list(response.discussions)

    aggregates: list[ShallowDiscussionAggregate] = []
    for item in response.items:
        if not is_discussion_ref(item.ref_type):
            continue
        ref = item.ref if isinstance(item.ref, dict) else {}
        missing = missing_ref_keys(ref, _HYDRATED_DISCUSSION_KEYS)
        if missing:
            raise InvalidFeedItemError(
                f"Feed item {item.id} references a discussion without {', '.join(missing)}",
                item_id=item.id,
            )
        discussion = Discussion.model_validate({k: v for k, v in ref.items() if k != "messages"})
        aggregates.append(
            ShallowDiscussionAggregate(
                discussion=discussion,
                messages=[Message.model_validate(m) for m in ref["messages"]],
                user_ids=list(discussion.members),
            )
        )
    _logger.debug("Extracted %d discussion aggregate(s) from %d feed item(s)", len(aggregates), len(response.items))
    return aggregates

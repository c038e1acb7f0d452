"""Push-channel ingestion.

Translates decoded push events into store operations.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter

from pygatz.models.push import (
    ContactUpdatedEvent,
    DiscussionUpdatedEvent,
    FeedItemUpdatedEvent,
    MessageAddedEvent,
    MessageDeletedEvent,
    PushEvent,
)
from pygatz.state.store import FrontendStore

_logger = logging.getLogger(__name__)

_PUSH_EVENT_ADAPTER: TypeAdapter[
    MessageAddedEvent | MessageDeletedEvent | DiscussionUpdatedEvent | FeedItemUpdatedEvent | ContactUpdatedEvent
] = TypeAdapter(PushEvent)


def decode_push_event(
    raw: dict[str, Any],
) -> MessageAddedEvent | MessageDeletedEvent | DiscussionUpdatedEvent | FeedItemUpdatedEvent | ContactUpdatedEvent:
    """Validate a raw push payload into its event model (by ``type``)."""
    return _PUSH_EVENT_ADAPTER.validate_python(raw)


def apply_push_event(
    store: FrontendStore,
    event: MessageAddedEvent | MessageDeletedEvent | DiscussionUpdatedEvent | FeedItemUpdatedEvent | ContactUpdatedEvent,
) -> None:
    """Apply one push event to the store.

    Raises
    ------
    pygatz.exceptions.DiscussionNotFoundError
        For a ``message_added`` event on a discussion the store doesn't hold.
    """
    _logger.debug("Applying push event %s", event.type)
    if isinstance(event, MessageAddedEvent):
        store.append_message(event.message, event.discussion)
    elif isinstance(event, MessageDeletedEvent):
        store.delete_message(event.did, event.mid)
    elif isinstance(event, DiscussionUpdatedEvent):
        store.upsert_discussion(event.discussion)
    elif isinstance(event, FeedItemUpdatedEvent):
        store.upsert_feed_item(event.item)
    elif isinstance(event, ContactUpdatedEvent):
        store.upsert_contact(event.contact)

"""Push-channel event models.

The push transport delivers JSON events tagged by ``type``; they are
decoded once into this discriminated union and then applied to the store
by :func:`pygatz.ingestion.push.apply_push_event`.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from pygatz.models._base import GatzBaseModel
from pygatz.models.contact import Contact
from pygatz.models.discussion import Discussion, Message
from pygatz.models.feed import FeedItem


class MessageAddedEvent(GatzBaseModel):
    type: Literal["message_added"] = "message_added"
    message: Message
    discussion: Discussion | None = None


class MessageDeletedEvent(GatzBaseModel):
    type: Literal["message_deleted"] = "message_deleted"
    did: str
    mid: str


class DiscussionUpdatedEvent(GatzBaseModel):
    type: Literal["discussion_updated"] = "discussion_updated"
    discussion: Discussion


class FeedItemUpdatedEvent(GatzBaseModel):
    type: Literal["feed_item_updated"] = "feed_item_updated"
    item: FeedItem


class ContactUpdatedEvent(GatzBaseModel):
    type: Literal["contact_updated"] = "contact_updated"
    contact: Contact


PushEvent = Annotated[
    MessageAddedEvent | MessageDeletedEvent | DiscussionUpdatedEvent | FeedItemUpdatedEvent | ContactUpdatedEvent,
    Field(discriminator="type"),
]
"""Tagged union of push events, discriminated on ``type``."""

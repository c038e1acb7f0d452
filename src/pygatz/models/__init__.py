"""Data models for Gatz API payloads."""

from pygatz.models._base import GatzBaseModel, GatzTimestamp, parse_gatz_timestamp
from pygatz.models.contact import (
    DEFAULT_FEATURE_FLAGS,
    Contact,
    FeatureFlagsEnvelope,
    PendingContactRequest,
    User,
)
from pygatz.models.discussion import (
    HLC,
    Discussion,
    DiscussionAggregate,
    Message,
    ShallowDiscussionAggregate,
    merge_messages,
)
from pygatz.models.feed import FeedItem, FeedQuery, FeedType
from pygatz.models.group import Group, InviteLink, InviteLinkResponse
from pygatz.models.push import (
    ContactUpdatedEvent,
    DiscussionUpdatedEvent,
    FeedItemUpdatedEvent,
    MessageAddedEvent,
    MessageDeletedEvent,
    PushEvent,
)
from pygatz.models.responses import (
    DiscussionsFeedResponse,
    FeedResponse,
    ItemsFeedResponse,
    MeResponse,
    SearchResponse,
)

__all__ = [
    "DEFAULT_FEATURE_FLAGS",
    "HLC",
    "Contact",
    "ContactUpdatedEvent",
    "Discussion",
    "DiscussionAggregate",
    "DiscussionUpdatedEvent",
    "DiscussionsFeedResponse",
    "FeatureFlagsEnvelope",
    "FeedItem",
    "FeedItemUpdatedEvent",
    "FeedQuery",
    "FeedResponse",
    "FeedType",
    "GatzBaseModel",
    "GatzTimestamp",
    "Group",
    "InviteLink",
    "InviteLinkResponse",
    "ItemsFeedResponse",
    "MeResponse",
    "Message",
    "MessageAddedEvent",
    "MessageDeletedEvent",
    "PendingContactRequest",
    "PushEvent",
    "SearchResponse",
    "ShallowDiscussionAggregate",
    "User",
    "merge_messages",
    "parse_gatz_timestamp",
]

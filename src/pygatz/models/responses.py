"""API response envelopes consumed by the store."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from pygatz.models._base import GatzBaseModel
from pygatz.models.contact import Contact, FeatureFlagsEnvelope, PendingContactRequest, User
from pygatz.models.discussion import ShallowDiscussionAggregate
from pygatz.models.feed import FeedItem
from pygatz.models.group import Group


class MeResponse(GatzBaseModel):
    """``/api/me`` response.  Every field is optional; absent means "no update"."""

    user: User | None = None
    groups: list[Group] | None = None
    contacts: list[Contact] | None = None
    contact_requests: list[PendingContactRequest] | None = None
    flags: FeatureFlagsEnvelope | None = None


class DiscussionsFeedResponse(GatzBaseModel):
    """Legacy feed shape carrying discussion aggregates directly."""

    kind: Literal["discussions"] = "discussions"
    discussions: list[ShallowDiscussionAggregate] = Field(default_factory=list)
    users: list[Contact] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)


class ItemsFeedResponse(GatzBaseModel):
    """Feed shape carrying generic feed items."""

    kind: Literal["items"] = "items"
    items: list[FeedItem] = Field(default_factory=list)
    users: list[Contact] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)


FeedResponse = Annotated[DiscussionsFeedResponse | ItemsFeedResponse, Field(discriminator="kind")]
"""Tagged union of the two feed shapes, discriminated on ``kind``."""


class SearchResponse(GatzBaseModel):
    """``/api/search`` response."""

    discussions: list[ShallowDiscussionAggregate] = Field(default_factory=list)
    users: list[Contact] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)

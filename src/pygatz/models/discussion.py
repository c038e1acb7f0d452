"""Discussion, message and discussion-aggregate models."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import ConfigDict, Field

from pygatz.models._base import GatzBaseModel, GatzTimestamp
from pygatz.models.contact import Contact


class HLC(GatzBaseModel):
    """Hybrid logical clock stamped on every CRDT document."""

    counter: int = 0
    node: str = ""
    ts: GatzTimestamp | None = None


class Discussion(GatzBaseModel):
    """A discussion thread.

    This is a CRDT document: the server merges concurrent updates and
    stamps the result with ``clock``.  Two snapshots of the same logical
    state may differ in serialization, so they are compared through a
    :class:`pygatz.state.equality.CrdtOracle` rather than ``==``.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    clock: HLC | None = None
    name: str | None = None
    created_by: str | None = None
    group_id: str | None = None
    created_at: GatzTimestamp | None = None
    updated_at: GatzTimestamp | None = None
    latest_activity_ts: GatzTimestamp | None = None
    first_message: str | None = None
    latest_message: str | None = None
    members: list[str] = Field(default_factory=list)
    active_members: list[str] = Field(default_factory=list)
    archived_uids: list[str] = Field(default_factory=list)


class Message(GatzBaseModel):
    """A message posted in a discussion."""

    model_config = ConfigDict(extra="allow")

    id: str
    did: str
    user_id: str = ""
    text: str = ""
    clock: HLC | None = None
    created_at: GatzTimestamp | None = None
    updated_at: GatzTimestamp | None = None
    deleted_at: GatzTimestamp | None = None


class ShallowDiscussionAggregate(GatzBaseModel):
    """Wire form of a discussion aggregate: participants are sent as ids."""

    discussion: Discussion
    messages: list[Message] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)


class DiscussionAggregate(GatzBaseModel):
    """A discussion bundled with its messages and participants.

    This is the shape needed to render a conversation; it is keyed in the
    store by ``discussion.id``.
    """

    discussion: Discussion
    messages: list[Message] = Field(default_factory=list)
    users: list[Contact] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.discussion.id


def merge_messages(current: Iterable[Message], incoming: Iterable[Message]) -> list[Message]:
    """Merge two message lists, newest first.

    Messages are deduplicated by id; when both lists carry the same id the
    incoming copy wins.  Messages without ``created_at`` sort last.
    """
    seen: set[str] = set()
    merged: list[Message] = []
    for message in [*incoming, *current]:
        if message.id in seen:
            continue
        seen.add(message.id)
        merged.append(message)
    merged.sort(key=_created_at_key, reverse=True)
    return merged


def _created_at_key(message: Message) -> float:
    if message.created_at is None:
        return float("-inf")
    return message.created_at.timestamp()

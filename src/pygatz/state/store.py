"""Reactive in-memory store for client-side chat data.

This is the only component allowed to write entities.  Every write goes
through an ``upsert_*`` method which:

1. ignores ``None``;
2. runs the entity's change detector and stops when nothing changed;
3. writes the dictionary (and any secondary index);
4. notifies the entity's own listeners immediately;
5. flushes the collection listeners, or marks the collection dirty while a
   transaction is open so it is flushed once when the batch closes.

Discussions and discussion aggregates are written through to each other so
the ``discussion`` held by an aggregate is always CRDT-equal to the
standalone discussion with the same id.
"""

from __future__ import annotations

import contextlib
import logging
import secrets
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from pygatz.exceptions import DiscussionNotFoundError
from pygatz.models.contact import DEFAULT_FEATURE_FLAGS, Contact, PendingContactRequest, User
from pygatz.models.discussion import (
    Discussion,
    DiscussionAggregate,
    Message,
    ShallowDiscussionAggregate,
    merge_messages,
)
from pygatz.models.feed import FeedItem
from pygatz.models.group import Group, InviteLinkResponse
from pygatz.state.equality import (
    ClockCrdtOracle,
    CrdtOracle,
    aggregates_equal,
    contacts_equal,
    dismissed_by_changed,
    feed_items_equal,
    values_equal,
)
from pygatz.state.events import FLUSH_ORDER, Collection
from pygatz.state.incoming import IncomingFeed
from pygatz.state.listeners import (
    EntityListeners,
    IdListListeners,
    ListenerId,
    ListenerIdFactory,
    ListListeners,
    SingleValueListeners,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Display name of the placeholder returned for contacts the store doesn't hold.
MISSING_CONTACT_NAME = "[deleted]"


def _random_placeholder_id() -> str:
    return f"missing-{secrets.token_hex(8)}"


class FrontendStore:
    """In-memory store for contacts, groups, discussions and the feed.

    Each instance owns its state; construct one per client and pass it to
    collaborators explicitly.

    Parameters
    ----------
    crdt_oracle
        Decides whether two discussion snapshots are logically equal.
        Defaults to :class:`ClockCrdtOracle`.
    id_factory
        Generates listener ids.  Defaults to a per-store counter.
    placeholder_id_factory
        Generates the ephemeral id of placeholder contacts returned by
        :meth:`get_contact_or_placeholder`.
    """

    def __init__(
        self,
        *,
        crdt_oracle: CrdtOracle | None = None,
        id_factory: Callable[[], ListenerId] | None = None,
        placeholder_id_factory: Callable[[], str] = _random_placeholder_id,
    ) -> None:
        self._oracle: CrdtOracle = crdt_oracle if crdt_oracle is not None else ClockCrdtOracle()
        self._new_listener_id = id_factory if id_factory is not None else ListenerIdFactory()
        self._new_placeholder_id = placeholder_id_factory

        self._contacts: dict[str, Contact] = {}
        self._name_to_contact: dict[str, Contact] = {}
        self._groups: dict[str, Group] = {}
        self._invite_links: dict[str, InviteLinkResponse] = {}
        self._discussions: dict[str, Discussion] = {}
        self._aggregates: dict[str, DiscussionAggregate] = {}
        self._feed_items: dict[str, FeedItem] = {}

        self._me: User | None = None
        self._my_contacts: set[str] = set()
        self._flags: dict[str, bool] = dict(DEFAULT_FEATURE_FLAGS)
        self._pending_contact_requests: dict[str, PendingContactRequest] = {}

        new_id = self._new_listener_id
        self._contact_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._contact_list_listeners: ListListeners[Contact] = ListListeners(new_id)
        self._group_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._group_list_listeners: ListListeners[Group] = ListListeners(new_id)
        self._invite_link_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._discussion_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._discussion_list_listeners: ListListeners[Discussion] = ListListeners(new_id)
        self._aggregate_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._aggregate_list_listeners: ListListeners[DiscussionAggregate] = ListListeners(new_id)
        self._aggregate_ids_listeners: IdListListeners[str] = IdListListeners(new_id)
        self._deleted_message_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._feed_item_listeners: EntityListeners[str] = EntityListeners(new_id)
        self._feed_item_list_listeners: ListListeners[FeedItem] = ListListeners(new_id)
        self._feed_item_ids_listeners: IdListListeners[str] = IdListListeners(new_id)
        self._me_listeners: SingleValueListeners[User] = SingleValueListeners(new_id)
        self._pending_count_listeners: SingleValueListeners[int] = SingleValueListeners(new_id)
        self._incoming = IncomingFeed(new_id)

        self._transaction_depth = 0
        self._dirty: set[Collection] = set()
        self._flushers: dict[Collection, Callable[[], None]] = {
            Collection.CONTACTS: lambda: self._contact_list_listeners.notify(self.get_all_contacts()),
            Collection.GROUPS: lambda: self._group_list_listeners.notify(self.get_all_groups()),
            Collection.DISCUSSIONS: lambda: self._discussion_list_listeners.notify(self.get_all_discussions()),
            Collection.AGGREGATES: lambda: self._aggregate_list_listeners.notify(self.get_all_aggregates()),
            Collection.FEED_ITEMS: lambda: self._feed_item_list_listeners.notify(self.get_all_feed_items()),
            Collection.FEED_ITEM_IDS: lambda: self._feed_item_ids_listeners.notify(self.get_all_feed_item_ids()),
            Collection.AGGREGATE_IDS: lambda: self._aggregate_ids_listeners.notify(self.get_all_aggregate_ids()),
        }

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Batch writes so each collection's listeners fire at most once.

        Entity listeners still fire on every write.  Collection listeners
        marked dirty inside the block are flushed when the outermost
        transaction exits, in :data:`pygatz.state.events.FLUSH_ORDER`.
        The store always returns to the idle state.  When the block raises
        nothing is flushed; collections it marked dirty stay dirty until
        their next immediate flush or the next transaction that completes.
        """
        self._transaction_depth += 1
        try:
            yield
        finally:
            self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self._flush_dirty()

    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        """Call *fn* inside :meth:`transaction` and return its result."""
        with self.transaction():
            return fn()

    def _mark_changed(self, collection: Collection) -> None:
        if self._transaction_depth > 0:
            self._dirty.add(collection)
        else:
            self._dirty.discard(collection)
            self._flushers[collection]()

    def _flush_dirty(self) -> None:
        if not self._dirty:
            return
        dirty = self._dirty
        self._dirty = set()
        _logger.debug("Flushing collections: %s", ", ".join(c.value for c in FLUSH_ORDER if c in dirty))
        for collection in FLUSH_ORDER:
            if collection in dirty:
                self._flushers[collection]()

    # ------------------------------------------------------------------
    # Me, contact ids, flags
    # ------------------------------------------------------------------

    def get_me(self) -> User | None:
        return self._me

    def set_me(self, user: User) -> None:
        """Set the authenticated user; it is never one of its own contacts."""
        self._me = user
        self._my_contacts.discard(user.id)
        self._me_listeners.notify(user)

    def listen_to_me(self, listener: Callable[[User], Any]) -> ListenerId:
        return self._me_listeners.add(listener)

    def remove_me_listener(self, lid: ListenerId) -> None:
        self._me_listeners.remove(lid)

    def add_contact_id(self, contact_id: str) -> None:
        if self._me is not None and self._me.id == contact_id:
            return
        self._my_contacts.add(contact_id)

    def remove_contact_id(self, contact_id: str) -> None:
        self._my_contacts.discard(contact_id)

    def get_my_contacts(self) -> frozenset[str]:
        return frozenset(self._my_contacts)

    def is_my_contact(self, contact_id: str) -> bool:
        if not contact_id:
            raise ValueError("contact_id must be non-empty")
        return contact_id in self._my_contacts

    def set_feature_flags(self, values: dict[str, bool]) -> None:
        self._flags = dict(values)

    def get_feature_flag(self, flag: str) -> bool:
        return bool(self._flags.get(flag, False))

    # ------------------------------------------------------------------
    # Pending contact requests
    # ------------------------------------------------------------------

    def add_pending_contact_requests(self, requests: Iterable[PendingContactRequest]) -> None:
        for request in requests:
            self._pending_contact_requests[request.id] = request
        self._pending_count_listeners.notify(len(self._pending_contact_requests))

    def remove_pending_contact_request(self, request_id: str) -> None:
        self._pending_contact_requests.pop(request_id, None)
        self._pending_count_listeners.notify(len(self._pending_contact_requests))

    def get_pending_contact_requests(self) -> list[PendingContactRequest]:
        return list(self._pending_contact_requests.values())

    def get_pending_contact_requests_count(self) -> int:
        return len(self._pending_contact_requests)

    def listen_to_pending_contact_requests_count(self, listener: Callable[[int], Any]) -> ListenerId:
        return self._pending_count_listeners.add(listener)

    def remove_pending_contact_requests_count_listener(self, lid: ListenerId) -> None:
        self._pending_count_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def upsert_contact(self, contact: Contact | None) -> None:
        if contact is None:
            return
        old = self._contacts.get(contact.id)
        if old is not None and contacts_equal(old, contact):
            return

        self._contacts[contact.id] = contact
        if old is not None and old.name != contact.name and self._name_to_contact.get(old.name) is old:
            del self._name_to_contact[old.name]
        # Last write wins on display-name collisions.
        self._name_to_contact[contact.name] = contact

        self._contact_listeners.notify(contact.id, contact)
        self._mark_changed(Collection.CONTACTS)

    def get_contact(self, contact_id: str) -> Contact | None:
        return self._contacts.get(contact_id)

    def get_contact_or_placeholder(self, contact_id: str) -> Contact:
        """Return the contact, or a ``[deleted]`` placeholder when it is unknown.

        Each placeholder gets a fresh ephemeral id: two placeholders returned
        for the same missing id are not equal.
        """
        contact = self._contacts.get(contact_id)
        if contact is not None:
            return contact
        return Contact(id=self._new_placeholder_id(), name=MISSING_CONTACT_NAME, avatar="")

    def maybe_contact_by_name(self, name: str) -> Contact | None:
        return self._name_to_contact.get(name)

    def get_all_contacts(self) -> list[Contact]:
        return list(self._contacts.values())

    def listen_to_contact(self, contact_id: str, listener: Callable[[Contact], Any]) -> ListenerId:
        return self._contact_listeners.add(contact_id, listener)

    def remove_contact_listener(self, contact_id: str, lid: ListenerId) -> None:
        self._contact_listeners.remove(contact_id, lid)

    def listen_to_contacts(self, listener: Callable[[list[Contact]], Any]) -> ListenerId:
        return self._contact_list_listeners.add(listener)

    def remove_contacts_listener(self, lid: ListenerId) -> None:
        self._contact_list_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def upsert_group(self, group: Group | None) -> None:
        if group is None:
            return
        if values_equal(self._groups.get(group.id), group):
            return
        self._groups[group.id] = group
        self._group_listeners.notify(group.id, group)
        self._mark_changed(Collection.GROUPS)

    def get_group(self, group_id: str) -> Group | None:
        return self._groups.get(group_id)

    def get_all_groups(self) -> list[Group]:
        return list(self._groups.values())

    def listen_to_group(self, group_id: str, listener: Callable[[Group], Any]) -> ListenerId:
        return self._group_listeners.add(group_id, listener)

    def remove_group_listener(self, group_id: str, lid: ListenerId) -> None:
        self._group_listeners.remove(group_id, lid)

    def listen_to_groups(self, listener: Callable[[list[Group]], Any]) -> ListenerId:
        return self._group_list_listeners.add(listener)

    def remove_groups_listener(self, lid: ListenerId) -> None:
        self._group_list_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Invite links
    # ------------------------------------------------------------------

    def upsert_invite_link_response(self, response: InviteLinkResponse | None) -> None:
        if response is None:
            return
        if values_equal(self._invite_links.get(response.id), response):
            return
        self._invite_links[response.id] = response
        self._invite_link_listeners.notify(response.id, response)

    def get_invite_link_response(self, invite_link_id: str) -> InviteLinkResponse | None:
        return self._invite_links.get(invite_link_id)

    def listen_to_invite_link(
        self,
        invite_link_id: str,
        listener: Callable[[InviteLinkResponse], Any],
    ) -> ListenerId:
        return self._invite_link_listeners.add(invite_link_id, listener)

    def remove_invite_link_listener(self, invite_link_id: str, lid: ListenerId) -> None:
        self._invite_link_listeners.remove(invite_link_id, lid)

    # ------------------------------------------------------------------
    # Discussions
    # ------------------------------------------------------------------

    def upsert_discussion(self, discussion: Discussion | None) -> None:
        """Write a discussion and, if an aggregate holds it, update that aggregate."""
        self._write_discussion(discussion, sync_aggregate=True)

    def _write_discussion(self, discussion: Discussion | None, *, sync_aggregate: bool) -> None:
        if discussion is None:
            return
        did = discussion.id
        old = self._discussions.get(did)
        if old is not None and self._oracle.equals(old, discussion):
            return

        self._discussions[did] = discussion
        self._discussion_listeners.notify(did, discussion)
        self._mark_changed(Collection.DISCUSSIONS)

        if sync_aggregate:
            aggregate = self._aggregates.get(did)
            if aggregate is not None:
                self._write_aggregate(
                    aggregate.model_copy(update={"discussion": discussion}),
                    sync_discussion=False,
                )

    def get_discussion(self, did: str) -> Discussion | None:
        return self._discussions.get(did)

    def get_all_discussions(self) -> list[Discussion]:
        return list(self._discussions.values())

    def listen_to_discussion(self, did: str, listener: Callable[[Discussion], Any]) -> ListenerId:
        return self._discussion_listeners.add(did, listener)

    def remove_discussion_listener(self, did: str, lid: ListenerId) -> None:
        self._discussion_listeners.remove(did, lid)

    def listen_to_discussions(self, listener: Callable[[list[Discussion]], Any]) -> ListenerId:
        return self._discussion_list_listeners.add(listener)

    def remove_discussions_listener(self, lid: ListenerId) -> None:
        self._discussion_list_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Discussion aggregates
    # ------------------------------------------------------------------

    def upsert_aggregate(self, aggregate: DiscussionAggregate | None) -> None:
        """Write an aggregate and its nested discussion."""
        self._write_aggregate(aggregate, sync_discussion=True)

    def _write_aggregate(self, aggregate: DiscussionAggregate | None, *, sync_discussion: bool) -> None:
        if aggregate is None:
            return
        did = aggregate.id
        old = self._aggregates.get(did)
        if old is not None and aggregates_equal(self._oracle, old, aggregate):
            return

        self._aggregates[did] = aggregate
        self._aggregate_listeners.notify(did, aggregate)
        self._mark_changed(Collection.AGGREGATES)
        if old is None:
            self._mark_changed(Collection.AGGREGATE_IDS)

        if sync_discussion:
            self._write_discussion(aggregate.discussion, sync_aggregate=False)

    def upsert_shallow_aggregate(self, shallow: ShallowDiscussionAggregate | None) -> None:
        """Hydrate ``user_ids`` from the contact store and write the aggregate.

        Unknown users become placeholders (see :meth:`get_contact_or_placeholder`).
        """
        if shallow is None:
            return
        users = [self.get_contact_or_placeholder(uid) for uid in shallow.user_ids]
        self.upsert_aggregate(
            DiscussionAggregate(discussion=shallow.discussion, messages=shallow.messages, users=users)
        )

    def get_aggregate(self, did: str) -> DiscussionAggregate | None:
        return self._aggregates.get(did)

    def get_all_aggregates(self) -> list[DiscussionAggregate]:
        return list(self._aggregates.values())

    def get_all_aggregate_ids(self) -> list[str]:
        return list(self._aggregates.keys())

    def listen_to_aggregate(self, did: str, listener: Callable[[DiscussionAggregate], Any]) -> ListenerId:
        return self._aggregate_listeners.add(did, listener)

    def remove_aggregate_listener(self, did: str, lid: ListenerId) -> None:
        self._aggregate_listeners.remove(did, lid)

    def listen_to_aggregates(self, listener: Callable[[list[DiscussionAggregate]], Any]) -> ListenerId:
        return self._aggregate_list_listeners.add(listener)

    def remove_aggregates_listener(self, lid: ListenerId) -> None:
        self._aggregate_list_listeners.remove(lid)

    def listen_to_aggregate_ids(self, listener: Callable[[list[str]], Any]) -> ListenerId:
        return self._aggregate_ids_listeners.add(listener)

    def remove_aggregate_ids_listener(self, lid: ListenerId) -> None:
        self._aggregate_ids_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_message(self, did: str, mid: str) -> Message | None:
        aggregate = self._aggregates.get(did)
        if aggregate is None:
            return None
        return next((m for m in aggregate.messages if m.id == mid), None)

    def append_message(self, message: Message, discussion: Discussion | None = None) -> None:
        """Merge *message* into its discussion's aggregate.

        *discussion*, when given, replaces the aggregate's discussion in the
        same write (the server sends the bumped discussion with the message).

        Raises
        ------
        DiscussionNotFoundError
            If the store holds no aggregate for ``message.did``.
        """
        aggregate = self._aggregates.get(message.did)
        if aggregate is None:
            raise DiscussionNotFoundError(message.did)
        self.upsert_aggregate(
            aggregate.model_copy(
                update={
                    "discussion": discussion if discussion is not None else aggregate.discussion,
                    "messages": merge_messages(aggregate.messages, [message]),
                }
            )
        )

    def delete_message(self, did: str, mid: str) -> None:
        aggregate = self._aggregates.get(did)
        if aggregate is None:
            return
        messages = [m for m in aggregate.messages if m.id != mid]
        self.upsert_aggregate(aggregate.model_copy(update={"messages": messages}))
        self._deleted_message_listeners.notify(did, did, mid)

    def listen_to_deleted_messages(self, did: str, listener: Callable[[str, str], Any]) -> ListenerId:
        return self._deleted_message_listeners.add(did, listener)

    def remove_deleted_messages_listener(self, did: str, lid: ListenerId) -> None:
        self._deleted_message_listeners.remove(did, lid)

    # ------------------------------------------------------------------
    # Feed items
    # ------------------------------------------------------------------

    def upsert_feed_item(self, item: FeedItem | None) -> None:
        """Write a feed item.

        Feed-item-id listeners fire on a first write and whenever the
        ``dismissed_by`` list changes, since dismissal changes which ids a
        feed shows.
        """
        if item is None:
            return
        old = self._feed_items.get(item.id)
        if old is not None and feed_items_equal(old, item):
            return

        self._feed_items[item.id] = item
        self._feed_item_listeners.notify(item.id, item)
        self._mark_changed(Collection.FEED_ITEMS)
        if old is None or dismissed_by_changed(old, item):
            self._mark_changed(Collection.FEED_ITEM_IDS)

    def get_feed_item(self, item_id: str) -> FeedItem | None:
        return self._feed_items.get(item_id)

    def get_all_feed_items(self) -> list[FeedItem]:
        """All feed items, newest first."""
        return sorted(self._feed_items.values(), key=lambda item: item.created_at, reverse=True)

    def get_all_feed_item_ids(self) -> list[str]:
        """All feed item ids in lexicographic order."""
        return sorted(self._feed_items)

    def listen_to_feed_item(self, item_id: str, listener: Callable[[FeedItem], Any]) -> ListenerId:
        return self._feed_item_listeners.add(item_id, listener)

    def remove_feed_item_listener(self, item_id: str, lid: ListenerId) -> None:
        self._feed_item_listeners.remove(item_id, lid)

    def listen_to_feed_items(self, listener: Callable[[list[FeedItem]], Any]) -> ListenerId:
        return self._feed_item_list_listeners.add(listener)

    def remove_feed_items_listener(self, lid: ListenerId) -> None:
        self._feed_item_list_listeners.remove(lid)

    def listen_to_feed_item_ids(self, listener: Callable[[list[str]], Any]) -> ListenerId:
        return self._feed_item_ids_listeners.add(listener)

    def remove_feed_item_ids_listener(self, lid: ListenerId) -> None:
        self._feed_item_ids_listeners.remove(lid)

    # ------------------------------------------------------------------
    # Incoming feed
    # ------------------------------------------------------------------

    def new_feed_item_ids(self, items: Iterable[FeedItem]) -> set[str]:
        """Ids among *items* the store does not hold yet."""
        return {item.id for item in items if item.id not in self._feed_items}

    def new_aggregate_ids(self, aggregates: Iterable[ShallowDiscussionAggregate | DiscussionAggregate]) -> set[str]:
        """Discussion ids among *aggregates* the store does not hold yet."""
        return {a.discussion.id for a in aggregates if a.discussion.id not in self._aggregates}

    def add_incoming_feed(self, item_ids: Iterable[str]) -> None:
        self._incoming.add(item_ids)

    def reset_incoming_feed(self) -> None:
        self._incoming.reset()

    def integrate_incoming_feed(self) -> None:
        """Clear the incoming set and refresh the main feed listeners.

        The incoming items were written when first observed, so no entity
        changes here.
        """
        self._incoming.reset()
        self._flushers[Collection.AGGREGATES]()
        self._flushers[Collection.FEED_ITEMS]()

    def get_incoming_feed_items(self) -> frozenset[str]:
        return self._incoming.items

    def count_incoming_feed_items(self) -> int:
        return self._incoming.count()

    def listen_to_incoming(self, listener: Callable[[frozenset[str]], Any]) -> ListenerId:
        return self._incoming.listen(listener)

    def remove_incoming_listener(self, lid: ListenerId) -> None:
        self._incoming.remove_listener(lid)

"""Ingestion application helpers.

This module centralizes how decoded API responses are written into a
:class:`pygatz.state.store.FrontendStore`:

- every response is applied inside one store transaction, so collection
  listeners fire once per response rather than once per entity;
- users and groups are written before the discussions that reference them,
  so aggregates hydrate participants from a populated contact store;
- aggregates are written before the feed items that point at them.
"""

from __future__ import annotations

import logging

from pygatz.ingestion.feed import feed_aggregates
from pygatz.models.discussion import DiscussionAggregate
from pygatz.models.responses import (
    DiscussionsFeedResponse,
    ItemsFeedResponse,
    MeResponse,
    SearchResponse,
)
from pygatz.state.store import FrontendStore

_logger = logging.getLogger(__name__)


def store_me_result(store: FrontendStore, me: MeResponse) -> None:
    """Apply an ``/api/me`` response.

    Absent fields leave the corresponding state untouched.  The user's own
    id is never recorded as one of their contacts.
    """
    with store.transaction():
        if me.user is not None:
            store.set_me(me.user)
            store.upsert_contact(me.user.as_contact())
        if me.groups is not None:
            for group in me.groups:
                store.upsert_group(group)
        if me.contacts is not None:
            my_id = me.user.id if me.user is not None else None
            for contact in me.contacts:
                if contact.id == my_id:
                    continue
                store.upsert_contact(contact)
                store.add_contact_id(contact.id)
        if me.contact_requests is not None:
            store.add_pending_contact_requests(me.contact_requests)
        if me.flags is not None:
            store.set_feature_flags(me.flags.values)


def apply_feed_response(
    store: FrontendStore,
    response: DiscussionsFeedResponse | ItemsFeedResponse,
) -> list[DiscussionAggregate]:
    """Write a feed page into the store and return its hydrated aggregates.

    The response is fully validated (see :func:`feed_aggregates`) before
    anything is written.
    """
    shallow = feed_aggregates(response)
    with store.transaction():
        for user in response.users:
            store.upsert_contact(user)
        for group in response.groups:
            store.upsert_group(group)
        for aggregate in shallow:
            store.upsert_shallow_aggregate(aggregate)
        if isinstance(response, ItemsFeedResponse):
            for item in response.items:
                store.upsert_feed_item(item)
    _logger.debug("Applied feed page: %d aggregate(s)", len(shallow))
    return _stored_aggregates(store, [a.discussion.id for a in shallow])


def apply_incoming_feed_response(
    store: FrontendStore,
    response: DiscussionsFeedResponse | ItemsFeedResponse,
) -> set[str]:
    """Write a background feed page and stage its new items as incoming.

    New item ids are computed against the store before anything is written.
    Returns the ids that were staged.
    """
    shallow = feed_aggregates(response)
    new_item_ids: set[str] = set()
    if isinstance(response, ItemsFeedResponse):
        new_item_ids = store.new_feed_item_ids(response.items)

    with store.transaction():
        for user in response.users:
            store.upsert_contact(user)
        for group in response.groups:
            store.upsert_group(group)
        store.add_incoming_feed(new_item_ids)
        for aggregate in shallow:
            store.upsert_shallow_aggregate(aggregate)
        if isinstance(response, ItemsFeedResponse):
            for item in response.items:
                store.upsert_feed_item(item)
    _logger.debug("Staged %d incoming feed item(s)", len(new_item_ids))
    return new_item_ids


def apply_search_response(store: FrontendStore, response: SearchResponse) -> list[DiscussionAggregate]:
    """Write search results into the store and return their aggregates.

    An empty result leaves the store untouched.
    """
    if not response.discussions:
        return []
    with store.transaction():
        for user in response.users:
            store.upsert_contact(user)
        for group in response.groups:
            store.upsert_group(group)
        for aggregate in response.discussions:
            store.upsert_shallow_aggregate(aggregate)
    return _stored_aggregates(store, [a.discussion.id for a in response.discussions])


def _stored_aggregates(store: FrontendStore, dids: list[str]) -> list[DiscussionAggregate]:
    aggregates: list[DiscussionAggregate] = []
    for did in dids:
        aggregate = store.get_aggregate(did)
        if aggregate is not None:
            aggregates.append(aggregate)
    return aggregates

"""Collection identifiers used for transaction bookkeeping."""

from __future__ import annotations

from enum import StrEnum


class Collection(StrEnum):
    """A collection-level listener set that can be marked dirty.

    Declaration order is the order in which dirty collections are flushed
    when a transaction closes.
    """

    CONTACTS = "contacts"
    GROUPS = "groups"
    DISCUSSIONS = "discussions"
    AGGREGATES = "aggregates"
    FEED_ITEMS = "feed_items"
    FEED_ITEM_IDS = "feed_item_ids"
    AGGREGATE_IDS = "aggregate_ids"


#: Flush order at transaction close.
FLUSH_ORDER: tuple[Collection, ...] = tuple(Collection)

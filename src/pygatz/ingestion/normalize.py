"""Normalization helpers.

Centralizes how queries are reduced to a stable identity and how loosely
typed feed references are inspected.
"""

from __future__ import annotations

import json
from typing import Any

from pygatz.models.feed import FeedQuery


def feed_query_key(query: FeedQuery) -> str:
    """Canonical key of *query*, ignoring its pagination cursor.

    Two queries that differ only in ``last_id`` (or in field order) map to
    the same key, so they share a cache entry and a cursor.
    """
    dumped = query.model_dump(mode="json", exclude={"last_id"}, exclude_none=True)
    return json.dumps(dumped, sort_keys=True, separators=(",", ":"))


def is_discussion_ref(ref_type: str | None) -> bool:
    return ref_type == "discussion"


def missing_ref_keys(ref: Any, required: tuple[str, ...]) -> list[str]:
    """Return which of *required* keys are absent from a feed-item ``ref``.

    A ref that is not a mapping at all lacks every key.
    """
    if not isinstance(ref, dict):
        return list(required)
    return [key for key in required if ref.get(key) is None]

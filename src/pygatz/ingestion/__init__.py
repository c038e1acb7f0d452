"""Ingestion layer.

This package contains adapters that decode data fetched over HTTP or
received from the push channel and write it into the store.
"""

from pygatz.ingestion.apply import (
    apply_feed_response,
    apply_incoming_feed_response,
    apply_search_response,
    store_me_result,
)
from pygatz.ingestion.feed import decode_feed_response, decode_search_response, feed_aggregates
from pygatz.ingestion.normalize import feed_query_key
from pygatz.ingestion.push import apply_push_event, decode_push_event

__all__ = [
    "apply_feed_response",
    "apply_incoming_feed_response",
    "apply_push_event",
    "apply_search_response",
    "decode_feed_response",
    "decode_push_event",
    "decode_search_response",
    "feed_aggregates",
    "feed_query_key",
    "store_me_result",
]

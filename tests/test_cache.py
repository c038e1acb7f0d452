from __future__ import annotations

from pygatz._cache import CursorIndex, FeedFetchCache
from pygatz.ingestion.normalize import feed_query_key
from pygatz.models.feed import FeedQuery, FeedType


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_query_key_ignores_cursor() -> None:
    a = FeedQuery(group_id="g1")
    assert feed_query_key(a) == feed_query_key(a.with_cursor("f9"))
    assert feed_query_key(a) != feed_query_key(FeedQuery(group_id="g2"))
    assert feed_query_key(a) != feed_query_key(FeedQuery(group_id="g1", feed_type=FeedType.ACTIVE_DISCUSSIONS))


def test_cache_entries_expire_after_ttl() -> None:
    clock = _FakeClock()
    cache: FeedFetchCache[str] = FeedFetchCache(30.0, clock=clock)
    query = FeedQuery()

    assert cache.get(query) is None
    cache.put(query, "page")

    clock.now = 29.9
    assert cache.get(query) == "page"
    assert cache.get(query.with_cursor("x")) == "page"

    clock.now = 30.0
    assert cache.get(query) is None


def test_cache_invalidate() -> None:
    cache: FeedFetchCache[str] = FeedFetchCache(30.0, clock=_FakeClock())
    cache.put(FeedQuery(group_id="a"), "a")
    cache.put(FeedQuery(group_id="b"), "b")

    cache.invalidate(FeedQuery(group_id="a"))
    assert cache.get(FeedQuery(group_id="a")) is None
    assert cache.get(FeedQuery(group_id="b")) == "b"

    cache.invalidate()
    assert cache.get(FeedQuery(group_id="b")) is None


def test_cursor_index() -> None:
    cursors = CursorIndex()
    query = FeedQuery(contact_id="u1")

    assert cursors.get(query) is None
    cursors.set(query.with_cursor("old"), "f1")
    assert cursors.get(query) == "f1"

    cursors.set(query, None)
    assert cursors.get(query) is None

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pygatz.exceptions import DiscussionNotFoundError
from pygatz.ingestion.push import apply_push_event, decode_push_event
from pygatz.models.discussion import HLC, Discussion, DiscussionAggregate
from pygatz.models.push import MessageAddedEvent
from pygatz.state.store import FrontendStore


def _store_with_discussion() -> FrontendStore:
    store = FrontendStore()
    store.upsert_aggregate(DiscussionAggregate(discussion=Discussion(id="d1", clock=HLC(counter=1))))
    return store


def test_decode_dispatches_on_type() -> None:
    event = decode_push_event({"type": "message_added", "message": {"id": "m1", "did": "d1"}})
    assert isinstance(event, MessageAddedEvent)

    with pytest.raises(ValidationError):
        decode_push_event({"type": "unknown"})


def test_message_added_and_deleted() -> None:
    store = _store_with_discussion()
    deleted: list[tuple[str, str]] = []
    store.listen_to_deleted_messages("d1", lambda did, mid: deleted.append((did, mid)))

    apply_push_event(
        store,
        decode_push_event(
            {
                "type": "message_added",
                "message": {"id": "m1", "did": "d1", "created_at": "2026-01-01T00:00:00Z"},
                "discussion": {"id": "d1", "clock": {"counter": 2}},
            }
        ),
    )
    assert store.get_message("d1", "m1") is not None
    discussion = store.get_discussion("d1")
    assert discussion is not None and discussion.clock == HLC(counter=2)

    apply_push_event(store, decode_push_event({"type": "message_deleted", "did": "d1", "mid": "m1"}))
    assert store.get_message("d1", "m1") is None
    assert deleted == [("d1", "m1")]


def test_message_added_to_unknown_discussion_raises() -> None:
    store = FrontendStore()
    with pytest.raises(DiscussionNotFoundError):
        apply_push_event(store, decode_push_event({"type": "message_added", "message": {"id": "m1", "did": "dx"}}))


def test_discussion_feed_item_and_contact_updates() -> None:
    store = _store_with_discussion()

    apply_push_event(store, decode_push_event({"type": "discussion_updated", "discussion": {"id": "d1", "clock": {"counter": 5}}}))
    apply_push_event(
        store,
        decode_push_event(
            {"type": "feed_item_updated", "item": {"id": "f1", "created_at": 1767268800, "ref_type": "discussion"}}
        ),
    )
    apply_push_event(store, decode_push_event({"type": "contact_updated", "contact": {"id": "u1", "name": "Alice"}}))

    aggregate = store.get_aggregate("d1")
    assert aggregate is not None and aggregate.discussion.clock == HLC(counter=5)
    assert store.get_feed_item("f1") is not None
    contact = store.get_contact("u1")
    assert contact is not None and contact.name == "Alice"

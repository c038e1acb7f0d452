from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from pygatz.exceptions import DiscussionNotFoundError
from pygatz.models.contact import Contact, PendingContactRequest, User
from pygatz.models.discussion import (
    HLC,
    Discussion,
    DiscussionAggregate,
    Message,
    ShallowDiscussionAggregate,
)
from pygatz.models.feed import FeedItem
from pygatz.models.group import Group, InviteLink, InviteLinkResponse
from pygatz.state.store import MISSING_CONTACT_NAME, FrontendStore


def _dt(second: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, 0, second, tzinfo=UTC)


def _discussion(did: str = "d1", counter: int = 1, **kwargs: Any) -> Discussion:
    return Discussion(id=did, clock=HLC(counter=counter, node="n1"), **kwargs)


def _message(mid: str, did: str = "d1", second: int = 0, text: str = "hi") -> Message:
    return Message(id=mid, did=did, user_id="u1", text=text, created_at=_dt(second))


def _aggregate(did: str = "d1", counter: int = 1, messages: list[Message] | None = None) -> DiscussionAggregate:
    return DiscussionAggregate(discussion=_discussion(did, counter), messages=messages or [])


def _feed_item(item_id: str, second: int = 0, dismissed_by: list[str] | None = None) -> FeedItem:
    return FeedItem(
        id=item_id,
        created_at=_dt(second),
        ref_type="discussion",
        dismissed_by=dismissed_by or [],
    )


class TestContacts:
    def test_worked_example(self) -> None:
        store = FrontendStore()
        calls: list[list[Contact]] = []
        store.listen_to_contacts(calls.append)

        store.upsert_contact(Contact(id="u1", name="Alice", avatar=""))
        assert [c.id for c in store.get_all_contacts()] == ["u1"]
        assert len(calls) == 1

        store.upsert_contact(Contact(id="u1", name="Alice", avatar=""))
        assert [c.id for c in store.get_all_contacts()] == ["u1"]
        assert len(calls) == 1

    def test_idempotent_upsert_notifies_entity_listener_once(self) -> None:
        store = FrontendStore()
        seen: list[Contact] = []
        store.listen_to_contact("u1", seen.append)

        store.upsert_contact(Contact(id="u1", name="Alice"))
        store.upsert_contact(Contact(id="u1", name="Alice"))

        assert len(seen) == 1

    def test_profile_changes_alone_are_not_a_change(self) -> None:
        store = FrontendStore()
        store.upsert_contact(Contact(id="u1", name="Alice", profile={"bio": "a"}))
        store.upsert_contact(Contact(id="u1", name="Alice", profile={"bio": "b"}))

        contact = store.get_contact("u1")
        assert contact is not None
        assert contact.profile == {"bio": "a"}

    def test_upsert_none_is_noop(self) -> None:
        store = FrontendStore()
        calls: list[Any] = []
        store.listen_to_contacts(calls.append)

        store.upsert_contact(None)

        assert calls == []
        assert store.get_all_contacts() == []

    def test_placeholder_for_unknown_contact(self) -> None:
        store = FrontendStore()
        a = store.get_contact_or_placeholder("ghost")
        b = store.get_contact_or_placeholder("ghost")

        assert a.name == MISSING_CONTACT_NAME
        assert a.id != b.id
        assert a != b
        assert store.get_contact("ghost") is None

    def test_placeholder_ids_are_injectable(self) -> None:
        ids = iter(["p1", "p2"])
        store = FrontendStore(placeholder_id_factory=lambda: next(ids))

        assert store.get_contact_or_placeholder("x").id == "p1"
        assert store.get_contact_or_placeholder("x").id == "p2"

    def test_known_contact_is_returned_instead_of_placeholder(self) -> None:
        store = FrontendStore()
        store.upsert_contact(Contact(id="u1", name="Alice"))
        assert store.get_contact_or_placeholder("u1").name == "Alice"

    def test_name_index_follows_renames(self) -> None:
        store = FrontendStore()
        store.upsert_contact(Contact(id="u1", name="Alice"))
        store.upsert_contact(Contact(id="u1", name="Alicia"))

        assert store.maybe_contact_by_name("Alice") is None
        found = store.maybe_contact_by_name("Alicia")
        assert found is not None and found.id == "u1"

    def test_name_collision_last_write_wins(self) -> None:
        store = FrontendStore()
        store.upsert_contact(Contact(id="u1", name="Sam"))
        store.upsert_contact(Contact(id="u2", name="Sam"))

        found = store.maybe_contact_by_name("Sam")
        assert found is not None and found.id == "u2"

        # Renaming u1 must not drop u2's entry.
        store.upsert_contact(Contact(id="u1", name="Samuel"))
        found = store.maybe_contact_by_name("Sam")
        assert found is not None and found.id == "u2"

    def test_remove_listener_stops_notifications(self) -> None:
        store = FrontendStore()
        seen: list[Contact] = []
        lid = store.listen_to_contact("u1", seen.append)
        store.remove_contact_listener("u1", lid)
        store.remove_contact_listener("u1", lid)
        store.remove_contact_listener("unknown", "nope")

        store.upsert_contact(Contact(id="u1", name="Alice"))
        assert seen == []

    def test_listener_ids_are_deterministic(self) -> None:
        store = FrontendStore()
        assert store.listen_to_contacts(lambda _: None) == "l1"
        assert store.listen_to_contact("u1", lambda _: None) == "l2"

    def test_stores_are_independent(self) -> None:
        a = FrontendStore()
        b = FrontendStore()
        a.upsert_contact(Contact(id="u1", name="Alice"))
        assert b.get_contact("u1") is None


class TestListenerIsolation:
    def test_failing_listener_does_not_block_others(self, caplog: pytest.LogCaptureFixture) -> None:
        store = FrontendStore()
        seen: list[Contact] = []

        def _boom(_: Contact) -> None:
            raise RuntimeError("boom")

        store.listen_to_contact("u1", _boom)
        store.listen_to_contact("u1", seen.append)

        store.upsert_contact(Contact(id="u1", name="Alice"))

        assert len(seen) == 1
        assert store.get_contact("u1") is not None
        assert "failed" in caplog.text

    def test_listener_may_unsubscribe_itself(self) -> None:
        store = FrontendStore()
        seen: list[str] = []
        lid = ""

        def _once(contact: Contact) -> None:
            seen.append(contact.name)
            store.remove_contact_listener("u1", lid)

        lid = store.listen_to_contact("u1", _once)
        store.upsert_contact(Contact(id="u1", name="A"))
        store.upsert_contact(Contact(id="u1", name="B"))

        assert seen == ["A"]


class TestGroupsAndInviteLinks:
    def test_group_upsert_and_listeners(self) -> None:
        store = FrontendStore()
        one: list[Group] = []
        many: list[list[Group]] = []
        store.listen_to_group("g1", one.append)
        store.listen_to_groups(many.append)

        store.upsert_group(Group(id="g1", name="Climbers"))
        store.upsert_group(Group(id="g1", name="Climbers"))
        store.upsert_group(Group(id="g1", name="Climbing"))

        assert len(one) == 2
        assert len(many) == 2
        group = store.get_group("g1")
        assert group is not None and group.name == "Climbing"
        assert [g.id for g in store.get_all_groups()] == ["g1"]

    def test_invite_link_response(self) -> None:
        store = FrontendStore()
        seen: list[InviteLinkResponse] = []
        store.listen_to_invite_link("il1", seen.append)

        response = InviteLinkResponse(
            type="group",
            invite_link=InviteLink(id="il1", type="group", code="ABC"),
        )
        store.upsert_invite_link_response(response)
        store.upsert_invite_link_response(response)

        assert store.get_invite_link_response("il1") == response
        assert len(seen) == 1


class TestDiscussionsAndAggregates:
    def test_aggregate_upsert_writes_discussion(self) -> None:
        store = FrontendStore()
        aggregate = _aggregate("d1", counter=3)

        store.upsert_aggregate(aggregate)

        discussion = store.get_discussion("d1")
        assert discussion is not None
        assert discussion.clock == aggregate.discussion.clock

    def test_discussion_upsert_updates_existing_aggregate(self) -> None:
        store = FrontendStore()
        store.upsert_aggregate(_aggregate("d1", counter=1, messages=[_message("m1")]))
        seen: list[DiscussionAggregate] = []
        store.listen_to_aggregate("d1", seen.append)

        store.upsert_discussion(_discussion("d1", counter=2, name="renamed"))

        aggregate = store.get_aggregate("d1")
        assert aggregate is not None
        assert aggregate.discussion.clock == HLC(counter=2, node="n1")
        assert aggregate.discussion.name == "renamed"
        assert [m.id for m in aggregate.messages] == ["m1"]
        assert len(seen) == 1

    def test_discussion_without_aggregate_creates_no_aggregate(self) -> None:
        store = FrontendStore()
        store.upsert_discussion(_discussion("d1"))
        assert store.get_aggregate("d1") is None
        assert store.get_discussion("d1") is not None

    def test_crdt_equal_discussion_is_not_rewritten(self) -> None:
        store = FrontendStore()
        seen: list[Discussion] = []
        store.listen_to_discussion("d1", seen.append)

        store.upsert_discussion(_discussion("d1", counter=1, name="a"))
        # Same clock: same logical state whatever the payload says.
        store.upsert_discussion(_discussion("d1", counter=1, name="b"))

        assert len(seen) == 1

    def test_injected_oracle_decides_equality(self) -> None:
        class _AlwaysEqual:
            def equals(self, a: Any, b: Any) -> bool:
                return a is not None and b is not None

        store = FrontendStore(crdt_oracle=_AlwaysEqual())
        store.upsert_discussion(_discussion("d1", counter=1))
        store.upsert_discussion(_discussion("d1", counter=2))

        discussion = store.get_discussion("d1")
        assert discussion is not None and discussion.clock is not None
        assert discussion.clock.counter == 1

    def test_shallow_aggregate_hydrates_users(self) -> None:
        store = FrontendStore(placeholder_id_factory=lambda: "missing")
        store.upsert_contact(Contact(id="u1", name="Alice"))

        store.upsert_shallow_aggregate(
            ShallowDiscussionAggregate(discussion=_discussion("d1"), user_ids=["u1", "u2"])
        )

        aggregate = store.get_aggregate("d1")
        assert aggregate is not None
        assert [u.name for u in aggregate.users] == ["Alice", MISSING_CONTACT_NAME]

    def test_aggregate_id_listeners_fire_on_first_add_only(self) -> None:
        store = FrontendStore()
        ids: list[list[str]] = []
        lists: list[list[DiscussionAggregate]] = []
        store.listen_to_aggregate_ids(ids.append)
        store.listen_to_aggregates(lists.append)

        store.upsert_aggregate(_aggregate("d1", counter=1))
        store.upsert_aggregate(_aggregate("d1", counter=2))

        assert ids == [["d1"]]
        assert len(lists) == 2
        assert store.get_all_aggregate_ids() == ["d1"]


class TestMessages:
    def test_append_message_merges_newest_first(self) -> None:
        store = FrontendStore()
        store.upsert_aggregate(_aggregate("d1", messages=[_message("m1", second=1)]))

        store.append_message(_message("m2", second=5))
        store.append_message(_message("m1", second=1, text="edited"))

        aggregate = store.get_aggregate("d1")
        assert aggregate is not None
        assert [m.id for m in aggregate.messages] == ["m2", "m1"]
        message = store.get_message("d1", "m1")
        assert message is not None and message.text == "edited"

    def test_append_message_to_unknown_discussion_raises(self) -> None:
        store = FrontendStore()
        with pytest.raises(DiscussionNotFoundError):
            store.append_message(_message("m1", did="nope"))

    def test_delete_message_notifies_deleted_listeners(self) -> None:
        store = FrontendStore()
        store.upsert_aggregate(_aggregate("d1", messages=[_message("m1"), _message("m2", second=2)]))
        deleted: list[tuple[str, str]] = []
        store.listen_to_deleted_messages("d1", lambda did, mid: deleted.append((did, mid)))

        store.delete_message("d1", "m1")

        assert deleted == [("d1", "m1")]
        assert store.get_message("d1", "m1") is None
        assert store.get_message("d1", "m2") is not None

    def test_delete_message_unknown_discussion_is_noop(self) -> None:
        store = FrontendStore()
        store.delete_message("nope", "m1")
        assert store.get_aggregate("nope") is None


class TestFeedItems:
    def test_items_sorted_newest_first_and_ids_lexicographic(self) -> None:
        store = FrontendStore()
        store.upsert_feed_item(_feed_item("b", second=1))
        store.upsert_feed_item(_feed_item("a", second=9))
        store.upsert_feed_item(_feed_item("c", second=5))

        assert [i.id for i in store.get_all_feed_items()] == ["a", "c", "b"]
        assert store.get_all_feed_item_ids() == ["a", "b", "c"]

    def test_dismissed_by_change_refires_id_listeners(self) -> None:
        store = FrontendStore()
        ids: list[list[str]] = []
        store.listen_to_feed_item_ids(ids.append)

        store.upsert_feed_item(_feed_item("f1", dismissed_by=["u1", "u2"]))
        store.upsert_feed_item(_feed_item("f1", dismissed_by=["u1", "u2"]))
        assert len(ids) == 1

        store.upsert_feed_item(_feed_item("f1", dismissed_by=["u2", "u1"]))
        assert len(ids) == 2

        store.upsert_feed_item(_feed_item("f1", dismissed_by=["u2", "u1", "u3"]))
        assert len(ids) == 3

    def test_non_dismissal_change_fires_list_but_not_id_listeners(self) -> None:
        store = FrontendStore()
        ids: list[list[str]] = []
        items: list[list[FeedItem]] = []
        store.listen_to_feed_item_ids(ids.append)
        store.listen_to_feed_items(items.append)

        store.upsert_feed_item(_feed_item("f1"))
        store.upsert_feed_item(FeedItem(id="f1", created_at=_dt(), ref_type="discussion", uids=["u9"]))

        assert len(ids) == 1
        assert len(items) == 2


class TestMeAndContactIds:
    def test_set_me_removes_self_from_contacts(self) -> None:
        store = FrontendStore()
        store.add_contact_id("me")
        seen: list[User] = []
        store.listen_to_me(seen.append)

        store.set_me(User(id="me", name="Me"))

        assert store.get_my_contacts() == frozenset()
        assert len(seen) == 1
        me = store.get_me()
        assert me is not None and me.id == "me"

    def test_add_contact_id_ignores_me(self) -> None:
        store = FrontendStore()
        store.set_me(User(id="me"))
        store.add_contact_id("me")
        store.add_contact_id("u1")

        assert store.get_my_contacts() == frozenset({"u1"})
        assert store.is_my_contact("u1")
        store.remove_contact_id("u1")
        assert not store.is_my_contact("u1")

    def test_is_my_contact_rejects_empty_id(self) -> None:
        with pytest.raises(ValueError):
            FrontendStore().is_my_contact("")


class TestPendingRequestsAndFlags:
    def test_pending_requests_are_keyed_by_id(self) -> None:
        store = FrontendStore()
        counts: list[int] = []
        store.listen_to_pending_contact_requests_count(counts.append)
        request = PendingContactRequest(id="r1", contact=Contact(id="u1"))

        store.add_pending_contact_requests([request])
        store.add_pending_contact_requests([request, PendingContactRequest(id="r2", contact=Contact(id="u2"))])
        store.remove_pending_contact_request("r1")
        store.remove_pending_contact_request("unknown")

        assert counts == [1, 2, 1, 1]
        assert store.get_pending_contact_requests_count() == 1

    def test_feature_flags(self) -> None:
        store = FrontendStore()
        assert store.get_feature_flag("global_invites_enabled") is True
        assert store.get_feature_flag("nonexistent") is False

        store.set_feature_flags({"post_to_friends_of_friends": True})

        assert store.get_feature_flag("post_to_friends_of_friends") is True
        assert store.get_feature_flag("global_invites_enabled") is False

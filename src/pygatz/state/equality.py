"""Change detection run before every store write.

Two strategies:

* shallow equality over a fixed subset of fields for simple aggregates;
* CRDT equality for documents stamped with a hybrid logical clock,
  delegated to an injected :class:`CrdtOracle`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from pygatz.models.contact import Contact
from pygatz.models.discussion import HLC, DiscussionAggregate
from pygatz.models.feed import FeedItem


class _CrdtDocument(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def clock(self) -> HLC | None: ...


class CrdtOracle(Protocol):
    """Decides whether two CRDT snapshots hold the same logical state."""

    def equals(self, a: _CrdtDocument | None, b: _CrdtDocument | None) -> bool: ...


class ClockCrdtOracle:
    """Default oracle: same id and same hybrid logical clock.

    The server bumps the clock on every merge, so an equal clock means the
    same logical state whatever transport delivered it.
    """

    def equals(self, a: _CrdtDocument | None, b: _CrdtDocument | None) -> bool:
        if a is None or b is None:
            return a is None and b is None
        return a.id == b.id and a.clock == b.clock


def contacts_equal(a: Contact | None, b: Contact | None) -> bool:
    """Shallow equality over the rendered contact fields (id, name, avatar)."""
    if a is b:
        return True
    if a is None or b is None:
        return False
    return a.id == b.id and a.name == b.name and a.avatar == b.avatar


def values_equal(a: object | None, b: object | None) -> bool:
    """Field-by-field value equality for simple aggregates."""
    if a is None or b is None:
        return a is None and b is None
    return a == b


def aggregates_equal(oracle: CrdtOracle, a: DiscussionAggregate | None, b: DiscussionAggregate | None) -> bool:
    """Aggregate equality: CRDT-equal discussions and equal message lists.

    ``users`` is derived from the contact store (and may hold placeholders
    with ephemeral ids), so it does not take part in the comparison.
    """
    if a is None or b is None:
        return a is None and b is None
    return oracle.equals(a.discussion, b.discussion) and a.messages == b.messages


def _as_list(values: Iterable[str] | None) -> list[str]:
    return list(values or ())


def dismissed_by_changed(old: FeedItem | None, new: FeedItem) -> bool:
    """Whether the ``dismissed_by`` list changed.

    The list is compared in order, as the server sends it, so a reordering
    counts as a change.  A missing list is the empty list.  A first write
    (no *old*) is not a dismissal change.
    """
    if old is None:
        return False
    return _as_list(old.dismissed_by) != _as_list(new.dismissed_by)


def feed_items_equal(a: FeedItem | None, b: FeedItem | None) -> bool:
    """Value equality for feed items."""
    if a is None or b is None:
        return a is None and b is None
    if dismissed_by_changed(a, b):
        return False
    return a.model_dump(exclude={"dismissed_by"}) == b.model_dump(exclude={"dismissed_by"})

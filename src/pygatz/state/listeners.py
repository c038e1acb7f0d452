"""Listener registries.

Four shapes of the same pub/sub primitive:

* :class:`EntityListeners` - callbacks registered per entity id.
* :class:`ListListeners` - callbacks interested in a whole collection.
* :class:`SingleValueListeners` - callbacks for one value (me, a count).
* :class:`IdListListeners` - callbacks for the list of ids of a collection.

Every callback runs through :func:`call_listener`: an exception raised by one
subscriber is logged and swallowed so it can't block the other subscribers
or reach the code that triggered the notification.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Hashable
from typing import Any, Generic, TypeVar

_logger = logging.getLogger(__name__)

ListenerId = str

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ListenerIdFactory:
    """Monotonic listener-id generator (``"l1"``, ``"l2"``, ...).

    One factory per store keeps registration identity deterministic, so two
    stores in the same process never share state.
    """

    def __init__(self, prefix: str = "l") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def __call__(self) -> ListenerId:
        return f"{self._prefix}{next(self._counter)}"


def call_listener(listener: Callable[..., Any], *args: Any) -> None:
    """Invoke *listener*, logging and swallowing any exception it raises."""
    try:
        listener(*args)
    except Exception:
        _logger.exception("Listener %r failed", listener)


class EntityListeners(Generic[K]):
    """Callbacks keyed by entity id, then by listener id.

    Removal is a dict pop, so unsubscribing never scans other listeners.
    """

    def __init__(self, id_factory: Callable[[], ListenerId]) -> None:
        self._id_factory = id_factory
        self._listeners: dict[K, dict[ListenerId, Callable[..., Any]]] = {}

    def add(self, key: K, listener: Callable[..., Any]) -> ListenerId:
        lid = self._id_factory()
        self._listeners.setdefault(key, {})[lid] = listener
        return lid

    def remove(self, key: K, lid: ListenerId) -> None:
        listeners = self._listeners.get(key)
        if listeners is None:
            return
        listeners.pop(lid, None)
        if not listeners:
            del self._listeners[key]

    def notify(self, key: K, *values: Any) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return
        # Snapshot: a callback may unsubscribe itself while we iterate.
        for listener in list(listeners.values()):
            call_listener(listener, *values)

    def count(self, key: K) -> int:
        return len(self._listeners.get(key, {}))


class _FlatListeners(Generic[V]):
    def __init__(self, id_factory: Callable[[], ListenerId]) -> None:
        self._id_factory = id_factory
        self._listeners: dict[ListenerId, Callable[[V], Any]] = {}

    def add(self, listener: Callable[[V], Any]) -> ListenerId:
        lid = self._id_factory()
        self._listeners[lid] = listener
        return lid

    def remove(self, lid: ListenerId) -> None:
        self._listeners.pop(lid, None)

    def notify(self, value: V) -> None:
        for listener in list(self._listeners.values()):
            call_listener(listener, value)

    def __len__(self) -> int:
        return len(self._listeners)


class ListListeners(_FlatListeners[list[V]]):
    """Callbacks receiving a fresh snapshot of a whole collection."""


class SingleValueListeners(_FlatListeners[V]):
    """Callbacks receiving one value."""


class IdListListeners(_FlatListeners[list[K]]):
    """Callbacks receiving the ids of a collection."""

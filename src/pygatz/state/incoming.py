"""Tracker for feed items known to exist remotely but not yet surfaced."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pygatz.state.listeners import ListenerId, SingleValueListeners

_logger = logging.getLogger(__name__)


class IncomingFeed:
    """Process-local set of incoming feed item ids.

    The set only grows (set union) until :meth:`reset`.  Listeners are
    notified when membership differs from the last snapshot they were sent,
    so re-staging ids that are already incoming does not notify twice.
    """

    def __init__(self, id_factory: Callable[[], ListenerId]) -> None:
        self._items: frozenset[str] = frozenset()
        self._last_notified: frozenset[str] = frozenset()
        self._listeners: SingleValueListeners[frozenset[str]] = SingleValueListeners(id_factory)

    @property
    def items(self) -> frozenset[str]:
        return self._items

    def count(self) -> int:
        return len(self._items)

    def add(self, ids: Iterable[str]) -> None:
        self._items = self._items | frozenset(ids)
        self._notify_if_changed()

    def reset(self) -> None:
        """Clear the set and notify once with the empty set."""
        self._items = frozenset()
        self._last_notified = self._items
        _logger.debug("Incoming feed reset")
        self._listeners.notify(self._items)

    def listen(self, listener: Callable[[frozenset[str]], Any]) -> ListenerId:
        return self._listeners.add(listener)

    def remove_listener(self, lid: ListenerId) -> None:
        self._listeners.remove(lid)

    def _notify_if_changed(self) -> None:
        if self._items == self._last_notified:
            return
        self._last_notified = self._items
        _logger.debug("Incoming feed now holds %d item(s)", len(self._items))
        self._listeners.notify(self._items)

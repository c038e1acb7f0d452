"""State/store layer.

This package is the single source of truth for how data fetched over HTTP
or received as push events is merged into the client's in-memory view, and
for telling subscribers when that view changes.
"""

from pygatz.state.equality import ClockCrdtOracle, CrdtOracle
from pygatz.state.events import FLUSH_ORDER, Collection
from pygatz.state.incoming import IncomingFeed
from pygatz.state.listeners import ListenerId, ListenerIdFactory
from pygatz.state.store import MISSING_CONTACT_NAME, FrontendStore

__all__ = [
    "FLUSH_ORDER",
    "MISSING_CONTACT_NAME",
    "ClockCrdtOracle",
    "Collection",
    "CrdtOracle",
    "FrontendStore",
    "IncomingFeed",
    "ListenerId",
    "ListenerIdFactory",
]

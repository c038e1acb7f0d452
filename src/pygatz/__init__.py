"""pygatz - Reactive client-side data store for the Gatz chat API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygatz")
except PackageNotFoundError:
    __version__ = "0+local"
from pygatz.client import FeedClient, FeedResult
from pygatz.config import GatzConfig
from pygatz.exceptions import (
    DiscussionNotFoundError,
    GatzConfigError,
    GatzError,
    GatzTransportError,
    InvalidFeedItemError,
)
from pygatz.gateway import Gateway, HttpGateway
from pygatz.models import (
    HLC,
    Contact,
    Discussion,
    DiscussionAggregate,
    FeedItem,
    FeedQuery,
    FeedType,
    Group,
    InviteLinkResponse,
    Message,
    ShallowDiscussionAggregate,
    User,
)
from pygatz.state import ClockCrdtOracle, CrdtOracle, FrontendStore

__all__ = [
    "__version__",
    "HLC",
    "ClockCrdtOracle",
    "Contact",
    "CrdtOracle",
    "Discussion",
    "DiscussionAggregate",
    "DiscussionNotFoundError",
    "FeedClient",
    "FeedItem",
    "FeedQuery",
    "FeedResult",
    "FeedType",
    "FrontendStore",
    "Gateway",
    "GatzConfig",
    "GatzConfigError",
    "GatzError",
    "GatzTransportError",
    "Group",
    "HttpGateway",
    "InvalidFeedItemError",
    "InviteLinkResponse",
    "Message",
    "ShallowDiscussionAggregate",
    "User",
]

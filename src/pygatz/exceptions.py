"""Custom exception hierarchy for pygatz."""

from __future__ import annotations


class GatzError(Exception):
    """Base exception for all pygatz errors."""


class GatzConfigError(GatzError):
    """Invalid or missing configuration."""


class GatzTransportError(GatzError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class InvalidFeedItemError(GatzError):
    """A feed item reference does not have the shape its ``ref_type`` promises.

    Raised while ingesting a feed when a discussion reference lacks the
    embedded ``messages`` or ``members`` needed to build a discussion
    aggregate.  This is a client/server shape mismatch and is never
    absorbed into a partially populated aggregate.
    """

    def __init__(self, message: str, *, item_id: str = "") -> None:
        self.item_id = item_id
        super().__init__(message)


class DiscussionNotFoundError(GatzError):
    """A message was appended to a discussion the store does not hold."""

    def __init__(self, did: str) -> None:
        self.did = did
        super().__init__(f"Discussion {did} not found")

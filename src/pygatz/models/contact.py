"""Contact, user and contact-request models."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from pygatz.models._base import GatzBaseModel

#: Feature flags assumed until the server sends its own values.
DEFAULT_FEATURE_FLAGS: dict[str, bool] = {
    "post_to_friends_of_friends": False,
    "global_invites_enabled": True,
}


class Contact(GatzBaseModel):
    """A user as seen by other users: the fields needed to render an author."""

    id: str
    name: str = ""
    avatar: str | None = ""
    profile: dict[str, Any] | None = None


class User(GatzBaseModel):
    """The authenticated user.

    Carries the contact fields plus whatever account fields the server
    sends (phone number, settings, ...), which are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    avatar: str | None = ""
    profile: dict[str, Any] | None = None

    def as_contact(self) -> Contact:
        """Project the user down to the fields shared with :class:`Contact`."""
        return Contact(id=self.id, name=self.name, avatar=self.avatar, profile=self.profile)


class PendingContactRequest(GatzBaseModel):
    """A contact request waiting for the authenticated user's answer."""

    id: str
    contact: Contact


class FeatureFlagsEnvelope(GatzBaseModel):
    """``flags`` field of the ``/api/me`` response."""

    values: dict[str, bool] = Field(default_factory=dict)

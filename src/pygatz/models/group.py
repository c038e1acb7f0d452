"""Group and invite-link models."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from pygatz.models._base import GatzBaseModel, GatzTimestamp
from pygatz.models.contact import Contact


class Group(GatzBaseModel):
    """A group of users that discussions can be posted to."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    description: str | None = None
    avatar: str | None = None
    owner: str | None = None
    created_by: str | None = None
    created_at: GatzTimestamp | None = None
    updated_at: GatzTimestamp | None = None
    admins: list[str] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)


class InviteLink(GatzBaseModel):
    """An invite link (group, contact or crew)."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str = ""
    code: str | None = None
    group_id: str | None = None
    contact_id: str | None = None


class InviteLinkResponse(GatzBaseModel):
    """An invite link with everything needed to render its screen."""

    model_config = ConfigDict(extra="allow")

    type: str = ""
    invite_link: InviteLink
    invited_by: Contact | None = None
    group: Group | None = None
    contact: Contact | None = None
    members: list[Contact] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.invite_link.id

"""Single sign-on record domain entity."""

from pydantic import Field

from src.forum_admin.entities.core._base import Entity


class SingleSignOnRecord(Entity):
    """Maps an identity provider's ``external_id`` to a local user.

    Created on the first successful reconciliation and removed together with
    its user. A mapping whose user row has gone is reassigned to the next user
    created for that identity. The ``external_*`` fields remember what the
    provider last asserted, independently of which values the override policy
    applied.
    """

    external_id: str = Field(description="Stable identifier issued by the provider")
    user_id: str = Field(description="Internal user ID this identity maps to")
    last_payload: str | None = Field(default=None, description="Last decoded payload")
    external_email: str | None = Field(default=None)
    external_username: str | None = Field(default=None)
    external_name: str | None = Field(default=None)
    external_avatar_url: str | None = Field(default=None)

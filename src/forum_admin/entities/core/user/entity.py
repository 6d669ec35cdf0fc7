"""User domain entity."""

from datetime import datetime
from typing import Any

from pydantic import Field

from src.forum_admin.entities.core._base import Entity, utc_now

TRUST_LEVELS = range(0, 5)


class User(Entity):
    """A forum account.

    This is the domain model that contains business logic and validation.
    ``email`` may be ``None`` only on records that have not passed validation
    yet; persisted users always carry one.
    """

    username: str = Field(description="Unique, sanitized handle")
    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Primary email address")
    ip_address: str | None = Field(default=None, description="Last known IP address")

    admin: bool = Field(default=False)
    moderator: bool = Field(default=False)
    active: bool = Field(default=True)
    approved: bool = Field(default=False)
    approved_by_id: str | None = Field(default=None)
    approved_at: datetime | None = Field(default=None)
    email_confirmed: bool = Field(default=False)

    trust_level: int = Field(default=0, ge=0, le=4)
    trust_level_locked: bool = Field(default=False)

    suspended_at: datetime | None = Field(default=None)
    suspended_till: datetime | None = Field(default=None)
    silenced_till: datetime | None = Field(default=None)

    post_count: int = Field(default=0, ge=0)
    title: str | None = Field(default=None)
    avatar_url: str | None = Field(default=None)
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_staff(self) -> bool:
        return self.admin or self.moderator

    @property
    def is_suspended(self) -> bool:
        return self.suspended_till is not None and self.suspended_till > utc_now()

    @property
    def is_silenced(self) -> bool:
        return self.silenced_till is not None and self.silenced_till > utc_now()

    def __eq__(self, other: Any) -> bool:
        """Compare users by business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.username == other.username
            and self.name == other.name
            and self.email == other.email
            and self.admin == other.admin
            and self.moderator == other.moderator
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((self.id, self.username, self.name, self.email))

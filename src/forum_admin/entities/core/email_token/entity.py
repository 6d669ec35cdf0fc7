"""Email token domain entity."""

from pydantic import Field

from src.forum_admin.entities.core._base import Entity


class EmailToken(Entity):
    """Single-use token mailed to a user to confirm an address or set a password."""

    token: str
    user_id: str
    email: str
    confirmed: bool = Field(default=False)
    expired: bool = Field(default=False)

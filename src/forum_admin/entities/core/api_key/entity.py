"""API key domain entity."""

from pydantic import Field

from src.forum_admin.entities.core._base import Entity


class ApiKey(Entity):
    """Credential that lets a user call the admin API on their own behalf."""

    key: str = Field(description="Secret key presented in the Api-Key header")
    user_id: str = Field(description="User the key acts as")
    created_by_id: str | None = Field(default=None, description="Staff who issued it")

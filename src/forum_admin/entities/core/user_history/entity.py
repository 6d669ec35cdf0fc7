"""Staff action history domain entity."""

from enum import StrEnum

from pydantic import Field

from src.forum_admin.entities.core._base import Entity


class UserHistoryAction(StrEnum):
    """Staff actions recorded in the audit log."""

    APPROVE_USER = "approve_user"
    SUSPEND_USER = "suspend_user"
    UNSUSPEND_USER = "unsuspend_user"
    SILENCE_USER = "silence_user"
    UNSILENCE_USER = "unsilence_user"
    GRANT_ADMIN = "grant_admin"
    REVOKE_ADMIN = "revoke_admin"
    GRANT_MODERATION = "grant_moderation"
    REVOKE_MODERATION = "revoke_moderation"
    CHANGE_TRUST_LEVEL = "change_trust_level"
    ACTIVATE_USER = "activate_user"
    DELETE_USER = "delete_user"
    CHECK_EMAIL = "check_email"
    GENERATE_API_KEY = "generate_api_key"
    REVOKE_API_KEY = "revoke_api_key"
    INVITE_ADMIN = "invite_admin"


class UserHistory(Entity):
    """One audited staff action."""

    action: UserHistoryAction
    acting_user_id: str | None = Field(default=None)
    target_user_id: str | None = Field(default=None)
    details: str | None = Field(default=None)
    context: str | None = Field(default=None)
    post_id: str | None = Field(default=None)
    previous_value: str | None = Field(default=None)
    new_value: str | None = Field(default=None)

"""Admin-facing user representations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.forum_admin.entities.core.api_key import ApiKey
from src.forum_admin.entities.core.single_sign_on_record import SingleSignOnRecord
from src.forum_admin.entities.core.user import User
from src.forum_admin.entities.core.user_history import UserHistory


class AdminUser(BaseModel):
    """One row of the admin user list."""

    id: str
    username: str
    name: str | None = None
    email: str | None = Field(
        default=None, description="Only present when emails were requested"
    )
    admin: bool
    moderator: bool
    active: bool
    approved: bool
    trust_level: int
    suspended: bool
    silenced: bool
    post_count: int
    created_at: datetime

    @classmethod
    def from_user(cls, user: User, show_email: bool = False) -> "AdminUser":
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email if show_email else None,
            admin=user.admin,
            moderator=user.moderator,
            active=user.active,
            approved=user.approved,
            trust_level=user.trust_level,
            suspended=user.is_suspended,
            silenced=user.is_silenced,
            post_count=user.post_count,
            created_at=user.created_at,
        )


class SingleSignOnSummary(BaseModel):
    external_id: str
    external_email: str | None = None
    external_username: str | None = None
    external_name: str | None = None
    external_avatar_url: str | None = None
    last_payload: str | None = None

    @classmethod
    def from_record(cls, record: SingleSignOnRecord) -> "SingleSignOnSummary":
        return cls.model_validate(record, from_attributes=True)


class AdminDetailedUser(AdminUser):
    """Everything staff may see about a single account."""

    ip_address: str | None = None
    approved_by_id: str | None = None
    approved_at: datetime | None = None
    email_confirmed: bool
    trust_level_locked: bool
    suspended_at: datetime | None = None
    suspended_till: datetime | None = None
    silenced_till: datetime | None = None
    title: str | None = None
    avatar_url: str | None = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    has_api_key: bool = False
    single_sign_on_record: SingleSignOnSummary | None = None
    history: list[UserHistory] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        user: User,
        api_key: ApiKey | None = None,
        sso_record: SingleSignOnRecord | None = None,
        history: list[UserHistory] | None = None,
    ) -> "AdminDetailedUser":
        base = AdminUser.from_user(user, show_email=True).model_dump()
        return cls(
            **base,
            ip_address=user.ip_address,
            approved_by_id=user.approved_by_id,
            approved_at=user.approved_at,
            email_confirmed=user.email_confirmed,
            trust_level_locked=user.trust_level_locked,
            suspended_at=user.suspended_at,
            suspended_till=user.suspended_till,
            silenced_till=user.silenced_till,
            title=user.title,
            avatar_url=user.avatar_url,
            custom_fields=user.custom_fields,
            has_api_key=api_key is not None,
            single_sign_on_record=SingleSignOnSummary.from_record(sso_record)
            if sso_record
            else None,
            history=history or [],
        )


class ApiKeyResponse(BaseModel):
    id: str
    key: str
    user_id: str
    created_at: datetime

    @classmethod
    def from_api_key(cls, api_key: ApiKey) -> "ApiKeyResponse":
        return cls.model_validate(api_key, from_attributes=True)

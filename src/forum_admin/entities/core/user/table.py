"""User database table model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, String
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    ``username_lower`` backs case-insensitive username uniqueness; emails are
    stored lowercased so the plain unique index covers them.
    """

    username: str = Field(sa_column=Column(String(60), nullable=False, unique=True))
    username_lower: str = Field(
        sa_column=Column(String(60), nullable=False, unique=True, index=True)
    )
    name: str | None = None
    email: str = Field(
        sa_column=Column(String(513), nullable=False, unique=True, index=True)
    )
    ip_address: str | None = Field(default=None, index=True)

    admin: bool = False
    moderator: bool = False
    active: bool = True
    approved: bool = False
    approved_by_id: str | None = None
    approved_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    email_confirmed: bool = False

    trust_level: int = 0
    trust_level_locked: bool = False

    suspended_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    suspended_till: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    silenced_till: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    post_count: int = 0
    title: str | None = None
    avatar_url: str | None = None
    custom_fields: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )

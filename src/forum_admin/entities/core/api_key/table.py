"""API key database table model."""

from sqlalchemy import Column, String, UniqueConstraint
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class ApiKeyTable(EntityTable, table=True):
    """At most one key per user; issuing a new key replaces the old one."""

    __table_args__ = (UniqueConstraint("user_id", name="uq_api_key_user"),)

    key: str = Field(sa_column=Column(String(64), nullable=False, unique=True))
    user_id: str = Field(foreign_key="usertable.id", index=True)
    created_by_id: str | None = None

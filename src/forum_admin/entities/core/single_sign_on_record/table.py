"""Single sign-on record database table model."""

from sqlalchemy import Column, String, Text, UniqueConstraint
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class SingleSignOnRecordTable(EntityTable, table=True):
    """Database persistence model for identity mappings.

    Both sides of the mapping are unique: one external identity per user and
    one user per external identity.
    """

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_sso_external_id"),
        UniqueConstraint("user_id", name="uq_sso_user"),
    )

    external_id: str = Field(sa_column=Column(String(512), nullable=False, index=True))
    user_id: str = Field(foreign_key="usertable.id", index=True)
    last_payload: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    external_email: str | None = None
    external_username: str | None = None
    external_name: str | None = None
    external_avatar_url: str | None = None

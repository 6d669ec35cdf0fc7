"""Email token database table model."""

from sqlalchemy import Column, String
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class EmailTokenTable(EntityTable, table=True):
    """Database persistence model for email tokens."""

    token: str = Field(sa_column=Column(String(64), nullable=False, unique=True))
    user_id: str = Field(foreign_key="usertable.id", index=True)
    email: str
    confirmed: bool = False
    expired: bool = False

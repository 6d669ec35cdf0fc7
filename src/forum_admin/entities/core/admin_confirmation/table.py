"""Admin confirmation database table model."""

from sqlalchemy import Column, String
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class AdminConfirmationTable(EntityTable, table=True):
    """Database persistence model for pending admin grants."""

    token: str = Field(sa_column=Column(String(64), nullable=False, unique=True))
    target_user_id: str = Field(foreign_key="usertable.id", index=True)
    performed_by_id: str

"""Staff action history table model."""

from sqlalchemy import Column, String, Text
from sqlmodel import Field

from src.forum_admin.entities.core._base import EntityTable


class UserHistoryTable(EntityTable, table=True):
    """Audit log rows; never updated once written.

    User ids are plain columns rather than foreign keys so that history
    survives the deletion of either party.
    """

    action: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    acting_user_id: str | None = Field(default=None, index=True)
    target_user_id: str | None = Field(default=None, index=True)
    details: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    context: str | None = None
    post_id: str | None = None
    previous_value: str | None = None
    new_value: str | None = None

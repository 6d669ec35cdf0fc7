from sqlmodel import Session, col, select

from src.forum_admin.entities.core.user_history.entity import (
    UserHistory,
    UserHistoryAction,
)
from src.forum_admin.entities.core.user_history.table import UserHistoryTable


class UserHistoryRepository:
    """Data-access layer for the staff action log."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, entry: UserHistory) -> UserHistory:
        row = UserHistoryTable(**entry.model_dump(mode="json"))
        row.created_at = entry.created_at
        row.updated_at = entry.updated_at
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return UserHistory.model_validate(row, from_attributes=True)

    def for_target(self, target_user_id: str) -> list[UserHistory]:
        """Entries about a user, most recent first."""
        statement = (
            select(UserHistoryTable)
            .where(UserHistoryTable.target_user_id == target_user_id)
            .order_by(col(UserHistoryTable.created_at).desc())
        )
        rows = self._session.exec(statement).all()
        return [UserHistory.model_validate(row, from_attributes=True) for row in rows]

    def count(
        self, action: UserHistoryAction, acting_user_id: str | None = None
    ) -> int:
        statement = select(UserHistoryTable.id).where(
            UserHistoryTable.action == action.value
        )
        if acting_user_id is not None:
            statement = statement.where(
                UserHistoryTable.acting_user_id == acting_user_id
            )
        return len(self._session.exec(statement).all())

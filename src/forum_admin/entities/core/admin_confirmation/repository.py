from sqlmodel import Session, select

from src.forum_admin.entities.core.admin_confirmation.entity import AdminConfirmation
from src.forum_admin.entities.core.admin_confirmation.table import (
    AdminConfirmationTable,
)


class AdminConfirmationRepository:
    """Data-access layer for pending admin grants."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_token(self, token: str) -> AdminConfirmation | None:
        statement = select(AdminConfirmationTable).where(
            AdminConfirmationTable.token == token
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return AdminConfirmation.model_validate(row, from_attributes=True)

    def exists_for(self, target_user_id: str) -> bool:
        statement = select(AdminConfirmationTable.id).where(
            AdminConfirmationTable.target_user_id == target_user_id
        )
        return self._session.exec(statement).first() is not None

    def create(self, confirmation: AdminConfirmation) -> AdminConfirmation:
        row = AdminConfirmationTable(**confirmation.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return AdminConfirmation.model_validate(row, from_attributes=True)

    def delete_for_user(self, target_user_id: str) -> int:
        statement = select(AdminConfirmationTable).where(
            AdminConfirmationTable.target_user_id == target_user_id
        )
        rows = self._session.exec(statement).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

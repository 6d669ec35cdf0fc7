from sqlmodel import Session, select

from src.forum_admin.entities.core._base import utc_now
from src.forum_admin.entities.core.email_token.entity import EmailToken
from src.forum_admin.entities.core.email_token.table import EmailTokenTable


class EmailTokenRepository:
    """Data-access layer for email tokens."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, token: EmailToken) -> EmailToken:
        row = EmailTokenTable(**token.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return EmailToken.model_validate(row, from_attributes=True)

    def for_user(self, user_id: str) -> list[EmailToken]:
        statement = select(EmailTokenTable).where(EmailTokenTable.user_id == user_id)
        rows = self._session.exec(statement).all()
        return [EmailToken.model_validate(row, from_attributes=True) for row in rows]

    def expire_all(self, user_id: str) -> int:
        """Mark every token of a user expired and unconfirmed."""
        statement = select(EmailTokenTable).where(EmailTokenTable.user_id == user_id)
        rows = self._session.exec(statement).all()
        for row in rows:
            row.confirmed = False
            row.expired = True
            row.updated_at = utc_now()
            self._session.add(row)
        self._session.flush()
        return len(rows)

    def confirm_all(self, user_id: str) -> int:
        """Confirm every token of a user, expired ones included."""
        statement = select(EmailTokenTable).where(EmailTokenTable.user_id == user_id)
        rows = self._session.exec(statement).all()
        for row in rows:
            row.confirmed = True
            row.updated_at = utc_now()
            self._session.add(row)
        self._session.flush()
        return len(rows)

    def delete_for_user(self, user_id: str) -> int:
        statement = select(EmailTokenTable).where(EmailTokenTable.user_id == user_id)
        rows = self._session.exec(statement).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

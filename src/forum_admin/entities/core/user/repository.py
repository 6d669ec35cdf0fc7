"""User data access layer."""

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from src.forum_admin.entities.core._base import utc_now
from src.forum_admin.entities.core.user.entity import User
from src.forum_admin.entities.core.user.table import UserTable

LIST_QUERIES = (
    "active",
    "new",
    "staff",
    "admins",
    "moderators",
    "suspended",
    "silenced",
    "pending",
)


class UserRepository:
    """Data-access layer for users.

    The repository flushes but never commits; transaction boundaries belong to
    the calling service.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str) -> User | None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_many(self, user_ids: list[str]) -> list[User]:
        if not user_ids:
            return []
        statement = select(UserTable).where(col(UserTable.id).in_(user_ids))
        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def get_by_username(self, username: str) -> User | None:
        statement = select(UserTable).where(
            UserTable.username_lower == username.lower()
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_by_email(self, email: str) -> User | None:
        statement = select(UserTable).where(UserTable.email == email.strip().lower())
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def username_taken(self, username: str, exclude_id: str | None = None) -> bool:
        statement = select(UserTable.id).where(
            UserTable.username_lower == username.lower()
        )
        if exclude_id is not None:
            statement = statement.where(UserTable.id != exclude_id)
        return self._session.exec(statement).first() is not None

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        statement = select(UserTable.id).where(UserTable.email == email.strip().lower())
        if exclude_id is not None:
            statement = statement.where(UserTable.id != exclude_id)
        return self._session.exec(statement).first() is not None

    def search(
        self, query: str | None = None, text: str | None = None, limit: int = 100
    ) -> list[User]:
        """List users, newest first, narrowed by a named query and a text filter."""
        statement = select(UserTable)
        now = utc_now()

        if query == "active":
            statement = statement.where(UserTable.active == True)  # noqa: E712
        elif query == "new":
            statement = statement.where(UserTable.trust_level == 0)
        elif query == "staff":
            statement = statement.where(
                or_(UserTable.admin == True, UserTable.moderator == True)  # noqa: E712
            )
        elif query == "admins":
            statement = statement.where(UserTable.admin == True)  # noqa: E712
        elif query == "moderators":
            statement = statement.where(UserTable.moderator == True)  # noqa: E712
        elif query == "suspended":
            statement = statement.where(col(UserTable.suspended_till) > now)
        elif query == "silenced":
            statement = statement.where(col(UserTable.silenced_till) > now)
        elif query == "pending":
            statement = statement.where(
                UserTable.approved == False,  # noqa: E712
                UserTable.active == True,  # noqa: E712
            )

        if text:
            pattern = f"%{text.lower()}%"
            statement = statement.where(
                or_(
                    col(UserTable.username_lower).like(pattern),
                    col(UserTable.email).like(pattern),
                    func.lower(col(UserTable.name)).like(pattern),
                )
            )

        statement = statement.order_by(col(UserTable.created_at).desc()).limit(limit)
        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def list_by_ip(
        self, ip_address: str, exclude_id: str | None, max_trust_level: int
    ) -> list[User]:
        """Non-staff users sharing an IP address, highest trust level first."""
        statement = select(UserTable).where(
            UserTable.ip_address == ip_address,
            UserTable.admin == False,  # noqa: E712
            UserTable.moderator == False,  # noqa: E712
            UserTable.trust_level <= max_trust_level,
        )
        if exclude_id is not None:
            statement = statement.where(UserTable.id != exclude_id)
        statement = statement.order_by(col(UserTable.trust_level).desc())
        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def create(self, user: User) -> User:
        row = UserTable(
            **user.model_dump(),
            username_lower=user.username.lower(),
        )
        if row.email:
            row.email = row.email.strip().lower()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

    def update(self, user: User) -> User:
        row = self._session.get(UserTable, user.id)
        if row is None:
            raise ValueError(f"User {user.id} does not exist")

        for field, value in user.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.username_lower = user.username.lower()
        if row.email:
            row.email = row.email.strip().lower()
        row.updated_at = utc_now()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

    def delete(self, user_id: str) -> bool:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

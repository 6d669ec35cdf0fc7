from sqlmodel import Session, select

from src.forum_admin.entities.core.api_key.entity import ApiKey
from src.forum_admin.entities.core.api_key.table import ApiKeyTable


class ApiKeyRepository:
    """Data-access layer for API keys."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_key(self, key: str) -> ApiKey | None:
        statement = select(ApiKeyTable).where(ApiKeyTable.key == key)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return ApiKey.model_validate(row, from_attributes=True)

    def get_for_user(self, user_id: str) -> ApiKey | None:
        statement = select(ApiKeyTable).where(ApiKeyTable.user_id == user_id)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return ApiKey.model_validate(row, from_attributes=True)

    def create(self, api_key: ApiKey) -> ApiKey:
        row = ApiKeyTable(**api_key.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return ApiKey.model_validate(row, from_attributes=True)

    def delete_for_user(self, user_id: str) -> int:
        statement = select(ApiKeyTable).where(ApiKeyTable.user_id == user_id)
        rows = self._session.exec(statement).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

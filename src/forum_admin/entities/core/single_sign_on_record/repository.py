from sqlmodel import Session, select

from src.forum_admin.entities.core._base import utc_now
from src.forum_admin.entities.core.single_sign_on_record.entity import (
    SingleSignOnRecord,
)
from src.forum_admin.entities.core.single_sign_on_record.table import (
    SingleSignOnRecordTable,
)


class SingleSignOnRecordRepository:
    """Data-access layer for identity mappings."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_external_id(self, external_id: str) -> SingleSignOnRecord | None:
        statement = select(SingleSignOnRecordTable).where(
            SingleSignOnRecordTable.external_id == external_id
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return SingleSignOnRecord.model_validate(row, from_attributes=True)

    def get_by_user_id(self, user_id: str) -> SingleSignOnRecord | None:
        statement = select(SingleSignOnRecordTable).where(
            SingleSignOnRecordTable.user_id == user_id
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return SingleSignOnRecord.model_validate(row, from_attributes=True)

    def create(self, record: SingleSignOnRecord) -> SingleSignOnRecord:
        row = SingleSignOnRecordTable(**record.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return SingleSignOnRecord.model_validate(row, from_attributes=True)

    def update(self, record: SingleSignOnRecord) -> SingleSignOnRecord:
        row = self._session.get(SingleSignOnRecordTable, record.id)
        if row is None:
            raise ValueError(f"SSO record {record.id} does not exist")

        # external_id never moves; user_id only through reassign()
        for field, value in record.model_dump(
            exclude={"id", "created_at", "external_id", "user_id"}
        ).items():
            setattr(row, field, value)
        row.updated_at = utc_now()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return SingleSignOnRecord.model_validate(row, from_attributes=True)

    def reassign(self, record_id: str, user_id: str) -> SingleSignOnRecord:
        row = self._session.get(SingleSignOnRecordTable, record_id)
        if row is None:
            raise ValueError(f"SSO record {record_id} does not exist")

        row.user_id = user_id
        row.updated_at = utc_now()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return SingleSignOnRecord.model_validate(row, from_attributes=True)

    def delete_for_user(self, user_id: str) -> int:
        statement = select(SingleSignOnRecordTable).where(
            SingleSignOnRecordTable.user_id == user_id
        )
        rows = self._session.exec(statement).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

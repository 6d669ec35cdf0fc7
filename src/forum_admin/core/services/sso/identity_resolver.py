from loguru import logger
from sqlmodel import Session

from src.forum_admin.core.services.sso.single_sign_on import ExternalIdentityClaim
from src.forum_admin.entities.core.single_sign_on_record import (
    SingleSignOnRecordRepository,
)
from src.forum_admin.entities.core.user import User, UserRepository


class IdentityResolver:
    """Finds the local user an external identity is mapped to. Read-only."""

    def __init__(self, db_session: Session) -> None:
        self._sso_repo = SingleSignOnRecordRepository(db_session)
        self._user_repo = UserRepository(db_session)

    def resolve(self, claim: ExternalIdentityClaim) -> User | None:
        record = self._sso_repo.get_by_external_id(claim.external_id)
        if record is None:
            return None

        user = self._user_repo.get(record.user_id)
        if user is None:
            logger.bind(
                external_id=claim.external_id, user_id=record.user_id
            ).warning("SSO record points at a missing user")
        return user

from loguru import logger
from sqlmodel import Session

from src.forum_admin.entities.core.user import User
from src.forum_admin.entities.core.user_history import (
    UserHistory,
    UserHistoryAction,
    UserHistoryRepository,
)


class StaffActionLogger:
    """Writes audit entries for actions a staff member takes on users.

    Entries are flushed into the caller's transaction and committed with it.
    """

    def __init__(self, acting_user: User, db_session: Session) -> None:
        self._acting_user = acting_user
        self._repo = UserHistoryRepository(db_session)

    def log(
        self,
        action: UserHistoryAction,
        target: User | None = None,
        *,
        details: str | None = None,
        context: str | None = None,
        post_id: str | None = None,
        previous_value: object = None,
        new_value: object = None,
    ) -> UserHistory:
        entry = self._repo.create(
            UserHistory(
                action=action,
                acting_user_id=self._acting_user.id,
                target_user_id=target.id if target else None,
                details=details,
                context=context,
                post_id=post_id,
                previous_value=None if previous_value is None else str(previous_value),
                new_value=None if new_value is None else str(new_value),
            )
        )
        logger.bind(
            action=action.value,
            acting_user_id=self._acting_user.id,
            target_user_id=entry.target_user_id,
        ).info("Staff action logged")
        return entry

    def log_user_deletion(self, target: User, context: str | None = None) -> UserHistory:
        """Deletion entries keep a snapshot since the user row is gone."""
        return self.log(
            UserHistoryAction.DELETE_USER,
            target,
            details=f"username: {target.username}\nemail: {target.email}\n"
            f"ip_address: {target.ip_address}",
            context=context,
        )

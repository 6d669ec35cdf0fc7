from loguru import logger
from sqlmodel import Session

from src.forum_admin.core.errors import PostsExistError
from src.forum_admin.core.services.user.staff_action_logger import StaffActionLogger
from src.forum_admin.entities.core.admin_confirmation import (
    AdminConfirmationRepository,
)
from src.forum_admin.entities.core.api_key import ApiKeyRepository
from src.forum_admin.entities.core.email_token import EmailTokenRepository
from src.forum_admin.entities.core.single_sign_on_record import (
    SingleSignOnRecordRepository,
)
from src.forum_admin.entities.core.user import User, UserRepository


class UserDestroyer:
    """Removes a user and everything that hangs off it.

    Works inside the caller's transaction; the caller commits.
    """

    def __init__(self, acting_user: User, db_session: Session) -> None:
        self._acting_user = acting_user
        self._users = UserRepository(db_session)
        self._sso_records = SingleSignOnRecordRepository(db_session)
        self._api_keys = ApiKeyRepository(db_session)
        self._email_tokens = EmailTokenRepository(db_session)
        self._confirmations = AdminConfirmationRepository(db_session)
        self._staff_logger = StaffActionLogger(acting_user, db_session)

    def destroy(
        self, user: User, *, delete_posts: bool = False, context: str | None = None
    ) -> bool:
        """Delete ``user``.

        Args:
            user: The account to remove
            delete_posts: Remove the account even though it has posts
            context: Free-text reason recorded in the history entry

        Returns:
            True if the user row was deleted

        Raises:
            PostsExistError: The user has posts and ``delete_posts`` is False
        """
        if user.post_count > 0 and not delete_posts:
            raise PostsExistError(user.id, user.post_count)

        self._sso_records.delete_for_user(user.id)
        self._api_keys.delete_for_user(user.id)
        self._email_tokens.delete_for_user(user.id)
        self._confirmations.delete_for_user(user.id)

        deleted = self._users.delete(user.id)
        if deleted:
            self._staff_logger.log_user_deletion(user, context=context)
            logger.bind(
                user_id=user.id,
                acting_user_id=self._acting_user.id,
                post_count=user.post_count,
            ).info("User destroyed")
        return deleted

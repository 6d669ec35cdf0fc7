"""Staff lifecycle actions on user accounts.

Every public method checks the actor's capability with the ``Guardian``,
runs in a single transaction and records what it did in the staff action log.
A missing target is handed to the Guardian as ``None`` and denied like any
other forbidden action.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from src.forum_admin.core.errors import (
    AuthorizationError,
    JobEnqueueError,
    NotFoundError,
    PostsExistError,
    ValidationError,
)
from src.forum_admin.core.models.admin_user import AdminDetailedUser
from src.forum_admin.core.security import generate_hex_token
from src.forum_admin.core.services.jobs.job_queue import (
    ADMIN_CONFIRMATION_EMAIL,
    CRITICAL_USER_EMAIL,
    JobQueue,
)
from src.forum_admin.core.services.user.guardian import Guardian
from src.forum_admin.core.services.user.staff_action_logger import StaffActionLogger
from src.forum_admin.core.services.user.user_destroyer import UserDestroyer
from src.forum_admin.core.services.user.user_validator import (
    UserValidator,
    normalize_email,
)
from src.forum_admin.core.services.user.username_suggester import UsernameSuggester
from src.forum_admin.entities.core._base import as_utc, utc_now
from src.forum_admin.entities.core.admin_confirmation import (
    AdminConfirmation,
    AdminConfirmationRepository,
)
from src.forum_admin.entities.core.api_key import ApiKey, ApiKeyRepository
from src.forum_admin.entities.core.email_token import (
    EmailToken,
    EmailTokenRepository,
)
from src.forum_admin.entities.core.user import (
    LIST_QUERIES,
    TRUST_LEVELS,
    User,
    UserRepository,
)
from src.forum_admin.entities.core.single_sign_on_record import (
    SingleSignOnRecordRepository,
)
from src.forum_admin.entities.core.user_history import (
    UserHistoryAction,
    UserHistoryRepository,
)
from src.forum_admin.runtime.config.config_data import UsersConfig

# suspensions and silences without an end date
FOREVER = timedelta(days=365 * 1000)


class Suspension(BaseModel):
    suspend_reason: str | None
    full_suspend_reason: str | None
    suspended_at: datetime
    suspended_till: datetime
    suspended_by_id: str


class Silence(BaseModel):
    silence_reason: str | None
    silenced_till: datetime
    silenced_by_id: str


class BulkResult(BaseModel):
    success: int = 0
    failed: int = 0


class InvitedAdmin(BaseModel):
    user: User
    password_url: str


class UserAdminService:
    def __init__(
        self,
        acting_user: User,
        db_session: Session,
        job_queue: JobQueue,
        *,
        base_url: str = "",
        users_config: UsersConfig | None = None,
        guardian: Guardian | None = None,
    ) -> None:
        self._actor = acting_user
        self._session = db_session
        self._jobs = job_queue
        self._base_url = base_url.rstrip("/")
        self._config = users_config or UsersConfig()
        self.guardian = guardian or Guardian(acting_user)

        self._users = UserRepository(db_session)
        self._api_keys = ApiKeyRepository(db_session)
        self._email_tokens = EmailTokenRepository(db_session)
        self._confirmations = AdminConfirmationRepository(db_session)
        self._sso_records = SingleSignOnRecordRepository(db_session)
        self._history = UserHistoryRepository(db_session)
        self._staff_logger = StaffActionLogger(acting_user, db_session)
        self._destroyer = UserDestroyer(acting_user, db_session)
        self._validator = UserValidator(self._users)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def _ensure_staff(self, action: str) -> None:
        if not self.guardian.is_staff:
            raise AuthorizationError(action)

    def _enqueue(self, job_name: str, **payload: Any) -> None:
        try:
            self._jobs.enqueue(job_name, **payload)
        except JobEnqueueError as e:
            logger.bind(job_name=job_name, details=e.details).error(
                "Could not enqueue job: {}", e.message
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_users(
        self,
        query: str | None = None,
        text: str | None = None,
        show_emails: bool = False,
    ) -> list[User]:
        self._ensure_staff("list_users")
        if query is not None and query not in LIST_QUERIES:
            raise ValidationError([f"Unknown user list query: {query}"])

        users = self._users.search(query=query, text=text)
        if show_emails:
            with self._transaction():
                self._staff_logger.log(
                    UserHistoryAction.CHECK_EMAIL,
                    details=f"listed {len(users)} users",
                    context=query,
                )
        return users

    def get_user(self, user_id: str) -> User:
        self._ensure_staff("show_user")
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def describe(self, user: User) -> AdminDetailedUser:
        """Detailed view of a user with credentials, SSO mapping and history."""
        return AdminDetailedUser.build(
            user,
            api_key=self._api_keys.get_for_user(user.id),
            sso_record=self._sso_records.get_by_user_id(user.id),
            history=self._history.for_target(user.id),
        )

    # ------------------------------------------------------------------
    # Approval
    # ------------------------------------------------------------------

    def _approve(self, target: User) -> User:
        now = utc_now()
        updated = self._users.update(
            target.model_copy(
                update={
                    "approved": True,
                    "approved_by_id": self._actor.id,
                    "approved_at": now,
                }
            )
        )
        self._staff_logger.log(UserHistoryAction.APPROVE_USER, updated)
        return updated

    def approve(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("approve", target)
        with self._transaction():
            return self._approve(target)

    def approve_bulk(self, user_ids: list[str]) -> int:
        """Approve every listed user the actor may approve; others are skipped."""
        approved = 0
        with self._transaction():
            for target in self._users.get_many(user_ids):
                if not self.guardian.can_approve(target):
                    continue
                self._approve(target)
                approved += 1
        logger.bind(requested=len(user_ids), approved=approved).info(
            "Bulk approval finished"
        )
        return approved

    # ------------------------------------------------------------------
    # Suspension and silencing
    # ------------------------------------------------------------------

    def suspend(
        self,
        user_id: str,
        suspend_until: datetime | None = None,
        reason: str | None = None,
        message: str | None = None,
        post_id: str | None = None,
    ) -> Suspension:
        target = self._users.get(user_id)
        self.guardian.ensure_can("suspend", target)

        now = utc_now()
        till = as_utc(suspend_until) or now + FOREVER
        details = f"{reason}\n\n{message}" if message else reason

        with self._transaction():
            updated = self._users.update(
                target.model_copy(update={"suspended_at": now, "suspended_till": till})
            )
            self._api_keys.delete_for_user(target.id)
            history = self._staff_logger.log(
                UserHistoryAction.SUSPEND_USER,
                updated,
                details=details,
                post_id=post_id,
                new_value=till.isoformat(),
            )

        if message:
            self._enqueue(
                CRITICAL_USER_EMAIL,
                type="account_suspended",
                user_id=updated.id,
                to_address=updated.email,
                user_history_id=history.id,
                reason=reason,
                message=message,
                suspended_till=till.isoformat(),
            )

        return Suspension(
            suspend_reason=reason,
            full_suspend_reason=details,
            suspended_at=now,
            suspended_till=till,
            suspended_by_id=self._actor.id,
        )

    def unsuspend(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("suspend", target)
        with self._transaction():
            updated = self._users.update(
                target.model_copy(update={"suspended_at": None, "suspended_till": None})
            )
            self._staff_logger.log(UserHistoryAction.UNSUSPEND_USER, updated)
        return updated

    def silence(
        self,
        user_id: str,
        silenced_till: datetime | None = None,
        reason: str | None = None,
        message: str | None = None,
    ) -> Silence:
        target = self._users.get(user_id)
        self.guardian.ensure_can("silence_user", target)

        till = as_utc(silenced_till) or utc_now() + FOREVER
        with self._transaction():
            updated = self._users.update(
                target.model_copy(update={"silenced_till": till})
            )
            history = self._staff_logger.log(
                UserHistoryAction.SILENCE_USER,
                updated,
                details=reason,
                new_value=till.isoformat(),
            )

        if message:
            self._enqueue(
                CRITICAL_USER_EMAIL,
                type="account_silenced",
                user_id=updated.id,
                to_address=updated.email,
                user_history_id=history.id,
                reason=reason,
                message=message,
                silenced_till=till.isoformat(),
            )

        return Silence(
            silence_reason=reason, silenced_till=till, silenced_by_id=self._actor.id
        )

    def unsilence(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("unsilence_user", target)
        with self._transaction():
            updated = self._users.update(target.model_copy(update={"silenced_till": None}))
            self._staff_logger.log(UserHistoryAction.UNSILENCE_USER, updated)
        return updated

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def grant_admin(self, user_id: str) -> AdminConfirmation:
        """Start an admin grant; it takes effect once the token is confirmed."""
        target = self._users.get(user_id)
        self.guardian.ensure_can("grant_admin", target)

        with self._transaction():
            self._confirmations.delete_for_user(target.id)
            confirmation = self._confirmations.create(
                AdminConfirmation(
                    token=generate_hex_token(),
                    target_user_id=target.id,
                    performed_by_id=self._actor.id,
                )
            )

        self._enqueue(
            ADMIN_CONFIRMATION_EMAIL,
            to_address=self._actor.email,
            target_user_id=target.id,
            target_username=target.username,
            token=confirmation.token,
            confirm_url=f"{self._base_url}/admin/users/confirm-admin/"
            f"{confirmation.token}",
        )
        return confirmation

    def confirm_admin(self, token: str) -> User:
        self.guardian.ensure_can("confirm_admin")
        confirmation = self._confirmations.get_by_token(token)
        if confirmation is None:
            raise NotFoundError("admin confirmation", token)
        target = self._users.get(confirmation.target_user_id)
        if target is None:
            raise NotFoundError("user", confirmation.target_user_id)

        with self._transaction():
            updated = self._users.update(target.model_copy(update={"admin": True}))
            self._confirmations.delete_for_user(target.id)
            self._staff_logger.log(UserHistoryAction.GRANT_ADMIN, updated)
        return updated

    def revoke_admin(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("revoke_admin", target)
        with self._transaction():
            updated = self._users.update(target.model_copy(update={"admin": False}))
            self._staff_logger.log(UserHistoryAction.REVOKE_ADMIN, updated)
        return updated

    def grant_moderation(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("grant_moderation", target)
        with self._transaction():
            updated = self._users.update(target.model_copy(update={"moderator": True}))
            self._staff_logger.log(UserHistoryAction.GRANT_MODERATION, updated)
        return updated

    def revoke_moderation(self, user_id: str) -> User:
        target = self._users.get(user_id)
        self.guardian.ensure_can("revoke_moderation", target)
        with self._transaction():
            updated = self._users.update(
                target.model_copy(update={"moderator": False})
            )
            self._staff_logger.log(UserHistoryAction.REVOKE_MODERATION, updated)
        return updated

    def change_trust_level(self, user_id: str, level: int) -> User:
        """Set the trust level; a demotion locks it against automatic promotion."""
        target = self._users.get(user_id)
        self.guardian.ensure_can("change_trust_level", target)
        if level not in TRUST_LEVELS:
            raise ValidationError([f"Trust level {level} is invalid"])

        changes: dict[str, Any] = {"trust_level": level}
        if level < target.trust_level:
            changes["trust_level_locked"] = True

        with self._transaction():
            updated = self._users.update(target.model_copy(update=changes))
            self._staff_logger.log(
                UserHistoryAction.CHANGE_TRUST_LEVEL,
                updated,
                previous_value=target.trust_level,
                new_value=level,
            )
        return updated

    # ------------------------------------------------------------------
    # Activation and credentials
    # ------------------------------------------------------------------

    def activate(self, user_id: str) -> User:
        """Activate and confirm the email, even when every token has expired."""
        target = self._users.get(user_id)
        self.guardian.ensure_can("activate", target)
        with self._transaction():
            self._email_tokens.confirm_all(target.id)
            updated = self._users.update(
                target.model_copy(update={"active": True, "email_confirmed": True})
            )
            self._staff_logger.log(UserHistoryAction.ACTIVATE_USER, updated)
        return updated

    def generate_api_key(self, user_id: str) -> ApiKey:
        """Issue a fresh key for a user, replacing any existing one."""
        self.guardian.ensure_can("manage_api_keys")
        target = self._users.get(user_id)
        if target is None:
            raise NotFoundError("user", user_id)

        with self._transaction():
            self._api_keys.delete_for_user(target.id)
            api_key = self._api_keys.create(
                ApiKey(
                    key=generate_hex_token(),
                    user_id=target.id,
                    created_by_id=self._actor.id,
                )
            )
            self._staff_logger.log(UserHistoryAction.GENERATE_API_KEY, target)
        return api_key

    def revoke_api_key(self, user_id: str) -> None:
        self.guardian.ensure_can("manage_api_keys")
        target = self._users.get(user_id)
        if target is None:
            raise NotFoundError("user", user_id)

        with self._transaction():
            if self._api_keys.delete_for_user(target.id):
                self._staff_logger.log(UserHistoryAction.REVOKE_API_KEY, target)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def destroy(
        self, user_id: str, delete_posts: bool = False, context: str | None = None
    ) -> bool:
        target = self._users.get(user_id)
        self.guardian.ensure_can("delete_user", target)
        with self._transaction():
            return self._destroyer.destroy(
                target, delete_posts=delete_posts, context=context
            )

    def reject_bulk(self, user_ids: list[str], delete_posts: bool = False) -> BulkResult:
        """Delete each listed user independently and count the outcomes.

        Denied, missing and still-posting users count as failures.
        """
        result = BulkResult()
        targets = {user.id: user for user in self._users.get_many(user_ids)}

        for user_id in user_ids:
            target = targets.get(user_id)
            if not self.guardian.can_delete_user(target):
                result.failed += 1
                continue
            try:
                with self._transaction():
                    deleted = self._destroyer.destroy(
                        target, delete_posts=delete_posts, context="bulk reject"
                    )
            except PostsExistError:
                deleted = False
            if deleted:
                result.success += 1
            else:
                result.failed += 1

        logger.bind(success=result.success, failed=result.failed).info(
            "Bulk reject finished"
        )
        return result

    def delete_others_with_same_ip(
        self, ip: str, exclude_id: str | None = None
    ) -> int:
        """Remove low-trust, non-staff accounts sharing ``ip`` (posts included)."""
        self.guardian.ensure_can("delete_same_ip_users")
        users = self._users.list_by_ip(
            ip,
            exclude_id=exclude_id,
            max_trust_level=self._config.delete_same_ip_max_trust_level,
        )

        deleted = 0
        with self._transaction():
            for user in users:
                if self._destroyer.destroy(
                    user,
                    delete_posts=True,
                    context=f"Same IP address as another account ({ip})",
                ):
                    deleted += 1
        logger.bind(ip=ip, deleted=deleted).info("Deleted accounts sharing an IP")
        return deleted

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    def invite_admin(
        self,
        email: str,
        username: str | None = None,
        name: str | None = None,
        send_email: bool = True,
    ) -> InvitedAdmin:
        """Create (or promote) an admin and hand back a password-set link.

        An existing account with the same email is reused.
        """
        self.guardian.ensure_can("invite_admin")
        email = normalize_email(email) or ""

        suggester = UsernameSuggester(
            min_length=self._config.username_min_length,
            max_length=self._config.username_max_length,
        )

        with self._transaction():
            user = self._users.get_by_email(email)
            if user is None:
                local_part = email.split("@", 1)[0]
                username = suggester.suggest(
                    [username, local_part], is_taken=self._users.username_taken
                )
                candidate = User(
                    username=username,
                    name=name or local_part,
                    email=email,
                    approved=True,
                    approved_by_id=self._actor.id,
                    approved_at=utc_now(),
                )
                self._validator.validate(candidate)
                user = self._users.create(candidate)

            user = self._users.update(
                user.model_copy(
                    update={"admin": True, "trust_level": 4, "active": True}
                )
            )
            self._email_tokens.confirm_all(user.id)
            email_token = self._email_tokens.create(
                EmailToken(token=generate_hex_token(), user_id=user.id, email=email)
            )
            self._staff_logger.log(UserHistoryAction.INVITE_ADMIN, user)

        password_url = f"{self._base_url}/u/password-reset/{email_token.token}"
        if send_email:
            self._enqueue(
                CRITICAL_USER_EMAIL,
                type="account_created",
                user_id=user.id,
                to_address=user.email,
                email_token=email_token.token,
                password_url=password_url,
            )

        return InvitedAdmin(user=user, password_url=password_url)


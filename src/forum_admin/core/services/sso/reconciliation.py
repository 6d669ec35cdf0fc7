"""Reconciles a verified identity claim with the local user store.

A claim either creates a new user together with its identity mapping, or
updates the already-mapped user according to the override policy. Every call
is a single transaction: either all of the user and mapping changes land, or
none of them do.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.forum_admin.core.errors import ValidationError
from src.forum_admin.core.services.sso.identity_resolver import IdentityResolver
from src.forum_admin.core.services.sso.policy import OverridePolicy
from src.forum_admin.core.services.sso.single_sign_on import ExternalIdentityClaim
from src.forum_admin.core.services.user.user_validator import (
    EMAIL_TAKEN,
    USERNAME_TAKEN,
    UserValidator,
    normalize_email,
)
from src.forum_admin.core.services.user.username_suggester import UsernameSuggester
from src.forum_admin.entities.core.single_sign_on_record import (
    SingleSignOnRecord,
    SingleSignOnRecordRepository,
)
from src.forum_admin.entities.core.user import User, UserRepository

EXTERNAL_ID_TAKEN = "External ID has already been taken"


def _email_local_part(email: str | None) -> str | None:
    if not email or "@" not in email:
        return email
    return email.split("@", 1)[0]


def _integrity_message(error: IntegrityError) -> str:
    text = str(error.orig).lower()
    if "email" in text:
        return EMAIL_TAKEN
    if "username" in text:
        return USERNAME_TAKEN
    if "external_id" in text or "singlesignonrecord" in text:
        return EXTERNAL_ID_TAKEN
    return "Record conflicts with an existing record"


class ReconciliationEngine:
    """Creates or updates users from identity provider claims."""

    def __init__(
        self,
        db_session: Session,
        resolver: IdentityResolver | None = None,
        suggester: UsernameSuggester | None = None,
    ) -> None:
        self._session = db_session
        self._resolver = resolver or IdentityResolver(db_session)
        self._suggester = suggester or UsernameSuggester()
        self._user_repo = UserRepository(db_session)
        self._sso_repo = SingleSignOnRecordRepository(db_session)
        self._validator = UserValidator(self._user_repo)

    def lookup_or_create_user(
        self, claim: ExternalIdentityClaim, policy: OverridePolicy
    ) -> User:
        """Resolve the claim's identity and reconcile it in one step.

        When a concurrent request creates the same identity between our
        lookup and our insert, the loser re-resolves once and continues on
        the update path against the winner's user.

        Raises:
            ValidationError: The resulting record is invalid or conflicts
                with an existing one
        """
        existing = self._resolver.resolve(claim)
        if existing is not None:
            return self.reconcile_or_create(claim, existing, policy)

        try:
            return self.reconcile_or_create(claim, None, policy)
        except ValidationError:
            winner = self._resolver.resolve(claim)
            if winner is None:
                raise
            logger.bind(external_id=claim.external_id, user_id=winner.id).info(
                "Identity was created concurrently, reconciling with existing user"
            )
            return self.reconcile_or_create(claim, winner, policy)

    def reconcile_or_create(
        self,
        claim: ExternalIdentityClaim,
        existing_user: User | None,
        policy: OverridePolicy,
    ) -> User:
        """Apply a claim to ``existing_user``, or create a user when it is None.

        Nothing is written when the claim changes nothing.

        Raises:
            ValidationError: Validation or uniqueness failure; the
                transaction is rolled back
        """
        log = logger.bind(external_id=claim.external_id)
        try:
            if existing_user is None:
                user = self._create(claim)
                log.bind(user_id=user.id).info("Created user from SSO payload")
            else:
                user, changed = self._update(claim, existing_user, policy)
                if changed:
                    log.bind(user_id=user.id).info("Updated user from SSO payload")
                else:
                    log.bind(user_id=user.id).debug("SSO payload changed nothing")
            self._session.commit()
            return user
        except ValidationError as e:
            self._session.rollback()
            log.bind(errors=e.errors).info("SSO payload failed validation")
            raise
        except IntegrityError as e:
            self._session.rollback()
            message = _integrity_message(e)
            log.bind(error=message).warning("Uniqueness violation during SSO sync")
            raise ValidationError([message]) from e
        except Exception:
            self._session.rollback()
            log.exception("Unexpected error during SSO sync")
            raise

    def _create(self, claim: ExternalIdentityClaim) -> User:
        email = normalize_email(claim.email)
        username = self._suggester.suggest(
            [claim.username, claim.name, _email_local_part(email)],
            is_taken=self._user_repo.username_taken,
        )
        active = not claim.require_activation

        candidate = User(
            username=username,
            name=claim.name,
            email=email,
            ip_address=None,
            active=active,
            email_confirmed=active,
            admin=bool(claim.admin),
            moderator=bool(claim.moderator),
            title=claim.title,
            avatar_url=claim.avatar_url,
            custom_fields=dict(claim.custom_fields),
        )
        self._validator.validate(candidate)

        user = self._user_repo.create(candidate)
        self._sync_record(claim, user)
        return user

    def _update(
        self, claim: ExternalIdentityClaim, user: User, policy: OverridePolicy
    ) -> tuple[User, bool]:
        changes: dict = {}

        if policy.overrides_email:
            email = normalize_email(claim.email)
            if email != user.email:
                changes["email"] = email

        if policy.overrides_name and claim.name and claim.name != user.name:
            changes["name"] = claim.name

        if policy.overrides_username and claim.username:
            sanitized = self._suggester.first_valid([claim.username])
            # a payload that sanitizes away leaves the current username alone
            if sanitized and sanitized != user.username:
                username = self._suggester.suggest(
                    [claim.username],
                    is_taken=lambda name: self._user_repo.username_taken(
                        name, exclude_id=user.id
                    ),
                )
                # "bob" may already have been suffixed to this user's "bob1"
                if username != user.username:
                    changes["username"] = username

        if (
            policy.overrides_avatar
            and claim.avatar_url
            and claim.avatar_url != user.avatar_url
        ):
            changes["avatar_url"] = claim.avatar_url

        if claim.admin is not None and claim.admin != user.admin:
            changes["admin"] = claim.admin
        if claim.moderator is not None and claim.moderator != user.moderator:
            changes["moderator"] = claim.moderator
        if claim.title is not None and claim.title != user.title:
            changes["title"] = claim.title

        if claim.custom_fields:
            merged = {**user.custom_fields, **claim.custom_fields}
            if merged != user.custom_fields:
                changes["custom_fields"] = merged

        record_changed = self._sync_record(claim, user)

        if not changes:
            return user, record_changed

        updated = user.model_copy(update=changes)
        self._validator.validate(updated, exclude_id=user.id)
        return self._user_repo.update(updated), True

    @staticmethod
    def _observed(claim: ExternalIdentityClaim) -> dict:
        return {
            "last_payload": claim.to_query(),
            "external_email": claim.email,
            "external_username": claim.username,
            "external_name": claim.name,
            "external_avatar_url": claim.avatar_url,
        }

    def _orphaned_record(self, external_id: str) -> SingleSignOnRecord | None:
        """The mapping for ``external_id`` if its user row no longer exists."""
        record = self._sso_repo.get_by_external_id(external_id)
        if record is None or self._user_repo.get(record.user_id) is not None:
            return None
        return record

    def _sync_record(self, claim: ExternalIdentityClaim, user: User) -> bool:
        """Refresh the mapping's memory of what the provider last asserted."""
        observed = self._observed(claim)
        record = self._sso_repo.get_by_user_id(user.id)
        if record is None:
            orphan = self._orphaned_record(claim.external_id)
            if orphan is None:
                self._sso_repo.create(
                    SingleSignOnRecord(
                        external_id=claim.external_id, user_id=user.id, **observed
                    )
                )
                return True

            logger.bind(
                external_id=claim.external_id,
                previous_user_id=orphan.user_id,
                user_id=user.id,
            ).warning("Reassigning SSO record of a deleted user")
            record = self._sso_repo.reassign(orphan.id, user.id)
            self._sso_repo.update(record.model_copy(update=observed))
            return True

        stale = {k: v for k, v in observed.items() if getattr(record, k) != v}
        if not stale:
            return False

        self._sso_repo.update(record.model_copy(update=stale))
        return True

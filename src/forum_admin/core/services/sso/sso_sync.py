from loguru import logger
from sqlmodel import Session

from src.forum_admin.core.errors import SSODisabledError
from src.forum_admin.core.services.sso.policy import OverridePolicy
from src.forum_admin.core.services.sso.reconciliation import ReconciliationEngine
from src.forum_admin.core.services.sso.single_sign_on import decode
from src.forum_admin.core.services.user.username_suggester import UsernameSuggester
from src.forum_admin.entities.core.user import User
from src.forum_admin.runtime.config.config_data import SSOConfig, UsersConfig


class SSOSyncService:
    """Entry point for provider-initiated account synchronization."""

    def __init__(
        self,
        db_session: Session,
        sso_config: SSOConfig,
        users_config: UsersConfig | None = None,
        policy: OverridePolicy | None = None,
    ) -> None:
        users_config = users_config or UsersConfig()
        self._config = sso_config
        self._policy = policy or OverridePolicy.from_config(sso_config)
        self._engine = ReconciliationEngine(
            db_session,
            suggester=UsernameSuggester(
                min_length=users_config.username_min_length,
                max_length=users_config.username_max_length,
            ),
        )

    def sync(self, sso: str | None, sig: str | None) -> User:
        """Verify a signed payload and reconcile it into a local user.

        Raises:
            SSODisabledError: SSO is turned off
            SignatureError: Signature does not match
            MalformedPayloadError: Payload cannot be decoded
            ValidationError: Resulting user record is invalid
        """
        if not self._config.enabled:
            raise SSODisabledError()

        claim = decode(sso, sig, self._config.secret)
        logger.bind(external_id=claim.external_id).debug("Decoded SSO payload")
        return self._engine.lookup_or_create_user(claim, self._policy)

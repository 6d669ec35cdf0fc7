"""Unit tests for the SSO sync entry point and its override policy."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.forum_admin.core.errors import SignatureError, SSODisabledError
from src.forum_admin.core.services.sso import (
    ExternalIdentityClaim,
    OverridePolicy,
    SSOSyncService,
    encode,
)
from src.forum_admin.runtime.config.config_data import SSOConfig, UsersConfig

SECRET = "sync-secret"


class TestOverridePolicy:
    def test_defaults_override_nothing(self):
        policy = OverridePolicy()

        assert not any(
            [
                policy.overrides_email,
                policy.overrides_name,
                policy.overrides_username,
                policy.overrides_avatar,
            ]
        )

    def test_email_override_requires_locked_email(self):
        with pytest.raises(PydanticValidationError):
            OverridePolicy(email_editable=True, overrides_email=True)

    def test_from_config_copies_flags(self):
        config = SSOConfig(
            enabled=True,
            secret=SECRET,
            email_editable=False,
            overrides_email=True,
            overrides_avatar=True,
        )

        policy = OverridePolicy.from_config(config)

        assert policy.email_editable is False
        assert policy.overrides_email is True
        assert policy.overrides_name is False
        assert policy.overrides_avatar is True


class TestSSOSyncService:
    @pytest.fixture
    def config(self) -> SSOConfig:
        return SSOConfig(
            enabled=True, secret=SECRET, email_editable=False, overrides_name=True
        )

    def test_disabled_sso_raises(self, session):
        service = SSOSyncService(session, SSOConfig(enabled=False, secret=SECRET))
        sso, sig = encode(ExternalIdentityClaim(external_id="1"), SECRET)

        with pytest.raises(SSODisabledError):
            service.sync(sso, sig)

    def test_wrong_secret_raises(self, session, config):
        service = SSOSyncService(session, config)
        sso, sig = encode(ExternalIdentityClaim(external_id="1"), "not-the-secret")

        with pytest.raises(SignatureError):
            service.sync(sso, sig)

    def test_sync_creates_then_updates(self, session, config):
        """Should apply the configured override flags on the second sync."""
        service = SSOSyncService(session, config)
        claim = ExternalIdentityClaim(
            external_id="1", username="bob", name="Bob", email="bob@bob.com"
        )

        created = service.sync(*encode(claim, SECRET))
        updated = service.sync(
            *encode(
                claim.model_copy(update={"name": "Robert", "username": "robert"}),
                SECRET,
            )
        )

        assert updated.id == created.id
        assert updated.name == "Robert"
        assert updated.username == "bob"

    def test_username_length_comes_from_users_config(self, session, config):
        service = SSOSyncService(
            session, config, UsersConfig(username_min_length=3, username_max_length=5)
        )
        claim = ExternalIdentityClaim(
            external_id="9", username="abcdefghij", email="long@example.com"
        )

        user = service.sync(*encode(claim, SECRET))

        assert user.username == "abcde"

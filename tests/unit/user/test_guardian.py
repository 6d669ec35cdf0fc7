"""Unit tests for staff capability checks."""

import pytest

from src.forum_admin.core.errors import AuthorizationError
from src.forum_admin.core.services.user import Guardian
from src.forum_admin.entities.core.user import User


def _user(**fields) -> User:
    data = {"username": "someone", "email": "someone@example.com"}
    data.update(fields)
    return User(**data)


@pytest.fixture
def admin_user() -> User:
    return _user(username="boss", admin=True)


@pytest.fixture
def moderator_user() -> User:
    return _user(username="mod", moderator=True)


@pytest.fixture
def plain_user() -> User:
    return _user(username="plain")


class TestGuardianRoles:
    def test_anonymous_is_not_staff(self, plain_user):
        guardian = Guardian(None)

        assert guardian.is_staff is False
        assert guardian.can_suspend(plain_user) is False

    def test_regular_user_can_do_nothing(self, plain_user):
        guardian = Guardian(_user(username="other"))

        assert guardian.can_approve(_user(approved=False)) is False
        assert guardian.can_change_trust_level(plain_user) is False
        assert guardian.can_sync_sso() is False

    def test_moderator_can_moderate_regular_users(self, moderator_user, plain_user):
        guardian = Guardian(moderator_user)

        assert guardian.can_suspend(plain_user) is True
        assert guardian.can_silence_user(plain_user) is True
        assert guardian.can_delete_user(plain_user) is True

    def test_moderator_cannot_use_admin_capabilities(self, moderator_user, plain_user):
        guardian = Guardian(moderator_user)

        assert guardian.can_grant_admin(plain_user) is False
        assert guardian.can_grant_moderation(plain_user) is False
        assert guardian.can_manage_api_keys() is False
        assert guardian.can_invite_admin() is False


class TestGuardianTargets:
    def test_missing_target_is_always_denied(self, admin_user):
        guardian = Guardian(admin_user)

        assert guardian.can_approve(None) is False
        assert guardian.can_suspend(None) is False
        assert guardian.can_activate(None) is False
        assert guardian.can_delete_user(None) is False

    def test_staff_cannot_be_suspended_or_silenced(self, admin_user, moderator_user):
        guardian = Guardian(admin_user)

        assert guardian.can_suspend(moderator_user) is False
        assert guardian.can_silence_user(moderator_user) is False

    def test_approve_requires_unapproved_target(self, admin_user):
        guardian = Guardian(admin_user)

        assert guardian.can_approve(_user(approved=True)) is False
        assert guardian.can_approve(_user(approved=False)) is True

    def test_admin_cannot_change_own_admin_flag(self, admin_user):
        guardian = Guardian(admin_user)

        assert guardian.can_revoke_admin(admin_user) is False
        assert guardian.can_delete_user(admin_user) is False

    def test_admin_grants_follow_current_role(self, admin_user, moderator_user):
        guardian = Guardian(admin_user)
        other_admin = _user(username="other", admin=True)

        assert guardian.can_grant_admin(moderator_user) is True
        assert guardian.can_grant_admin(other_admin) is False
        assert guardian.can_revoke_admin(other_admin) is True
        assert guardian.can_grant_moderation(moderator_user) is False
        assert guardian.can_revoke_moderation(moderator_user) is True
        assert guardian.can_grant_moderation(other_admin) is False

    def test_admins_cannot_be_deleted(self, moderator_user):
        assert Guardian(moderator_user).can_delete_user(_user(admin=True)) is False


class TestEnsureCan:
    def test_allowed_action_returns_none(self, admin_user, plain_user):
        assert Guardian(admin_user).ensure_can("suspend", plain_user) is None

    def test_denied_action_raises_with_context(self, moderator_user, plain_user):
        with pytest.raises(AuthorizationError) as exc_info:
            Guardian(moderator_user).ensure_can("grant_admin", plain_user)

        assert exc_info.value.action == "grant_admin"
        assert exc_info.value.target_id == plain_user.id
        assert exc_info.value.status_code == 403

    def test_missing_target_raises(self, admin_user):
        with pytest.raises(AuthorizationError) as exc_info:
            Guardian(admin_user).ensure_can("activate", None)

        assert exc_info.value.target_id is None

    def test_targetless_action_ignores_target(self, admin_user, moderator_user):
        Guardian(admin_user).ensure_can("sync_sso")

        with pytest.raises(AuthorizationError):
            Guardian(moderator_user).ensure_can("invite_admin")

"""Capability checks for staff actions on user accounts.

Every predicate answers for the acting user; a missing target is always
denied. ``ensure_can`` turns a denial into an ``AuthorizationError``.
"""

from loguru import logger

from src.forum_admin.core.errors import AuthorizationError
from src.forum_admin.entities.core.user import User

TARGETLESS_ACTIONS = frozenset(
    {
        "sync_sso",
        "manage_api_keys",
        "invite_admin",
        "delete_same_ip_users",
        "confirm_admin",
    }
)


class Guardian:
    def __init__(self, user: User | None) -> None:
        self.user = user

    @property
    def is_staff(self) -> bool:
        return self.user is not None and self.user.is_staff

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.admin

    def _is_me(self, target: User) -> bool:
        return self.user is not None and self.user.id == target.id

    def can_approve(self, target: User | None) -> bool:
        return self.is_staff and target is not None and not target.approved

    def can_suspend(self, target: User | None) -> bool:
        return self.is_staff and target is not None and not target.is_staff

    def can_silence_user(self, target: User | None) -> bool:
        return self.is_staff and target is not None and not target.is_staff

    def can_unsilence_user(self, target: User | None) -> bool:
        return self.is_staff and target is not None

    def can_grant_admin(self, target: User | None) -> bool:
        return (
            self.is_admin
            and target is not None
            and not target.admin
            and not self._is_me(target)
        )

    def can_revoke_admin(self, target: User | None) -> bool:
        return (
            self.is_admin
            and target is not None
            and target.admin
            and not self._is_me(target)
        )

    def can_grant_moderation(self, target: User | None) -> bool:
        return (
            self.is_admin
            and target is not None
            and not target.moderator
            and not target.admin
        )

    def can_revoke_moderation(self, target: User | None) -> bool:
        return self.is_admin and target is not None and target.moderator

    def can_change_trust_level(self, target: User | None) -> bool:
        return self.is_staff and target is not None

    def can_activate(self, target: User | None) -> bool:
        return self.is_staff and target is not None

    def can_delete_user(self, target: User | None) -> bool:
        return (
            self.is_staff
            and target is not None
            and not target.admin
            and not self._is_me(target)
        )

    def can_sync_sso(self) -> bool:
        return self.is_admin

    def can_manage_api_keys(self) -> bool:
        return self.is_admin

    def can_invite_admin(self) -> bool:
        return self.is_admin

    def can_delete_same_ip_users(self) -> bool:
        return self.is_admin

    def can_confirm_admin(self) -> bool:
        return self.is_admin

    def ensure_can(self, action: str, target: User | None = None) -> None:
        """Raise unless ``can_<action>`` allows it.

        Actions in ``TARGETLESS_ACTIONS`` ignore ``target``.
        """
        predicate = getattr(self, f"can_{action}")
        allowed = predicate() if action in TARGETLESS_ACTIONS else predicate(target)

        if not allowed:
            logger.bind(
                action=action,
                actor_id=self.user.id if self.user else None,
                target_id=target.id if target else None,
            ).info("Guardian denied action")
            raise AuthorizationError(action, target.id if target else None)

"""Admin confirmation domain entity."""

from src.forum_admin.entities.core._base import Entity


class AdminConfirmation(Entity):
    """A pending admin grant, completed when ``token`` is confirmed."""

    token: str
    target_user_id: str
    performed_by_id: str

from .guardian import Guardian
from .staff_action_logger import StaffActionLogger
from .user_admin import (
    BulkResult,
    InvitedAdmin,
    Silence,
    Suspension,
    UserAdminService,
)
from .user_destroyer import UserDestroyer
from .user_validator import UserValidator
from .username_suggester import UsernameSuggester, sanitize_username

__all__ = [
    "BulkResult",
    "Guardian",
    "InvitedAdmin",
    "Silence",
    "StaffActionLogger",
    "Suspension",
    "UserAdminService",
    "UserDestroyer",
    "UserValidator",
    "UsernameSuggester",
    "sanitize_username",
]

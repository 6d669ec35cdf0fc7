"""Entities module with entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model with business logic
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .core.admin_confirmation import (
    AdminConfirmation,
    AdminConfirmationRepository,
    AdminConfirmationTable,
)
from .core.api_key import ApiKey, ApiKeyRepository, ApiKeyTable
from .core.email_token import EmailToken, EmailTokenRepository, EmailTokenTable
from .core.single_sign_on_record import (
    SingleSignOnRecord,
    SingleSignOnRecordRepository,
    SingleSignOnRecordTable,
)
from .core.user import User, UserRepository, UserTable
from .core.user_history import (
    UserHistory,
    UserHistoryAction,
    UserHistoryRepository,
    UserHistoryTable,
)

__all__ = [
    "AdminConfirmation",
    "AdminConfirmationRepository",
    "AdminConfirmationTable",
    "ApiKey",
    "ApiKeyRepository",
    "ApiKeyTable",
    "EmailToken",
    "EmailTokenRepository",
    "EmailTokenTable",
    "SingleSignOnRecord",
    "SingleSignOnRecordRepository",
    "SingleSignOnRecordTable",
    "User",
    "UserRepository",
    "UserTable",
    "UserHistory",
    "UserHistoryAction",
    "UserHistoryRepository",
    "UserHistoryTable",
]

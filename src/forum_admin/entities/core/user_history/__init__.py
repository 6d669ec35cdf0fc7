"""Staff action history entity module."""

from .entity import UserHistory, UserHistoryAction
from .repository import UserHistoryRepository
from .table import UserHistoryTable

__all__ = [
    "UserHistory",
    "UserHistoryAction",
    "UserHistoryTable",
    "UserHistoryRepository",
]

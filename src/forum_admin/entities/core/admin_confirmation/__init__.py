"""Admin confirmation entity module."""

from .entity import AdminConfirmation
from .repository import AdminConfirmationRepository
from .table import AdminConfirmationTable

__all__ = [
    "AdminConfirmation",
    "AdminConfirmationTable",
    "AdminConfirmationRepository",
]

"""Email token entity module."""

from .entity import EmailToken
from .repository import EmailTokenRepository
from .table import EmailTokenTable

__all__ = ["EmailToken", "EmailTokenTable", "EmailTokenRepository"]

"""API key entity module."""

from .entity import ApiKey
from .repository import ApiKeyRepository
from .table import ApiKeyTable

__all__ = ["ApiKey", "ApiKeyTable", "ApiKeyRepository"]

"""User entity module.

This module contains all User-related classes organized by responsibility:
- User: Domain entity with business logic
- UserTable: Database persistence model
- UserRepository: Data access layer
"""

from .entity import TRUST_LEVELS, User
from .repository import LIST_QUERIES, UserRepository
from .table import UserTable

__all__ = ["LIST_QUERIES", "TRUST_LEVELS", "User", "UserTable", "UserRepository"]

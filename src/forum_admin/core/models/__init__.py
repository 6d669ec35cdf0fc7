"""API-facing models."""

from .admin_user import AdminDetailedUser, AdminUser, ApiKeyResponse, SingleSignOnSummary

__all__ = ["AdminDetailedUser", "AdminUser", "ApiKeyResponse", "SingleSignOnSummary"]

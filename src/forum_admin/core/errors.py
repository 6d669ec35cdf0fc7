"""
Exception types for the forum administration service.

Every error raised on purpose by a service derives from ``ForumAdminError``
and carries the HTTP status the API layer renders it with.
"""

from __future__ import annotations

from typing import Any


class ForumAdminError(Exception):
    """Base exception for all forum administration errors."""

    status_code: int = 403

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ============================================================================
# Access Errors
# ============================================================================


class AuthenticationError(ForumAdminError):
    """Raised when the caller's credentials are missing or invalid."""

    status_code = 401


class AuthorizationError(ForumAdminError):
    """Raised when the caller lacks a capability for the requested action."""

    def __init__(self, action: str, target_id: str | None = None):
        super().__init__(
            "You are not permitted to view the requested resource.",
            {"action": action, "target_id": target_id},
        )
        self.action = action
        self.target_id = target_id


class NotFoundError(ForumAdminError):
    """Raised when a requested record does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None):
        super().__init__(
            f"The requested {resource} could not be found.",
            {"resource": resource, "resource_id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


# ============================================================================
# SSO Errors
# ============================================================================


class SSOError(ForumAdminError):
    """Base exception for single sign-on payload errors."""

    pass


class SSODisabledError(SSOError):
    """Raised when SSO endpoints are hit while SSO is turned off."""

    status_code = 404

    def __init__(self):
        super().__init__("SSO is not enabled")


class SignatureError(SSOError):
    """Raised when the payload signature does not match the shared secret."""

    def __init__(self, message: str = "Bad signature for payload"):
        super().__init__(message)


class MalformedPayloadError(SSOError):
    """Raised when a verified payload cannot be decoded into claims."""

    pass


# ============================================================================
# Record Errors
# ============================================================================


class ValidationError(ForumAdminError):
    """Raised when a user record fails validation; nothing is persisted."""

    def __init__(self, errors: list[str]):
        super().__init__(f"Validation failed: {', '.join(errors)}", {"errors": errors})
        self.errors = errors


class PostsExistError(ForumAdminError):
    """Raised when deleting a user who still has posts."""

    def __init__(self, user_id: str, post_count: int):
        super().__init__(
            "User has posts; delete them first or pass delete_posts.",
            {"user_id": user_id, "post_count": post_count},
        )
        self.user_id = user_id
        self.post_count = post_count


class JobEnqueueError(ForumAdminError):
    """Raised by a job backend that could not accept a job."""

    status_code = 500

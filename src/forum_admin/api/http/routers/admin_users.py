"""Admin user management endpoints.

Routes with fixed path segments are declared before the ``/{user_id}``
routes so they are not captured by the id parameter.
"""

from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Form, Query
from pydantic import BaseModel, EmailStr, Field

from src.forum_admin.api.http.deps import (
    get_ip_info_client,
    get_sso_sync_service,
    get_user_admin_service,
)
from src.forum_admin.core.errors import ValidationError
from src.forum_admin.core.models import AdminDetailedUser, AdminUser, ApiKeyResponse
from src.forum_admin.core.services import (
    IpInfoClient,
    SSOSyncService,
    UserAdminService,
)

router = APIRouter()

SUCCESS = {"success": "OK"}

ListQuery = Literal[
    "active",
    "new",
    "staff",
    "admins",
    "moderators",
    "suspended",
    "silenced",
    "pending",
]


class BulkUsersRequest(BaseModel):
    users: list[str] = Field(default_factory=list)


class SuspendRequest(BaseModel):
    suspend_until: datetime | None = None
    reason: str | None = None
    message: str | None = None
    post_id: str | None = None


class SilenceRequest(BaseModel):
    silenced_till: datetime | None = None
    reason: str | None = None
    message: str | None = None


class TrustLevelRequest(BaseModel):
    level: int = Field(ge=0, le=4)


class InviteAdminRequest(BaseModel):
    email: EmailStr
    username: str | None = None
    name: str | None = None
    send_email: bool = True


# ---------------------------------------------------------------------------
# Collection routes
# ---------------------------------------------------------------------------


@router.get("", response_model=list[AdminUser], response_model_exclude_none=True)
def list_users(
    query: ListQuery | None = None,
    filter: str | None = Query(default=None, max_length=200),
    show_emails: bool = False,
    service: UserAdminService = Depends(get_user_admin_service),
) -> list[AdminUser]:
    """List users, optionally narrowed by a named query and a text filter."""
    users = service.list_users(query=query, text=filter, show_emails=show_emails)
    return [AdminUser.from_user(user, show_email=show_emails) for user in users]


@router.put("/approve-bulk")
def approve_bulk(
    payload: BulkUsersRequest | None = None,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, str]:
    service.approve_bulk((payload or BulkUsersRequest()).users)
    return SUCCESS


@router.delete("/reject-bulk")
def reject_bulk(
    users: list[str] = Query(default=[]),
    delete_posts: bool = False,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, int]:
    """Delete each listed user; answers with how many succeeded and failed."""
    result = service.reject_bulk(users, delete_posts=delete_posts)
    return result.model_dump()


@router.delete("/delete-others-with-same-ip")
def delete_others_with_same_ip(
    ip: str,
    exclude: str | None = None,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, Any]:
    deleted = service.delete_others_with_same_ip(ip, exclude_id=exclude)
    return {**SUCCESS, "deleted": deleted}


@router.get("/ip-info")
def ip_info(
    ip: str,
    _: UserAdminService = Depends(get_user_admin_service),
    client: IpInfoClient = Depends(get_ip_info_client),
) -> dict[str, Any]:
    try:
        return client.lookup(ip)
    except ValueError as e:
        raise ValidationError([f"Invalid IP address: {ip}"]) from e


@router.post("/invite_admin")
def invite_admin(
    payload: InviteAdminRequest,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, str]:
    """Create an admin account and return the link that sets its password."""
    invited = service.invite_admin(
        email=payload.email,
        username=payload.username,
        name=payload.name,
        send_email=payload.send_email,
    )
    return {**SUCCESS, "password_url": invited.password_url}


@router.post("/sync_sso", response_model=AdminDetailedUser)
def sync_sso(
    sso: str = Form(default=""),
    sig: str = Form(default=""),
    service: UserAdminService = Depends(get_user_admin_service),
    sso_sync: SSOSyncService = Depends(get_sso_sync_service),
) -> AdminDetailedUser:
    """Create or update a user from a signed SSO payload."""
    service.guardian.ensure_can("sync_sso")
    user = sso_sync.sync(sso, sig)
    return service.describe(user)


@router.put("/confirm-admin/{token}")
def confirm_admin(
    token: str,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, str]:
    service.confirm_admin(token)
    return SUCCESS


# ---------------------------------------------------------------------------
# Single-user routes
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=AdminDetailedUser)
def show_user(
    user_id: str,
    service: UserAdminService = Depends(get_user_admin_service),
) -> AdminDetailedUser:
    return service.describe(service.get_user(user_id))


@router.put("/{user_id}/approve")
def approve(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.approve(user_id)
    return SUCCESS


@router.put("/{user_id}/suspend")
def suspend(
    user_id: str,
    payload: SuspendRequest | None = None,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, Any]:
    payload = payload or SuspendRequest()
    suspension = service.suspend(
        user_id,
        suspend_until=payload.suspend_until,
        reason=payload.reason,
        message=payload.message,
        post_id=payload.post_id,
    )
    return {"suspension": {"suspended": True, **suspension.model_dump(mode="json")}}


@router.put("/{user_id}/unsuspend")
def unsuspend(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.unsuspend(user_id)
    return SUCCESS


@router.put("/{user_id}/silence")
def silence(
    user_id: str,
    payload: SilenceRequest | None = None,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, Any]:
    payload = payload or SilenceRequest()
    result = service.silence(
        user_id,
        silenced_till=payload.silenced_till,
        reason=payload.reason,
        message=payload.message,
    )
    return {"silence": {"silenced": True, **result.model_dump(mode="json")}}


@router.put("/{user_id}/unsilence")
def unsilence(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.unsilence(user_id)
    return SUCCESS


@router.put("/{user_id}/grant_admin")
def grant_admin(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    """Start an admin grant; the acting admin is emailed a confirmation link."""
    service.grant_admin(user_id)
    return SUCCESS


@router.put("/{user_id}/revoke_admin")
def revoke_admin(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.revoke_admin(user_id)
    return SUCCESS


@router.put("/{user_id}/grant_moderation")
def grant_moderation(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.grant_moderation(user_id)
    return SUCCESS


@router.put("/{user_id}/revoke_moderation")
def revoke_moderation(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.revoke_moderation(user_id)
    return SUCCESS


@router.put("/{user_id}/trust_level")
def trust_level(
    user_id: str,
    payload: TrustLevelRequest,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, str]:
    service.change_trust_level(user_id, payload.level)
    return SUCCESS


@router.put("/{user_id}/activate")
def activate(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.activate(user_id)
    return SUCCESS


@router.post("/{user_id}/generate_api_key")
def generate_api_key(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, ApiKeyResponse]:
    api_key = service.generate_api_key(user_id)
    return {"api_key": ApiKeyResponse.from_api_key(api_key)}


@router.delete("/{user_id}/revoke_api_key")
def revoke_api_key(
    user_id: str, service: UserAdminService = Depends(get_user_admin_service)
) -> dict[str, str]:
    service.revoke_api_key(user_id)
    return SUCCESS


@router.delete("/{user_id}")
def destroy(
    user_id: str,
    delete_posts: bool = False,
    service: UserAdminService = Depends(get_user_admin_service),
) -> dict[str, bool]:
    return {"deleted": service.destroy(user_id, delete_posts=delete_posts)}

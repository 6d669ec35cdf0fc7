"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Header, Request
from loguru import logger
from sqlmodel import Session

from src.forum_admin.api.http.app_data import ApplicationDependencies
from src.forum_admin.core.errors import AuthenticationError, AuthorizationError
from src.forum_admin.core.services import (
    Guardian,
    IpInfoClient,
    JobQueue,
    SSOSyncService,
    UserAdminService,
)
from src.forum_admin.entities.core.api_key import ApiKeyRepository
from src.forum_admin.entities.core.user import User, UserRepository
from src.forum_admin.runtime.config.config_data import SSOConfig, UsersConfig
from src.forum_admin.runtime.context import get_config


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session scoped to the request."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_job_queue(request: Request) -> JobQueue:
    """Get the background job queue."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.job_queue


def get_ip_info_client(request: Request) -> IpInfoClient:
    """Get the IP lookup client."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.ip_info_client


def get_sso_config() -> SSOConfig:
    return get_config().sso


def get_users_config() -> UsersConfig:
    return get_config().users


def get_base_url() -> str:
    return get_config().app.base_url


def get_current_user(
    request: Request,
    api_key: str | None = Header(default=None, alias="Api-Key"),
    api_username: str | None = Header(default=None, alias="Api-Username"),
    db: Session = Depends(get_db_session),
) -> User:
    """Authenticate the request from its ``Api-Key``/``Api-Username`` headers.

    The key must exist and belong to the named user, and that user must be
    active and not suspended.
    """
    if not api_key or not api_username:
        raise AuthenticationError("Missing Api-Key or Api-Username header")

    key = ApiKeyRepository(db).get_by_key(api_key.strip())
    user = UserRepository(db).get_by_username(api_username.strip())
    if key is None or user is None or key.user_id != user.id:
        logger.bind(api_username=api_username).warning("Rejected API credentials")
        raise AuthenticationError("Invalid API credentials")

    if not user.active or user.is_suspended:
        raise AuthenticationError("Account is not allowed to use the API")

    request.state.user_id = user.id
    return user


def require_staff(user: User = Depends(get_current_user)) -> User:
    """Every admin route needs an admin or moderator."""
    if not user.is_staff:
        raise AuthorizationError("access_admin")
    return user


def get_guardian(user: User = Depends(require_staff)) -> Guardian:
    return Guardian(user)


def get_user_admin_service(
    user: User = Depends(require_staff),
    db: Session = Depends(get_db_session),
    job_queue: JobQueue = Depends(get_job_queue),
    users_config: UsersConfig = Depends(get_users_config),
    base_url: str = Depends(get_base_url),
    guardian: Guardian = Depends(get_guardian),
) -> UserAdminService:
    return UserAdminService(
        user,
        db,
        job_queue,
        base_url=base_url,
        users_config=users_config,
        guardian=guardian,
    )


def get_sso_sync_service(
    db: Session = Depends(get_db_session),
    sso_config: SSOConfig = Depends(get_sso_config),
    users_config: UsersConfig = Depends(get_users_config),
) -> SSOSyncService:
    return SSOSyncService(db, sso_config, users_config)

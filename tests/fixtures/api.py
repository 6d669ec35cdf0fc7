from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session

from src.forum_admin.api.http.app import app
from src.forum_admin.api.http.deps import (
    get_base_url,
    get_db_session,
    get_ip_info_client,
    get_job_queue,
    get_sso_config,
    get_users_config,
)
from src.forum_admin.core.services import InMemoryJobQueue, IpInfoClient
from src.forum_admin.entities.core.user import User
from src.forum_admin.runtime.config.config_data import SSOConfig, UsersConfig
from tests.fixtures.users import BASE_URL

SSO_SECRET = "test-sso-secret"

IP_INFO = {"ip": "10.0.0.1", "city": "Sydney", "country": "AU", "org": "AS1 Test"}


@pytest.fixture
def ip_info_client() -> IpInfoClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=IP_INFO)

    return IpInfoClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def client(
    engine: Engine, job_queue: InMemoryJobQueue, ip_info_client: IpInfoClient
) -> Generator[TestClient]:
    """API client on the per-test database; lifespan is not run."""

    def _session() -> Generator[Session]:
        with Session(engine, expire_on_commit=False) as db:
            yield db

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_job_queue] = lambda: job_queue
    app.dependency_overrides[get_ip_info_client] = lambda: ip_info_client
    app.dependency_overrides[get_users_config] = lambda: UsersConfig()
    app.dependency_overrides[get_base_url] = lambda: BASE_URL
    app.dependency_overrides[get_sso_config] = lambda: SSOConfig(
        enabled=True, secret=SSO_SECRET
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def use_sso_config(client: TestClient) -> Callable[..., SSOConfig]:
    """Swap the SSO settings the API sees for the rest of the test."""

    def _use(**settings) -> SSOConfig:
        settings.setdefault("enabled", True)
        settings.setdefault("secret", SSO_SECRET)
        config = SSOConfig(**settings)
        app.dependency_overrides[get_sso_config] = lambda: config
        return config

    return _use


@pytest.fixture
def headers_for(issue_api_key) -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        key = issue_api_key(user)
        return {"Api-Key": key.key, "Api-Username": user.username}

    return _headers


@pytest.fixture
def admin_headers(admin: User, headers_for) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture
def moderator_headers(moderator: User, headers_for) -> dict[str, str]:
    return headers_for(moderator)

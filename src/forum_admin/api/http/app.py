"""FastAPI application for the forum admin API."""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.forum_admin.api.http.app_data import ApplicationDependencies
from src.forum_admin.api.http.routers.admin_users import router as admin_users_router
from src.forum_admin.api.utils.app_startup import configure_logging
from src.forum_admin.core.errors import ForumAdminError
from src.forum_admin.core.services import (
    DbManageService,
    DbSessionService,
    InMemoryJobQueue,
    IpInfoClient,
    JobQueue,
    TemporalClientService,
    TemporalJobQueue,
)
from src.forum_admin.runtime.context import get_config

configure_logging()

__all__ = ["app", "startup", "shutdown"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        headers.setdefault("Cache-Control", "no-store")
        if get_config().app.environment == "production":
            headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response


# --- Lifecycle ---
def _build_job_queue(temporal_service: TemporalClientService) -> JobQueue:
    """Pick the job backend named by ``jobs.backend``."""
    config = get_config()
    if config.jobs.backend == "temporal":
        if not temporal_service.is_enabled:
            raise RuntimeError("jobs.backend is 'temporal' but temporal is disabled")
        queue = TemporalJobQueue(temporal_service)
        queue.bind_loop(asyncio.get_running_loop())
        logger.bind(task_queue=temporal_service.task_queue).info(
            "Jobs are dispatched to Temporal"
        )
        return queue

    if config.app.environment == "production":
        logger.warning("In-memory job queue in production; emails will not be sent")
    return InMemoryJobQueue()


async def startup() -> None:
    config = get_config()
    logger.bind(environment=config.app.environment).info("Forum admin API starting")

    database_service = DbSessionService()
    if config.database.create_tables_on_startup:
        DbManageService(database_service.engine).create_all()

    temporal_service = TemporalClientService()
    app.state.app_dependencies = ApplicationDependencies(
        database_service=database_service,
        job_queue=_build_job_queue(temporal_service),
        ip_info_client=IpInfoClient.from_config(config.users),
        temporal_service=temporal_service,
    )

    if not database_service.health_check():
        if config.app.environment == "production":
            raise RuntimeError("Database readiness check failed")
        logger.error("Database is not reachable; continuing outside production")


async def shutdown() -> None:
    deps: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if deps is None:
        return

    logger.info("Forum admin API shutting down")
    if isinstance(deps.job_queue, TemporalJobQueue):
        await deps.job_queue.drain()
    if deps.temporal_service is not None:
        await deps.temporal_service.close()
    deps.database_service.engine.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


_docs_enabled = get_config().app.environment != "production"

app = FastAPI(
    title="Forum Admin",
    lifespan=lifespan,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
)

cors = get_config().app.cors
if get_config().app.environment == "production" and "*" in cors.origins:
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)


@app.exception_handler(ForumAdminError)
async def forum_admin_error_handler(
    request: Request, exc: ForumAdminError
) -> JSONResponse:
    """Render every deliberate failure as ``{"failed": "FAILED", "message": ...}``."""
    logger.bind(
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        details=exc.details,
    ).warning("request.rejected: {}", exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"failed": "FAILED", "message": exc.message},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    started = time.perf_counter()

    # query strings are left out; they can carry SSO payloads
    with logger.contextualize(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_ip=client_ip,
    ):
        logger.info("request.start")
        try:
            response = await call_next(request)
        except Exception:
            logger.bind(
                status_code=500,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        logger.bind(
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            user_id=getattr(request.state, "user_id", None),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


app.include_router(admin_users_router, prefix="/admin/users", tags=["admin-users"])


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/ready")
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe; fails while the database is unreachable."""
    deps: ApplicationDependencies = request.app.state.app_dependencies
    if not deps.database_service.health_check():
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(content={"status": "ready"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,
    )

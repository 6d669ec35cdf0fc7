"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from src.forum_admin.runtime.config.config_data import ConfigData
from src.forum_admin.runtime.context import get_config


def _engine_options(config: ConfigData) -> dict[str, Any]:
    """Engine keyword arguments for the configured backend.

    SQLite pools reject sizing arguments; other backends get the pool
    settings from ``database``.
    """
    db = config.database
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}

    if db.is_sqlite:
        options["connect_args"] = {"check_same_thread": False, "timeout": 20}
        if config.app.environment == "production":
            logger.warning("SQLite is not recommended for production use")
        return options

    options.update(
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    if db.url.startswith("postgresql"):
        options["connect_args"] = {
            "application_name": f"forum_admin_{config.app.environment}",
            "connect_timeout": 30,
        }
    return options


class DbSessionService:
    """Owns the engine; hands out sessions that do not expire on commit."""

    def __init__(self, config: ConfigData | None = None):
        config = config or get_config()
        self._engine = create_engine(config.database.url, **_engine_options(config))
        logger.bind(
            environment=config.app.environment, sqlite=config.database.is_sqlite
        ).info("Database engine configured")

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back and re-raise on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.bind(error_type=type(e).__name__).error(
                "Database transaction rolled back: {}", e
            )
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception as e:
            logger.bind(error_type=type(e).__name__, error_message=str(e)).error(
                "Database health check failed"
            )
            return False
        return True

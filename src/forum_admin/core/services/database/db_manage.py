"""Schema management for the application database."""

from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from src.forum_admin.runtime.context import get_config


def register_tables() -> None:
    """Import every table model so it is attached to ``SQLModel.metadata``."""
    from src.forum_admin.entities import (  # noqa: F401
        AdminConfirmationTable,
        ApiKeyTable,
        EmailTokenTable,
        SingleSignOnRecordTable,
        UserHistoryTable,
        UserTable,
    )


class DbManageService:
    def __init__(self, engine: Engine | None = None):
        self._engine = engine or create_engine(get_config().database.url, echo=False)

    def create_all(self) -> None:
        """Create all database tables."""
        register_tables()
        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def drop_all(self) -> None:
        """Drop all database tables."""
        register_tables()
        SQLModel.metadata.drop_all(self._engine)
        logger.warning("Database tables dropped.")

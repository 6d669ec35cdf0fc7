"""Create the forum admin tables: ``python -m src.forum_admin.runtime.init_db``."""

from src.forum_admin.core.services.database.db_manage import DbManageService
from src.forum_admin.core.services.database.db_session import DbSessionService


def init_db() -> None:
    DbManageService(DbSessionService().engine).create_all()


if __name__ == "__main__":
    init_db()

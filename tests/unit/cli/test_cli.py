"""Unit tests for the operator CLI."""

import pytest
from sqlalchemy import inspect
from sqlmodel import Session
from typer.testing import CliRunner

from src.forum_admin.cli import app
from src.forum_admin.cli.user_commands import create_admin_account
from src.forum_admin.core.errors import ValidationError
from src.forum_admin.core.services import DbSessionService
from src.forum_admin.entities.core.api_key import ApiKeyRepository
from src.forum_admin.entities.core.user import UserRepository
from src.forum_admin.runtime.config.config_data import ConfigData, DatabaseConfig
from src.forum_admin.runtime.init_db import init_db
from src.forum_admin.runtime.context import with_context

runner = CliRunner()


@pytest.fixture
def cli_db(tmp_path):
    """Point the CLI at a fresh SQLite file with tables created."""
    config = ConfigData(database=DatabaseConfig(url=f"sqlite:///{tmp_path}/cli.db"))
    with with_context(config):
        result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0, result.output
        yield DbSessionService(config)


class TestCreateAdminAccount:
    def test_creates_confirmed_admin_with_key(self, session):
        user, api_key = create_admin_account(
            session, "root", "Root@Example.com", name="Root"
        )

        assert user.admin is True
        assert user.approved is True
        assert user.email_confirmed is True
        assert user.trust_level == 4
        assert user.email == "root@example.com"
        assert ApiKeyRepository(session).get_for_user(user.id).key == api_key.key

    def test_invalid_account_is_rejected(self, session):
        with pytest.raises(ValidationError):
            create_admin_account(session, "root", "not-an-email")


class TestUsersCommands:
    def test_create_admin_prints_key(self, cli_db):
        result = runner.invoke(
            app, ["users", "create-admin", "root", "--email", "root@example.com"]
        )

        assert result.exit_code == 0, result.output
        with Session(cli_db.engine) as session:
            user = UserRepository(session).get_by_username("root")
            key = ApiKeyRepository(session).get_for_user(user.id)
        assert key.key in result.output

    def test_create_admin_twice_fails(self, cli_db):
        args = ["users", "create-admin", "root", "--email", "root@example.com"]
        runner.invoke(app, args)

        result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert "already been taken" in result.output

    def test_api_key_replaces_key(self, cli_db):
        runner.invoke(
            app, ["users", "create-admin", "root", "--email", "root@example.com"]
        )

        result = runner.invoke(app, ["users", "api-key", "root"])

        assert result.exit_code == 0
        with Session(cli_db.engine) as session:
            user = UserRepository(session).get_by_username("root")
            key = ApiKeyRepository(session).get_for_user(user.id)
        assert key.key in result.output

    def test_api_key_for_unknown_user_fails(self, cli_db):
        result = runner.invoke(app, ["users", "api-key", "ghost"])

        assert result.exit_code == 1

    def test_list_shows_accounts(self, cli_db):
        runner.invoke(
            app, ["users", "create-admin", "root", "--email", "root@example.com"]
        )

        result = runner.invoke(app, ["users", "list", "--query", "admins"])

        assert result.exit_code == 0
        assert "root" in result.output
        assert "Found 1 users" in result.output

    def test_list_rejects_unknown_query(self, cli_db):
        result = runner.invoke(app, ["users", "list", "--query", "everyone"])

        assert result.exit_code == 2

    def test_drop_requires_confirmation(self, cli_db):
        result = runner.invoke(app, ["db", "drop"], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output


class TestInitDb:
    def test_creates_tables(self, tmp_path):
        config = ConfigData(database=DatabaseConfig(url=f"sqlite:///{tmp_path}/init.db"))

        with with_context(config):
            init_db()

        tables = inspect(DbSessionService(config).engine).get_table_names()
        assert {"usertable", "apikeytable", "singlesignonrecordtable"} <= set(tables)

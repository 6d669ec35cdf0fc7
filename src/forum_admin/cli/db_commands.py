"""Database schema commands."""

import typer
from rich.console import Console
from rich.prompt import Confirm

from src.forum_admin.core.services import DbManageService, DbSessionService

console = Console()

db_app = typer.Typer(help="Manage the forum admin database schema")


@db_app.command("init")
def init() -> None:
    """Create every missing table."""
    DbManageService(DbSessionService().engine).create_all()
    console.print("[green]✅ Database tables created[/green]")


@db_app.command("drop")
def drop(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Drop every table, data included."""
    if not force and not Confirm.ask("Drop all tables? Every record will be lost"):
        console.print("[yellow]Cancelled[/yellow]")
        return
    DbManageService(DbSessionService().engine).drop_all()
    console.print("[green]✅ Database tables dropped[/green]")

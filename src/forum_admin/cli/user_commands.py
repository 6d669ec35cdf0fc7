"""Account commands for operators with shell access."""

import typer
from rich.console import Console
from rich.table import Table
from sqlmodel import Session

from src.forum_admin.core.errors import ValidationError
from src.forum_admin.core.security import generate_hex_token
from src.forum_admin.core.services import DbSessionService
from src.forum_admin.core.services.user import UserValidator
from src.forum_admin.core.services.user.user_validator import normalize_email
from src.forum_admin.entities.core._base import utc_now
from src.forum_admin.entities.core.api_key import ApiKey, ApiKeyRepository
from src.forum_admin.entities.core.user import LIST_QUERIES, User, UserRepository

console = Console()

users_app = typer.Typer(help="Manage forum accounts without going through the API")


def _issue_api_key(session: Session, user: User) -> ApiKey:
    keys = ApiKeyRepository(session)
    keys.delete_for_user(user.id)
    return keys.create(ApiKey(key=generate_hex_token(), user_id=user.id))


def create_admin_account(
    session: Session, username: str, email: str, name: str | None = None
) -> tuple[User, ApiKey]:
    """Create an active, approved admin and give it an API key.

    This is how the first staff account gets credentials; it is not audited
    because there is no acting user yet. The caller commits.
    """
    users = UserRepository(session)
    candidate = User(
        username=username,
        name=name,
        email=normalize_email(email),
        admin=True,
        active=True,
        approved=True,
        approved_at=utc_now(),
        email_confirmed=True,
        trust_level=4,
    )
    UserValidator(users).validate(candidate)
    user = users.create(candidate)
    return user, _issue_api_key(session, user)


@users_app.command("create-admin")
def create_admin(
    username: str = typer.Argument(..., help="Username for the new admin"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name"),
) -> None:
    """Create an admin account and print its API key."""
    try:
        with DbSessionService().session_scope() as session:
            user, api_key = create_admin_account(session, username, email, name)
    except ValidationError as e:
        for error in e.errors:
            console.print(f"[red]❌ {error}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Created admin '{user.username}'[/green]")
    console.print(f"Api-Username: [cyan]{user.username}[/cyan]")
    console.print(f"Api-Key:      [cyan]{api_key.key}[/cyan]")


@users_app.command("api-key")
def api_key(
    username: str = typer.Argument(..., help="Account to issue the key for"),
) -> None:
    """Replace an account's API key and print the new one."""
    with DbSessionService().session_scope() as session:
        user = UserRepository(session).get_by_username(username)
        if user is None:
            console.print(f"[red]❌ User '{username}' not found[/red]")
            raise typer.Exit(code=1)
        key = _issue_api_key(session, user)

    console.print(f"Api-Key: [cyan]{key.key}[/cyan]")


@users_app.command("list")
def list_users(
    query: str | None = typer.Option(
        None, "--query", "-q", help=f"One of: {', '.join(LIST_QUERIES)}"
    ),
    text: str | None = typer.Option(None, "--filter", "-f", help="Text filter"),
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum rows"),
) -> None:
    """List accounts, newest first."""
    if query is not None and query not in LIST_QUERIES:
        console.print(f"[red]❌ Unknown query '{query}'[/red]")
        raise typer.Exit(code=2)

    with DbSessionService().session_scope() as session:
        users = UserRepository(session).search(query=query, text=text, limit=limit)

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Username", style="green")
    table.add_column("Email", style="blue")
    table.add_column("Trust", style="magenta")
    table.add_column("Staff", style="yellow")
    table.add_column("Active", style="yellow")

    for user in users:
        staff = "admin" if user.admin else "moderator" if user.moderator else ""
        table.add_row(
            user.id,
            user.username,
            user.email or "",
            str(user.trust_level),
            staff,
            "✅" if user.active else "❌",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(users)} users[/green]")

"""
TeamVault CLI - Command-line interface for team membership and vault keys.

Usage:
    teamvault schema        Print the database schema SQL
    teamvault teams         Manage teams, members and vaults
    teamvault invites       Manage pending invitations
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax

from ..migrations.manager import discover_migrations
from .commands import invites, teams

# Create the main Typer app
app = typer.Typer(
    name="teamvault",
    help="Team membership and vault key distribution on Supabase",
    add_completion=False,
)

console = Console()


@app.command("schema")
def schema_command(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write SQL to a file"),
) -> None:
    """Print the SQL migrations that create the TeamVault schema."""
    migrations = discover_migrations()
    if not migrations:
        console.print("[yellow]No migrations found[/yellow]")
        raise typer.Exit(1)

    sql = "\n\n".join(f"-- {m.version}_{m.name}\n{m.read_sql()}" for m in migrations)

    if output is not None:
        output.write_text(sql, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {len(migrations)} migration(s) to {output}")
    else:
        console.print(Syntax(sql, "sql"))


app.add_typer(teams.app, name="teams")
app.add_typer(invites.app, name="invites")


@app.callback()
def callback() -> None:
    """
    TeamVault - every admin holds a key to every vault.

    Configure with TEAMVAULT_* environment variables or a .env file.
    """
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

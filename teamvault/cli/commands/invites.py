"""
CLI commands for pending invitations.
"""

from typing import Optional

import typer
from rich.table import Table

from ..support import console, open_vault, parse_uuid, run_async

app = typer.Typer(help="Manage pending team invitations")


@app.command("list")
def invites_list_command(
    team_id: Optional[str] = typer.Option(None, "--team", "-t", help="Team ID"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Invited email"),
    include_accepted: bool = typer.Option(False, "--all", help="Include accepted invitations"),
) -> None:
    """List invitations of a team, or the pending invitations of an email."""
    if not team_id and not email:
        raise typer.BadParameter("Pass --team or --email")

    async def _list():
        async with open_vault() as tv:
            if team_id:
                invites = await tv.invites.list_by_team(
                    parse_uuid(team_id, "team ID"), pending_only=not include_accepted
                )
            else:
                invites = await tv.invites.list_by_email(email)

            if not invites:
                console.print("[yellow]No invitations found[/yellow]")
                return

            table = Table(title="Invitations")
            table.add_column("Email", style="cyan")
            table.add_column("Team", style="dim")
            table.add_column("Status", style="green")
            table.add_column("Created", style="yellow")

            for invite in invites:
                table.add_row(
                    invite.email,
                    str(invite.team_id)[:8],
                    "pending" if invite.is_pending else "accepted",
                    invite.created_at.strftime("%Y-%m-%d %H:%M"),
                )

            console.print(table)

    run_async(_list())


@app.command("accept")
def invites_accept_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    user_id: str = typer.Argument(..., help="ID of the registered invitee"),
) -> None:
    """Turn a pending invitation into a member role."""

    async def _accept():
        async with open_vault() as tv:
            membership = await tv.invites.accept(
                parse_uuid(team_id, "team ID"), parse_uuid(user_id, "user ID")
            )
            console.print(f"[green]✓[/green] {membership.user_id} joined as {membership.role.value}")

    run_async(_accept())


@app.command("revoke")
def invites_revoke_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    email: str = typer.Argument(..., help="Invited email"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Admin revoking the invitation"),
) -> None:
    """Revoke a pending invitation."""

    async def _revoke():
        async with open_vault() as tv:
            await tv.invites.revoke(
                parse_uuid(team_id, "team ID"), parse_uuid(actor_id, "actor ID"), email
            )
            console.print(f"[green]✓[/green] Invitation for {email} revoked")

    run_async(_revoke())

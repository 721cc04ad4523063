"""
CLI commands for team management.
"""

from pathlib import Path

import typer
from rich.table import Table

from ..support import (
    console,
    load_key_pair,
    load_promotion_keys,
    open_vault,
    parse_uuid,
    run_async,
)

app = typer.Typer(help="Manage teams, members and vaults")


@app.command("list")
def teams_list_command(
    user_id: str = typer.Option(..., "--user", "-u", help="User ID"),
) -> None:
    """List the teams a user belongs to."""

    async def _list():
        async with open_vault() as tv:
            teams = await tv.teams.list_for_user(parse_uuid(user_id, "user ID"))

            if not teams:
                console.print("[yellow]No teams found[/yellow]")
                return

            table = Table(title="Teams")
            table.add_column("Name", style="cyan")
            table.add_column("Owner", style="green")
            table.add_column("Created", style="yellow")
            table.add_column("ID", style="dim")

            for team in teams:
                table.add_row(
                    team.name,
                    str(team.owner_id)[:8],
                    team.created_at.strftime("%Y-%m-%d"),
                    str(team.id),
                )

            console.print(table)

    run_async(_list())


@app.command("members")
def teams_members_command(
    team_id: str = typer.Argument(..., help="Team ID"),
) -> None:
    """List members and pending invitations of a team."""

    async def _members():
        async with open_vault() as tv:
            tid = parse_uuid(team_id, "team ID")
            members = await tv.teams.list_members(tid)
            pending = await tv.invites.list_by_team(tid)

            table = Table(title="Members")
            table.add_column("User / Email", style="cyan")
            table.add_column("Role", style="green")
            table.add_column("Since", style="yellow")

            for member in members:
                table.add_row(
                    str(member.user_id),
                    member.role.value,
                    member.created_at.strftime("%Y-%m-%d"),
                )
            for invite in pending:
                table.add_row(invite.email, "invited", invite.created_at.strftime("%Y-%m-%d"))

            console.print(table)

    run_async(_members())


@app.command("vaults")
def teams_vaults_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    user_id: str = typer.Option(..., "--user", "-u", help="User ID"),
) -> None:
    """List the vaults a user holds keys for."""

    async def _vaults():
        async with open_vault() as tv:
            vaults = await tv.teams.get_vaults_for_user(
                parse_uuid(team_id, "team ID"), parse_uuid(user_id, "user ID")
            )

            if not vaults:
                console.print("[yellow]No vaults found[/yellow]")
                return

            table = Table(title="Vaults")
            table.add_column("Name", style="cyan")
            table.add_column("Recipients", style="green")
            table.add_column("ID", style="dim")

            for vault in vaults:
                table.add_row(vault.name, str(len(vault.key_pair.recipients)), str(vault.id))

            console.print(table)

    run_async(_vaults())


@app.command("check-admin")
def teams_check_admin_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    user_id: str = typer.Argument(..., help="User ID"),
) -> None:
    """Exit 0 if the user is an owner or admin of the team, 1 otherwise."""

    async def _check():
        async with open_vault() as tv:
            return await tv.teams.check_admin(
                parse_uuid(team_id, "team ID"), parse_uuid(user_id, "user ID")
            )

    is_admin = run_async(_check())
    console.print("admin" if is_admin else "not admin")
    if not is_admin:
        raise typer.Exit(1)


@app.command("invite")
def teams_invite_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    email: str = typer.Argument(..., help="Email address to add or invite"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Admin performing the invite"),
) -> None:
    """Add an existing account to a team, or invite an unknown email."""

    async def _invite():
        async with open_vault() as tv:
            added = await tv.teams.add_or_invite_user_by_email(
                parse_uuid(team_id, "team ID"), parse_uuid(actor_id, "actor ID"), email
            )
            if added:
                console.print(f"[green]✓[/green] {email} added to the team")
            else:
                console.print(f"[green]✓[/green] {email} invited")

    run_async(_invite())


@app.command("create-vault")
def teams_create_vault_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    name: str = typer.Argument(..., help="Vault name"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Admin creating the vault"),
    keys: Path = typer.Option(..., "--keys", "-k", help="Key pair JSON file"),
) -> None:
    """Create a vault sealed for every current admin."""
    key_pair = load_key_pair(keys)

    async def _create():
        async with open_vault() as tv:
            vault = await tv.teams.create_vault(
                parse_uuid(team_id, "team ID"), parse_uuid(actor_id, "actor ID"), name, key_pair
            )
            console.print(f"[green]✓[/green] Vault created: {vault.name}")
            console.print(f"  ID: {vault.id}")

    run_async(_create())


@app.command("promote")
def teams_promote_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    target_id: str = typer.Argument(..., help="Member to promote"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Admin performing the promotion"),
    keys: Path = typer.Option(..., "--keys", "-k", help="Vault ID -> wrapped key JSON file"),
) -> None:
    """Promote a member to admin, handing over a wrapped key per vault."""
    vault_keys = load_promotion_keys(keys)

    async def _promote():
        async with open_vault() as tv:
            await tv.teams.promote_user(
                parse_uuid(team_id, "team ID"),
                parse_uuid(actor_id, "actor ID"),
                parse_uuid(target_id, "target ID"),
                vault_keys,
            )
            console.print(f"[green]✓[/green] {target_id} is now an admin")

    run_async(_promote())


@app.command("demote")
def teams_demote_command(
    team_id: str = typer.Argument(..., help="Team ID"),
    target_id: str = typer.Argument(..., help="Admin to demote"),
    actor_id: str = typer.Option(..., "--actor", "-a", help="Admin performing the demotion"),
) -> None:
    """Demote an admin to member."""

    async def _demote():
        async with open_vault() as tv:
            await tv.teams.demote_user(
                parse_uuid(team_id, "team ID"),
                parse_uuid(actor_id, "actor ID"),
                parse_uuid(target_id, "target ID"),
            )
            console.print(f"[green]✓[/green] {target_id} is now a member")

    run_async(_demote())

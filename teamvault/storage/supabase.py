"""
Supabase/PostgreSQL TeamStore.

Snapshots are read with one call to ``teamvault_load_team`` so they come from a
single statement. Commits go through ``teamvault_apply_changes``, which locks
the team row, checks that its revision still equals the snapshot's and bumps
it before applying the change set. A racing writer therefore fails whole with
SQLSTATE 40001 instead of committing on stale data.

The functions and tables are defined in migrations/versions/001_initial_schema.sql.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
from postgrest.exceptions import APIError

from ..audit.models import AuditLogEntry
from ..auth.users import normalize_email
from ..errors import StoreUnavailableError, TransactionConflictError
from ..invitations.models import TeamInvitation
from ..keys.models import VaultKeyPair, encode_blob
from ..teams.models import Team, TeamMembership
from ..teams.snapshot import TeamSnapshot
from ..utils.supabase import TeamVaultSupabaseClient
from ..vaults.models import Vault
from .base import TeamChangeSet, TeamStore

logger = logging.getLogger(__name__)

# serialization_failure, unique_violation
CONFLICT_CODES = {"40001", "23505"}


def vault_from_row(row: Dict[str, Any]) -> Vault:
    key_pair = VaultKeyPair.from_encoded(
        {"secret": row.get("secret"), "keys": row.get("keys") or {}}
    )
    return Vault(
        id=row["id"],
        team_id=row["team_id"],
        name=row["name"],
        key_pair=key_pair,
        created_at=row["created_at"],
    )


def vault_to_row(vault: Vault) -> Dict[str, Any]:
    encoded = vault.key_pair.to_encoded()
    return {
        "id": str(vault.id),
        "team_id": str(vault.team_id),
        "name": vault.name,
        "secret": encoded["secret"],
        "keys": encoded["keys"],
        "created_at": vault.created_at.isoformat(),
    }


def snapshot_from_payload(payload: Dict[str, Any]) -> TeamSnapshot:
    """Build a TeamSnapshot from the JSON returned by teamvault_load_team."""
    team_row = dict(payload["team"])
    revision = team_row.pop("revision", 0)
    memberships = [TeamMembership(**m) for m in payload.get("memberships") or []]
    invitations = [TeamInvitation(**i) for i in payload.get("invitations") or []]
    vaults = [vault_from_row(v) for v in payload.get("vaults") or []]
    return TeamSnapshot(
        team=Team(**team_row),
        revision=revision,
        memberships={m.user_id: m for m in memberships},
        invitations={
            normalize_email(i.email): i for i in invitations if i.is_pending
        },
        vaults={v.id: v for v in vaults},
    )


def changes_to_payload(changes: TeamChangeSet) -> Dict[str, Any]:
    """Encode a change set as the JSON document teamvault_apply_changes expects."""
    return {
        "team": changes.team.model_dump(mode="json") if changes.team else None,
        "memberships": [m.model_dump(mode="json") for m in changes.memberships],
        "invitations": [i.model_dump(mode="json") for i in changes.invitations],
        "deleted_invitations": [str(i) for i in changes.deleted_invitations],
        "vaults": [vault_to_row(v) for v in changes.vaults],
        "key_grants": [
            {
                "vault_id": str(g.vault_id),
                "user_id": str(g.user_id),
                "wrapped_key": encode_blob(g.wrapped_key),
            }
            for g in changes.key_grants
        ],
        "key_revocations": [
            r.model_dump(mode="json") for r in changes.key_revocations
        ],
        "audit_entries": [e.model_dump(mode="json") for e in changes.audit_entries],
    }


class SupabaseTeamStore(TeamStore):
    """
    TeamStore backed by Supabase PostgREST.

    Example:
        ```python
        client = await TeamVaultSupabaseClient.create(config)
        store = SupabaseTeamStore(client)
        snapshot = await store.load_snapshot(team_id)
        ```
    """

    def __init__(self, client: TeamVaultSupabaseClient) -> None:
        self.client = client

    async def load_snapshot(self, team_id: UUID) -> Optional[TeamSnapshot]:
        payload = await self._rpc("teamvault_load_team", {"p_team_id": str(team_id)})
        if not payload:
            return None
        return snapshot_from_payload(payload)

    async def insert_team(self, changes: TeamChangeSet) -> None:
        await self._rpc("teamvault_create_team", {"p_changes": changes_to_payload(changes)})

    async def _commit(self, snapshot: TeamSnapshot, changes: TeamChangeSet) -> None:
        await self._rpc(
            "teamvault_apply_changes",
            {
                "p_team_id": str(snapshot.team_id),
                "p_revision": snapshot.revision,
                "p_changes": changes_to_payload(changes),
            },
        )

    async def list_teams_for_user(self, user_id: UUID) -> List[Team]:
        members = await self._select(
            self.client.table("teamvault_memberships")
            .select("team_id")
            .eq("user_id", str(user_id))
        )
        team_ids = [m["team_id"] for m in members]
        if not team_ids:
            return []
        rows = await self._select(
            self.client.table("teamvault_teams")
            .select("id, name, owner_id, created_at, updated_at")
            .in_("id", team_ids)
            .order("created_at")
        )
        return [Team(**row) for row in rows]

    async def list_invitations_by_team(
        self, team_id: UUID, pending_only: bool = True
    ) -> List[TeamInvitation]:
        query = self.client.table("teamvault_invitations").select("*").eq(
            "team_id", str(team_id)
        )
        if pending_only:
            query = query.is_("accepted_at", "null")
        rows = await self._select(query.order("created_at", desc=True))
        return [TeamInvitation(**row) for row in rows]

    async def list_invitations_by_email(self, email: str) -> List[TeamInvitation]:
        query = (
            self.client.table("teamvault_invitations")
            .select("*")
            .eq("email", normalize_email(email))
            .is_("accepted_at", "null")
            .order("created_at", desc=True)
        )
        rows = await self._select(query)
        return [TeamInvitation(**row) for row in rows]

    async def list_audit(
        self,
        team_id: UUID,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        query = self.client.table("teamvault_audit_log").select("*").eq(
            "team_id", str(team_id)
        )
        if action:
            query = query.eq("action", action)
        rows = await self._select(query.order("created_at", desc=True).limit(limit))
        return [AuditLogEntry(**row) for row in rows]

    async def _select(self, query) -> List[Dict[str, Any]]:
        try:
            result = await query.execute()
        except APIError as e:
            raise self._translate(e) from e
        except httpx.HTTPError as e:
            raise StoreUnavailableError(f"Supabase request failed: {e}") from e
        return result.data or []

    async def _rpc(self, fn: str, params: Dict[str, Any]) -> Any:
        try:
            result = await self.client.rpc(fn, params).execute()
        except APIError as e:
            raise self._translate(e, fn) from e
        except httpx.HTTPError as e:
            logger.error("%s failed: %s", fn, e)
            raise StoreUnavailableError(f"{fn} failed: {e}") from e
        return result.data

    @staticmethod
    def _translate(error: APIError, fn: str = "query") -> Exception:
        if error.code in CONFLICT_CODES:
            logger.info("%s aborted by a concurrent write (%s)", fn, error.code)
            return TransactionConflictError(f"{fn} conflicted with a concurrent write")
        logger.error("%s failed: %s %s", fn, error.code, error.message)
        return StoreUnavailableError(f"{fn} failed: {error.message}")

"""
In-process TeamStore.

Transactions on the same team are serialized by a per-team asyncio.Lock held
from snapshot read to commit. Nothing is shared with other processes.
"""

import asyncio
from typing import AsyncContextManager, Dict, List, Optional
from uuid import UUID

from ..audit.models import AuditLogEntry
from ..auth.users import normalize_email
from ..errors import TransactionConflictError
from ..invitations.models import TeamInvitation
from ..teams.models import Role, Team, TeamMembership
from ..teams.snapshot import TeamSnapshot
from ..vaults.models import Vault
from .base import TeamChangeSet, TeamStore


class MemoryTeamStore(TeamStore):
    """
    TeamStore backed by dictionaries.

    Example:
        ```python
        store = MemoryTeamStore()
        tv = TeamVault(config, store=store, identity=MemoryIdentityStore())
        ```
    """

    def __init__(self) -> None:
        self._teams: Dict[UUID, Team] = {}
        self._revisions: Dict[UUID, int] = {}
        self._memberships: Dict[UUID, Dict[UUID, TeamMembership]] = {}
        self._invitations: Dict[UUID, Dict[UUID, TeamInvitation]] = {}
        self._vaults: Dict[UUID, Dict[UUID, Vault]] = {}
        self._audit: List[AuditLogEntry] = []
        self._locks: Dict[UUID, asyncio.Lock] = {}

    def _serialize(self, team_id: UUID) -> AsyncContextManager:
        return self._locks.setdefault(team_id, asyncio.Lock())

    async def load_snapshot(self, team_id: UUID) -> Optional[TeamSnapshot]:
        team = self._teams.get(team_id)
        if team is None:
            return None
        pending = {
            normalize_email(inv.email): inv
            for inv in self._invitations[team_id].values()
            if inv.is_pending
        }
        return TeamSnapshot(
            team=team,
            revision=self._revisions[team_id],
            memberships=dict(self._memberships[team_id]),
            invitations=pending,
            vaults=dict(self._vaults[team_id]),
        )

    async def insert_team(self, changes: TeamChangeSet) -> None:
        team = changes.team
        if team is None:
            raise ValueError("insert_team requires a team")
        if team.id in self._teams:
            raise TransactionConflictError(f"Team {team.id} already exists")
        owners = [m for m in changes.memberships if m.role is Role.OWNER]
        if len(owners) != 1:
            raise ValueError("A new team needs exactly one owner membership")

        self._teams[team.id] = team
        self._revisions[team.id] = 0
        self._memberships[team.id] = {}
        self._invitations[team.id] = {}
        self._vaults[team.id] = {}
        self._apply(team.id, changes)

    async def _commit(self, snapshot: TeamSnapshot, changes: TeamChangeSet) -> None:
        team_id = snapshot.team_id
        if self._revisions.get(team_id) != snapshot.revision:
            raise TransactionConflictError(f"Team {team_id} changed during the transaction")
        self._apply(team_id, changes)
        self._revisions[team_id] += 1

    def _apply(self, team_id: UUID, changes: TeamChangeSet) -> None:
        memberships = self._memberships[team_id]
        invitations = self._invitations[team_id]
        vaults = self._vaults[team_id]

        for membership in changes.memberships:
            memberships[membership.user_id] = membership
        for invitation in changes.invitations:
            invitations[invitation.id] = invitation
        for invitation_id in changes.deleted_invitations:
            invitations.pop(invitation_id, None)
        for vault in changes.vaults:
            vaults[vault.id] = vault
        for grant in changes.key_grants:
            vault = vaults[grant.vault_id]
            vaults[vault.id] = vault.model_copy(
                update={"key_pair": vault.key_pair.with_key(grant.user_id, grant.wrapped_key)}
            )
        for revocation in changes.key_revocations:
            vault = vaults[revocation.vault_id]
            vaults[vault.id] = vault.model_copy(
                update={"key_pair": vault.key_pair.without_key(revocation.user_id)}
            )
        self._audit.extend(changes.audit_entries)

    async def list_teams_for_user(self, user_id: UUID) -> List[Team]:
        teams = [
            self._teams[team_id]
            for team_id, members in self._memberships.items()
            if user_id in members
        ]
        return sorted(teams, key=lambda t: t.created_at)

    async def list_invitations_by_team(
        self, team_id: UUID, pending_only: bool = True
    ) -> List[TeamInvitation]:
        invitations = [
            inv
            for inv in self._invitations.get(team_id, {}).values()
            if inv.is_pending or not pending_only
        ]
        return sorted(invitations, key=lambda i: i.created_at, reverse=True)

    async def list_invitations_by_email(self, email: str) -> List[TeamInvitation]:
        email = normalize_email(email)
        invitations = [
            inv
            for team_invitations in self._invitations.values()
            for inv in team_invitations.values()
            if inv.is_pending and normalize_email(inv.email) == email
        ]
        return sorted(invitations, key=lambda i: i.created_at, reverse=True)

    async def list_audit(
        self,
        team_id: UUID,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        entries = [
            e
            for e in self._audit
            if e.team_id == team_id and (action is None or e.action == action)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[:limit]

"""
Persistence contract for TeamVault.

Stores hand out one transaction per team mutation. A transaction exposes the
TeamSnapshot it was opened on and stages changes in a TeamChangeSet; leaving
the ``async with`` block normally commits everything at once, leaving it with
an exception discards everything.
"""

import contextlib
from abc import ABC, abstractmethod
from typing import AsyncContextManager, AsyncIterator, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..audit.models import AuditLogEntry
from ..errors import NotFoundError, UnauthorizedError
from ..invitations.models import TeamInvitation
from ..teams.models import Role, Team, TeamMembership
from ..teams.snapshot import TeamSnapshot
from ..vaults.models import Vault


class VaultKeyGrant(BaseModel):
    """A wrapped key to add to an existing vault."""

    vault_id: UUID
    user_id: UUID
    wrapped_key: bytes


class VaultKeyRevocation(BaseModel):
    """A recipient to drop from an existing vault."""

    vault_id: UUID
    user_id: UUID


class TeamChangeSet(BaseModel):
    """Everything one transaction writes."""

    team: Optional[Team] = None
    memberships: List[TeamMembership] = Field(default_factory=list)
    invitations: List[TeamInvitation] = Field(default_factory=list)
    deleted_invitations: List[UUID] = Field(default_factory=list)
    vaults: List[Vault] = Field(default_factory=list)
    key_grants: List[VaultKeyGrant] = Field(default_factory=list)
    key_revocations: List[VaultKeyRevocation] = Field(default_factory=list)
    audit_entries: List[AuditLogEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.team
            or self.memberships
            or self.invitations
            or self.deleted_invitations
            or self.vaults
            or self.key_grants
            or self.key_revocations
            or self.audit_entries
        )


class TeamTransaction:
    """
    Staging area bound to one team snapshot.

    The owner membership is written once, when the team is created; any later
    attempt to create or alter an owner membership is refused here.
    """

    def __init__(self, snapshot: TeamSnapshot) -> None:
        self.snapshot = snapshot
        self.changes = TeamChangeSet()

    def put_membership(self, membership: TeamMembership) -> None:
        current = self.snapshot.membership(membership.user_id)
        if membership.role is Role.OWNER or (current and current.role is Role.OWNER):
            raise UnauthorizedError("The team owner's role cannot be changed")
        self.changes.memberships.append(membership)

    def put_invitation(self, invitation: TeamInvitation) -> None:
        self.changes.invitations.append(invitation)

    def delete_invitation(self, invitation_id: UUID) -> None:
        self.changes.deleted_invitations.append(invitation_id)

    def add_vault(self, vault: Vault) -> None:
        self.changes.vaults.append(vault)

    def grant_key(self, vault_id: UUID, user_id: UUID, wrapped_key: bytes) -> None:
        self.changes.key_grants.append(
            VaultKeyGrant(vault_id=vault_id, user_id=user_id, wrapped_key=wrapped_key)
        )

    def revoke_key(self, vault_id: UUID, user_id: UUID) -> None:
        self.changes.key_revocations.append(
            VaultKeyRevocation(vault_id=vault_id, user_id=user_id)
        )

    def record(self, entry: Optional[AuditLogEntry]) -> None:
        if entry is not None:
            self.changes.audit_entries.append(entry)


class TeamStore(ABC):
    """
    Durable storage for teams, memberships, invitations, vaults and audit log.

    Implementations must make ``_commit`` all-or-nothing and must reject it
    when the team changed since ``snapshot`` was read.
    """

    @contextlib.asynccontextmanager
    async def transaction(self, team_id: UUID) -> AsyncIterator[TeamTransaction]:
        """
        Open a read-modify-write transaction on one team.

        Raises:
            NotFoundError: If the team does not exist
            TransactionConflictError: If a concurrent write won the race
            StoreUnavailableError: If the backend failed
        """
        async with self._serialize(team_id):
            snapshot = await self.load_snapshot(team_id)
            if snapshot is None:
                raise NotFoundError(f"Team {team_id} not found")
            tx = TeamTransaction(snapshot)
            yield tx
            if not tx.changes.is_empty:
                await self._commit(snapshot, tx.changes)

    def _serialize(self, team_id: UUID) -> AsyncContextManager:
        """Hook for stores that serialize transactions in process."""
        return contextlib.nullcontext()

    @abstractmethod
    async def load_snapshot(self, team_id: UUID) -> Optional[TeamSnapshot]:
        """Read a consistent view of one team, or None if it does not exist."""

    @abstractmethod
    async def insert_team(self, changes: TeamChangeSet) -> None:
        """Atomically persist a new team and its initial records."""

    @abstractmethod
    async def _commit(self, snapshot: TeamSnapshot, changes: TeamChangeSet) -> None:
        """Atomically apply ``changes`` if the team is still at ``snapshot.revision``."""

    @abstractmethod
    async def list_teams_for_user(self, user_id: UUID) -> List[Team]:
        """Teams where ``user_id`` holds a resolved membership."""

    @abstractmethod
    async def list_invitations_by_team(
        self, team_id: UUID, pending_only: bool = True
    ) -> List[TeamInvitation]:
        """Invitations of one team, newest first."""

    @abstractmethod
    async def list_invitations_by_email(self, email: str) -> List[TeamInvitation]:
        """Pending invitations for a normalized email across all teams."""

    @abstractmethod
    async def list_audit(
        self,
        team_id: UUID,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        """Audit entries of one team, newest first."""

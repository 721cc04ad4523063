"""
Team management for TeamVault.

Every mutation runs inside one store transaction: the snapshot it validates
against is the snapshot its writes are committed on, and a failed check
leaves nothing behind.
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID, uuid4

from ..audit.models import AuditAction, ResourceType
from ..config import DemotionKeyPolicy
from ..errors import NotFoundError
from ..invitations.models import CreateInvitationRequest, TeamInvitation
from ..keys.coverage import RecipientCoverage
from ..keys.models import VaultKeyPair
from ..storage.base import TeamChangeSet
from ..vaults.models import Vault
from .models import CreateTeamRequest, CreateVaultRequest, Role, Team, TeamMembership
from .policy import (
    PromotionKeys,
    check_demotion,
    check_invite,
    check_promotion,
    check_vault_keys,
    require_admin,
)
from .snapshot import TeamSnapshot

if TYPE_CHECKING:
    from ..client import TeamVault

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TeamManager:
    """
    Manager for team, membership and vault operations.

    Example:
        ```python
        tv = await TeamVault.create()

        team = await tv.teams.create(owner.id, "Platform", key_pair)

        added = await tv.teams.add_or_invite_user_by_email(
            team.id, owner.id, "bob@example.com"
        )

        vaults = await tv.teams.get_vaults_for_user(team.id, owner.id)
        await tv.teams.promote_user(
            team.id, owner.id, bob.id, {v.id: wrap_for_bob(v) for v in vaults}
        )
        ```
    """

    def __init__(self, tv: "TeamVault") -> None:
        """
        Initialize TeamManager.

        Args:
            tv: TeamVault client instance
        """
        self.tv = tv
        self.config = tv.config
        self.store = tv.store
        self.users = tv.users
        self.audit = tv.audit
        self.notifier = tv.notifier

    async def create(self, actor_id: UUID, name: str, key_pair: VaultKeyPair) -> Team:
        """
        Create a team owned by ``actor_id``.

        A fresh id is generated on every call; names are not unique. The team
        is created together with its default vault, sealed with ``key_pair``.

        Args:
            actor_id: Creating user, who becomes the owner
            name: Display name
            key_pair: Key envelope of the default vault

        Returns:
            Created Team

        Raises:
            NotFoundError: If the actor does not exist
            InvalidKeysError: If ``key_pair`` is not sealed for exactly the actor
            ValidationError: If the name is empty
        """
        request = CreateTeamRequest(name=name)

        actor = await self.users.resolve_by_id(actor_id)
        if actor is None:
            raise NotFoundError(f"User {actor_id} not found")
        RecipientCoverage.of({actor_id}, key_pair.recipients).require_exact("team keys")

        now = utcnow()
        team = Team(
            id=uuid4(),
            name=request.name,
            owner_id=actor_id,
            created_at=now,
            updated_at=now,
        )
        owner = TeamMembership(
            team_id=team.id,
            user_id=actor_id,
            role=Role.OWNER,
            created_at=now,
            updated_at=now,
        )
        vault = Vault(
            id=uuid4(),
            team_id=team.id,
            name=self.config.default_vault_name,
            key_pair=key_pair,
            created_at=now,
        )

        changes = TeamChangeSet(team=team, memberships=[owner], vaults=[vault])
        entry = self.audit.entry(
            AuditAction.TEAM_CREATED,
            team_id=team.id,
            actor_id=actor_id,
            resource_type=ResourceType.TEAM,
            resource_id=team.id,
            metadata={"name": team.name, "default_vault_id": str(vault.id)},
        )
        if entry is not None:
            changes.audit_entries.append(entry)

        await self.store.insert_team(changes)
        logger.info("Created team %s owned by %s", team.id, actor_id)
        return team

    async def get(self, team_id: UUID) -> Optional[Team]:
        """
        Get a team by ID.

        Returns:
            Team if found, None otherwise
        """
        snapshot = await self.store.load_snapshot(team_id)
        return snapshot.team if snapshot else None

    async def list_for_user(self, user_id: UUID) -> List[Team]:
        """Teams where ``user_id`` holds a resolved membership, oldest first."""
        return await self.store.list_teams_for_user(user_id)

    async def list_members(self, team_id: UUID) -> List[TeamMembership]:
        """
        Resolved members of a team, owner first.

        Pending invitations are listed by ``tv.invites.list_by_team``.
        """
        snapshot = await self._snapshot(team_id)
        order = {Role.OWNER: 0, Role.ADMIN: 1, Role.MEMBER: 2}
        return sorted(
            snapshot.memberships.values(),
            key=lambda m: (order.get(m.role, 3), m.created_at),
        )

    async def add_or_invite_user_by_email(
        self,
        team_id: UUID,
        actor_id: UUID,
        email: str,
    ) -> bool:
        """
        Add an existing account to the team, or invite an unknown email.

        Args:
            team_id: Team UUID
            actor_id: Admin performing the operation
            email: Address to add or invite

        Returns:
            True if an existing account was added as a member,
            False if a pending invitation was recorded

        Raises:
            UnauthorizedError: If the actor is not an admin
            AlreadyInTeamError: If the account already has a place in the team
            AlreadyInvitedError: If ``email`` already has a pending invitation
            NotFoundError: If the team does not exist
        """
        email = CreateInvitationRequest(email=email).email
        user = await self.users.resolve_by_email(email)

        invitation: Optional[TeamInvitation] = None
        async with self.store.transaction(team_id) as tx:
            snapshot = tx.snapshot
            require_admin(snapshot, actor_id)
            check_invite(snapshot, email, user)

            now = utcnow()
            if user is not None:
                tx.put_membership(
                    TeamMembership(
                        team_id=team_id,
                        user_id=user.id,
                        role=Role.MEMBER,
                        created_at=now,
                        updated_at=now,
                    )
                )
                tx.record(
                    self.audit.entry(
                        AuditAction.MEMBER_ADDED,
                        team_id=team_id,
                        actor_id=actor_id,
                        resource_type=ResourceType.MEMBERSHIP,
                        resource_id=user.id,
                        metadata={"email": email},
                    )
                )
            else:
                invitation = TeamInvitation(
                    id=uuid4(),
                    team_id=team_id,
                    email=email,
                    invited_by=actor_id,
                    created_at=now,
                )
                tx.put_invitation(invitation)
                tx.record(
                    self.audit.entry(
                        AuditAction.MEMBER_INVITED,
                        team_id=team_id,
                        actor_id=actor_id,
                        resource_type=ResourceType.INVITATION,
                        resource_id=invitation.id,
                        metadata={"email": email},
                    )
                )

        if invitation is None:
            logger.info("Added user %s to team %s", user.id, team_id)
            return True

        logger.info("Invited %s to team %s", email, team_id)
        await self._notify(invitation, snapshot)
        return False

    async def create_vault(
        self,
        team_id: UUID,
        actor_id: UUID,
        name: str,
        key_pair: VaultKeyPair,
    ) -> Vault:
        """
        Create a vault wrapped for exactly the team's current admins.

        Args:
            team_id: Team UUID
            actor_id: Admin creating the vault
            name: Vault display name
            key_pair: Content key envelope; its recipients must equal the
                set of owners and admins at commit time

        Returns:
            Created Vault

        Raises:
            UnauthorizedError: If the actor is not an admin
            InvalidKeysError: If any admin is missing or a non-admin is included
            NotFoundError: If the team does not exist
        """
        request = CreateVaultRequest(name=name)

        async with self.store.transaction(team_id) as tx:
            snapshot = tx.snapshot
            require_admin(snapshot, actor_id)
            check_vault_keys(snapshot, key_pair)

            vault = Vault(
                id=uuid4(),
                team_id=team_id,
                name=request.name,
                key_pair=key_pair,
                created_at=utcnow(),
            )
            tx.add_vault(vault)
            tx.record(
                self.audit.entry(
                    AuditAction.VAULT_CREATED,
                    team_id=team_id,
                    actor_id=actor_id,
                    resource_type=ResourceType.VAULT,
                    resource_id=vault.id,
                    metadata={"name": vault.name, "recipients": len(key_pair.recipients)},
                )
            )

        logger.info("Created vault %s in team %s", vault.id, team_id)
        return vault

    async def get_vaults_for_user(self, team_id: UUID, user_id: UUID) -> List[Vault]:
        """
        Vaults of the team holding a wrapped key for ``user_id``, oldest first.

        Raises:
            NotFoundError: If the team does not exist
        """
        snapshot = await self._snapshot(team_id)
        return snapshot.vaults_for(user_id)

    async def promote_user(
        self,
        team_id: UUID,
        actor_id: UUID,
        target_id: UUID,
        keys: PromotionKeys,
    ) -> None:
        """
        Make ``target_id`` an admin and give them every vault the actor can open.

        Args:
            team_id: Team UUID
            actor_id: Admin performing the promotion
            target_id: Resolved member to promote
            keys: Vault id -> the target's wrapped key for that vault. Must
                cover every vault the actor can open that the target cannot.
                Keys the target already holds are left as they are. A
                VaultKeyPair whose ``keys`` are keyed by vault id is accepted too.

        Raises:
            UnauthorizedError: If the actor is not an admin or target is the owner
            NotFoundError: If the target is not a resolved member
            InvalidKeysError: If a vault the actor can open is not covered
        """
        async with self.store.transaction(team_id) as tx:
            snapshot = tx.snapshot
            grants = check_promotion(snapshot, actor_id, target_id, keys)
            target = snapshot.memberships[target_id]

            for vault_id, wrapped_key in grants.items():
                tx.grant_key(vault_id, target_id, wrapped_key)
            tx.put_membership(
                target.model_copy(update={"role": Role.ADMIN, "updated_at": utcnow()})
            )
            tx.record(
                self.audit.entry(
                    AuditAction.MEMBER_PROMOTED,
                    team_id=team_id,
                    actor_id=actor_id,
                    resource_type=ResourceType.MEMBERSHIP,
                    resource_id=target_id,
                    metadata={"previous_role": target.role.value, "vaults": len(grants)},
                )
            )

        logger.info(
            "Promoted %s in team %s with keys for %d vaults", target_id, team_id, len(grants)
        )

    async def demote_user(self, team_id: UUID, actor_id: UUID, target_id: UUID) -> None:
        """
        Set ``target_id``'s role to member.

        With ``demotion_key_policy = "revoke"`` the target's wrapped keys are
        also dropped from every team vault in the same transaction; with the
        default ``"retain"`` they stay until the vault's content key is rotated.

        Raises:
            UnauthorizedError: If the actor is not an admin or target is the owner
            NotFoundError: If the target is not a resolved member
        """
        revoke = self.config.demotion_key_policy is DemotionKeyPolicy.REVOKE

        async with self.store.transaction(team_id) as tx:
            snapshot = tx.snapshot
            target = check_demotion(snapshot, actor_id, target_id)

            tx.put_membership(
                target.model_copy(update={"role": Role.MEMBER, "updated_at": utcnow()})
            )
            revoked = snapshot.vaults_for(target_id) if revoke else []
            for vault in revoked:
                tx.revoke_key(vault.id, target_id)
                tx.record(
                    self.audit.entry(
                        AuditAction.VAULT_KEYS_REVOKED,
                        team_id=team_id,
                        actor_id=actor_id,
                        resource_type=ResourceType.VAULT,
                        resource_id=vault.id,
                        metadata={"user_id": str(target_id)},
                    )
                )
            tx.record(
                self.audit.entry(
                    AuditAction.MEMBER_DEMOTED,
                    team_id=team_id,
                    actor_id=actor_id,
                    resource_type=ResourceType.MEMBERSHIP,
                    resource_id=target_id,
                    metadata={"previous_role": target.role.value, "revoked_keys": len(revoked)},
                )
            )

        logger.info("Demoted %s in team %s", target_id, team_id)
        if revoked:
            logger.info("Revoked %d vault keys of %s in team %s", len(revoked), target_id, team_id)

    async def check_admin(self, team_id: UUID, user_id: UUID) -> bool:
        """
        Whether ``user_id`` is an owner or admin of the team.

        Raises:
            NotFoundError: If the team does not exist
        """
        snapshot = await self._snapshot(team_id)
        return snapshot.is_admin(user_id)

    async def _snapshot(self, team_id: UUID) -> TeamSnapshot:
        snapshot = await self.store.load_snapshot(team_id)
        if snapshot is None:
            raise NotFoundError(f"Team {team_id} not found")
        return snapshot

    async def _notify(self, invitation: TeamInvitation, snapshot: TeamSnapshot) -> None:
        try:
            await self.notifier.notify_invited(invitation, snapshot.team)
        except Exception:
            logger.warning(
                "Invitation notice to %s for team %s failed",
                invitation.email,
                invitation.team_id,
                exc_info=True,
            )

"""
Invitation management for TeamVault.

Invitations are created by ``TeamManager.add_or_invite_user_by_email`` when
the email has no account yet. This manager covers the rest of their life:

1. List pending invitations by team or by email
2. Gate registration when only invited emails may sign up
3. Accept: the registered invitee becomes a full member
4. Revoke: an admin withdraws a pending invitation
"""

import logging
from typing import TYPE_CHECKING, List
from uuid import UUID

from ..audit.models import AuditAction, ResourceType
from ..auth.users import normalize_email
from ..errors import NotFoundError
from ..teams.models import Role, TeamMembership
from ..teams.policy import check_acceptance, require_admin
from ..teams.teams import utcnow
from .models import TeamInvitation

if TYPE_CHECKING:
    from ..client import TeamVault

logger = logging.getLogger(__name__)


class InvitationManager:
    """
    Manages pending team invitations.

    Example:
        ```python
        # After bob@example.com registers
        pending = await tv.invites.list_by_email("bob@example.com")
        for invite in pending:
            await tv.invites.accept(invite.team_id, bob.id)
        ```
    """

    def __init__(self, tv: "TeamVault") -> None:
        """
        Initialize InvitationManager.

        Args:
            tv: Main TeamVault client instance
        """
        self.tv = tv
        self.config = tv.config
        self.store = tv.store
        self.users = tv.users
        self.audit = tv.audit

    async def list_by_team(
        self,
        team_id: UUID,
        pending_only: bool = True,
    ) -> List[TeamInvitation]:
        """
        List invitations for a team, newest first.

        Args:
            team_id: Team UUID
            pending_only: Only return pending (unaccepted) invitations
        """
        return await self.store.list_invitations_by_team(team_id, pending_only=pending_only)

    async def list_by_email(self, email: str) -> List[TeamInvitation]:
        """List pending invitations for an email address across all teams."""
        return await self.store.list_invitations_by_email(normalize_email(email))

    async def is_invited(self, email: str) -> bool:
        return bool(await self.list_by_email(email))

    async def can_register(self, email: str) -> bool:
        """
        Registration gate for the surrounding service.

        Always True unless ``only_invited`` is set, in which case only emails
        with a pending invitation may register.
        """
        if not self.config.only_invited:
            return True
        return await self.is_invited(email)

    async def accept(self, team_id: UUID, user_id: UUID) -> TeamMembership:
        """
        Accept the pending invitation for ``user_id``'s email.

        The user becomes a member and the invitation is marked accepted in the
        same transaction.

        Returns:
            The new membership

        Raises:
            NotFoundError: If the user, team or pending invitation does not exist
            AlreadyInTeamError: If the user is already a member
        """
        user = await self.users.resolve_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        async with self.store.transaction(team_id) as tx:
            invitation = check_acceptance(tx.snapshot, user)

            now = utcnow()
            membership = TeamMembership(
                team_id=team_id,
                user_id=user.id,
                role=Role.MEMBER,
                created_at=now,
                updated_at=now,
            )
            tx.put_membership(membership)
            tx.put_invitation(
                invitation.model_copy(update={"accepted_at": now, "accepted_by": user.id})
            )
            tx.record(
                self.audit.entry(
                    AuditAction.INVITE_ACCEPTED,
                    team_id=team_id,
                    actor_id=user.id,
                    resource_type=ResourceType.INVITATION,
                    resource_id=invitation.id,
                )
            )

        logger.info("User %s accepted invitation %s", user.id, invitation.id)
        return membership

    async def revoke(self, team_id: UUID, actor_id: UUID, email: str) -> None:
        """
        Withdraw the pending invitation for ``email``.

        Raises:
            UnauthorizedError: If the actor is not an admin
            NotFoundError: If there is no pending invitation for ``email``
        """
        async with self.store.transaction(team_id) as tx:
            snapshot = tx.snapshot
            require_admin(snapshot, actor_id)
            invitation = snapshot.pending_invitation(email)
            if invitation is None:
                raise NotFoundError(f"No pending invitation for {email} in team {team_id}")

            tx.delete_invitation(invitation.id)
            tx.record(
                self.audit.entry(
                    AuditAction.INVITE_REVOKED,
                    team_id=team_id,
                    actor_id=actor_id,
                    resource_type=ResourceType.INVITATION,
                    resource_id=invitation.id,
                    metadata={"email": invitation.email},
                )
            )

        logger.info("Revoked invitation %s in team %s", invitation.id, team_id)

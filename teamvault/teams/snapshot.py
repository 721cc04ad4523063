"""
Transaction-scoped view of one team.

A TeamSnapshot is read inside a store transaction and handed to the policy
checks, so every check sees exactly the state the following write is based on.
"""

from typing import Dict, FrozenSet, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..auth.users import normalize_email
from ..invitations.models import TeamInvitation
from ..vaults.models import Vault
from .models import Role, Team, TeamMembership


class TeamSnapshot(BaseModel):
    """
    Immutable view of a team's ledger and vaults at one revision.

    ``invitations`` only holds pending invitations, keyed by normalized email.
    """

    model_config = ConfigDict(frozen=True)

    team: Team
    revision: int = 0
    memberships: Dict[UUID, TeamMembership] = Field(default_factory=dict)
    invitations: Dict[str, TeamInvitation] = Field(default_factory=dict)
    vaults: Dict[UUID, Vault] = Field(default_factory=dict)

    @property
    def team_id(self) -> UUID:
        return self.team.id

    def membership(self, user_id: UUID) -> Optional[TeamMembership]:
        return self.memberships.get(user_id)

    def pending_invitation(self, email: str) -> Optional[TeamInvitation]:
        return self.invitations.get(normalize_email(email))

    def role_of(self, user_id: UUID, email: Optional[str] = None) -> Optional[Role]:
        """
        Role of a user in this team.

        A user with no membership but a pending invitation for ``email`` is
        reported as ``Role.INVITED``. Returns None for strangers.
        """
        membership = self.memberships.get(user_id)
        if membership is not None:
            return membership.role
        if email and self.pending_invitation(email) is not None:
            return Role.INVITED
        return None

    def is_admin(self, user_id: UUID) -> bool:
        role = self.role_of(user_id)
        return role is not None and role.is_admin

    def admin_ids(self) -> FrozenSet[UUID]:
        """Ids of every owner and admin."""
        return frozenset(
            m.user_id for m in self.memberships.values() if m.role.is_admin
        )

    def vaults_for(self, user_id: UUID) -> List[Vault]:
        """Vaults holding a wrapped key for ``user_id``, oldest first."""
        vaults = [v for v in self.vaults.values() if v.is_accessible_by(user_id)]
        return sorted(vaults, key=lambda v: (v.created_at, v.name, str(v.id)))

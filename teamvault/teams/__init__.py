"""
TeamVault teams module.

Team, membership ledger and the authorization/coverage rules applied to them.
The operations themselves live in ``teamvault.teams.teams.TeamManager``.
"""

from .models import (
    CreateTeamRequest,
    CreateVaultRequest,
    Role,
    Team,
    TeamMembership,
)
from .snapshot import TeamSnapshot

__all__ = [
    "Role",
    "Team",
    "TeamMembership",
    "TeamSnapshot",
    "CreateTeamRequest",
    "CreateVaultRequest",
]

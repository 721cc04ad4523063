"""
TeamVault team models.

Pydantic models for teams and their membership ledger.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Closed set of roles a user can hold in a team."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    INVITED = "invited"

    @property
    def is_admin(self) -> bool:
        return self in (Role.OWNER, Role.ADMIN)

    @property
    def is_pending(self) -> bool:
        return self is Role.INVITED


class Team(BaseModel):
    """
    TeamVault team model - represents a row in the teamvault_teams table.

    Names are display-only; two teams may share a name.
    """

    id: UUID
    name: str
    owner_id: UUID

    # Timestamps
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "name": "Platform",
                "owner_id": "456e7890-e89b-12d3-a456-426614174000",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z",
            }
        },
    }


class TeamMembership(BaseModel):
    """
    A resolved user's place in a team.

    Pending invitations are kept separately as TeamInvitation records keyed
    by email; together they form the team's membership ledger.
    """

    team_id: UUID
    user_id: UUID
    role: Role

    # Timestamps
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "team_id": "123e4567-e89b-12d3-a456-426614174000",
                "user_id": "456e7890-e89b-12d3-a456-426614174000",
                "role": "admin",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z",
            }
        },
    }


class CreateTeamRequest(BaseModel):
    """Request model for creating a new team."""

    name: str = Field(..., min_length=1, max_length=255)


class CreateVaultRequest(BaseModel):
    """Request model for creating a new vault."""

    name: str = Field(..., min_length=1, max_length=255)

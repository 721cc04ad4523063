"""
TeamVault invitation models.

Pydantic models for pending team invitations.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class TeamInvitation(BaseModel):
    """
    TeamVault invitation model - a pending place in a team, keyed by email.

    Invitations are stored in the teamvault_invitations table. An invitation
    stays pending until the invited person registers and accepts it.
    """

    id: UUID
    team_id: UUID
    email: EmailStr

    # Who sent the invite
    invited_by: Optional[UUID] = None

    # Tracking
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[UUID] = None

    # Timestamps
    created_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "team_id": "456e7890-e89b-12d3-a456-426614174000",
                "email": "newuser@example.com",
                "invited_by": "012e3456-e89b-12d3-a456-426614174000",
                "accepted_at": None,
                "accepted_by": None,
                "created_at": "2024-01-01T00:00:00Z",
            }
        },
    }

    @property
    def is_pending(self) -> bool:
        return self.accepted_at is None


class CreateInvitationRequest(BaseModel):
    """Request model for inviting someone to a team by email."""

    email: EmailStr = Field(..., description="Email address to invite")

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v: str) -> str:
        """Emails are matched case-insensitively."""
        return v.strip().lower() if isinstance(v, str) else v

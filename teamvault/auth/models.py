"""
TeamVault auth models.

Pydantic models for the user records this library references.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TeamVaultUser(BaseModel):
    """
    TeamVault user model - represents a row in the teamvault_users table.

    Users are created by account registration elsewhere in the service;
    the team core only reads them. Credential material is never loaded here.
    """

    id: UUID
    email: EmailStr
    email_verified: bool = False

    # Profile
    display_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # Status
    status: str = "active"

    # Timestamps
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "email": "user@example.com",
                "email_verified": True,
                "display_name": "John Doe",
                "status": "active",
                "metadata": {},
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z",
            }
        },
    }

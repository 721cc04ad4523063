"""
TeamVault audit log models.

Pydantic models for audit logging in TeamVault.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AuditAction(str, Enum):
    """Audit actions recorded by the team core."""

    # Team actions
    TEAM_CREATED = "team.created"

    # Membership actions
    MEMBER_ADDED = "member.added"
    MEMBER_INVITED = "member.invited"
    MEMBER_PROMOTED = "member.promoted"
    MEMBER_DEMOTED = "member.demoted"

    # Invitation actions
    INVITE_ACCEPTED = "invite.accepted"
    INVITE_REVOKED = "invite.revoked"

    # Vault actions
    VAULT_CREATED = "vault.created"
    VAULT_KEYS_REVOKED = "vault.keys_revoked"


class ResourceType(str, Enum):
    """Resource types that can be audited."""

    TEAM = "team"
    MEMBERSHIP = "membership"
    INVITATION = "invitation"
    VAULT = "vault"


class AuditLogEntry(BaseModel):
    """
    Audit log entry model - represents a single audit event.

    Stored in the teamvault_audit_log table. Entries are written in the same
    transaction as the change they describe. Key material is never recorded.
    """

    id: UUID
    team_id: UUID
    actor_id: Optional[UUID] = None

    # What happened
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[UUID] = None

    # Details
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # Timestamp
    created_at: datetime

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "team_id": "456e7890-e89b-12d3-a456-426614174000",
                "actor_id": "789e0123-e89b-12d3-a456-426614174000",
                "action": "member.promoted",
                "resource_type": "membership",
                "resource_id": "012e3456-e89b-12d3-a456-426614174000",
                "metadata": {"vaults": 2},
                "created_at": "2024-01-01T00:00:00Z",
            }
        },
    }

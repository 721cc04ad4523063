"""
Audit logging for TeamVault.

Audit entries are built here and staged into the same store transaction as
the change they describe, so an entry exists if and only if its change
committed.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
from uuid import UUID, uuid4

from .models import AuditAction, AuditLogEntry, ResourceType

if TYPE_CHECKING:
    from ..client import TeamVault


class AuditLogger:
    """
    Manages audit logging operations.

    Example:
        ```python
        entries = await tv.audit.list_by_team(team.id)
        promotions = await tv.audit.list_by_team(
            team.id, action=AuditAction.MEMBER_PROMOTED
        )
        ```
    """

    def __init__(self, tv: "TeamVault") -> None:
        """
        Initialize AuditLogger.

        Args:
            tv: Main TeamVault client instance
        """
        self.tv = tv
        self.store = tv.store
        self._enabled = tv.config.enable_audit_log

    def disable(self) -> None:
        """Disable audit logging (useful for bulk operations)."""
        self._enabled = False

    def enable(self) -> None:
        """Enable audit logging."""
        self._enabled = True

    @property
    def is_enabled(self) -> bool:
        """Check if audit logging is enabled."""
        return self._enabled

    def entry(
        self,
        action: AuditAction,
        team_id: UUID,
        actor_id: Optional[UUID] = None,
        resource_type: Optional[ResourceType] = None,
        resource_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLogEntry]:
        """
        Build an audit entry for staging in a transaction.

        Returns:
            AuditLogEntry, or None when audit logging is disabled
        """
        if not self._enabled:
            return None

        return AuditLogEntry(
            id=uuid4(),
            team_id=team_id,
            actor_id=actor_id,
            action=action.value,
            resource_type=resource_type.value if resource_type else None,
            resource_id=resource_id,
            metadata=metadata or {},
            created_at=datetime.now(timezone.utc),
        )

    async def list_by_team(
        self,
        team_id: UUID,
        action: Optional[Union[AuditAction, str]] = None,
        limit: int = 100,
    ) -> List[AuditLogEntry]:
        """
        List audit entries for a team, newest first.

        Args:
            team_id: Team UUID
            action: Filter by action type
            limit: Maximum entries to return

        Returns:
            List of AuditLogEntry instances
        """
        action_value = action.value if isinstance(action, AuditAction) else action
        return await self.store.list_audit(team_id, action=action_value, limit=limit)

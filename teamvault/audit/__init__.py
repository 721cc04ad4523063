"""
TeamVault audit module.

Provides the audit trail for team membership and vault changes.
"""

from .logger import AuditLogger
from .models import AuditAction, AuditLogEntry, ResourceType

__all__ = [
    "AuditLogger",
    "AuditLogEntry",
    "AuditAction",
    "ResourceType",
]

"""
TeamVault storage module.

Transactional persistence for teams, memberships, invitations and vaults.
"""

from .base import (
    TeamChangeSet,
    TeamStore,
    TeamTransaction,
    VaultKeyGrant,
    VaultKeyRevocation,
)
from .memory import MemoryTeamStore
from .supabase import SupabaseTeamStore

__all__ = [
    "TeamStore",
    "TeamTransaction",
    "TeamChangeSet",
    "VaultKeyGrant",
    "VaultKeyRevocation",
    "MemoryTeamStore",
    "SupabaseTeamStore",
]

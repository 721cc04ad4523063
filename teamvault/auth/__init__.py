"""
TeamVault authentication module.

Handles user resolution against the identity store.
"""

from .models import TeamVaultUser
from .users import IdentityStore, MemoryIdentityStore, UserManager, normalize_email

__all__ = [
    "IdentityStore",
    "UserManager",
    "MemoryIdentityStore",
    "TeamVaultUser",
    "normalize_email",
]

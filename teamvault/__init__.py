"""
TeamVault - team membership and vault key distribution for an end-to-end
encrypted secret manager.

The server never sees a vault's content key. Clients upload one wrapped copy
per recipient and TeamVault makes sure every team admin always holds one.

Example:
    ```python
    from teamvault import TeamVault, VaultKeyPair

    tv = await TeamVault.create()

    # Create a team; its default vault is sealed for the owner
    team = await tv.teams.create(
        owner.id, "Platform", VaultKeyPair(secret=nonce, keys={owner.id: wrapped})
    )

    # Add an existing account, or invite an unknown email
    added = await tv.teams.add_or_invite_user_by_email(team.id, owner.id, "bob@example.com")

    # Promote: one wrapped key for bob per vault the owner can open
    vaults = await tv.teams.get_vaults_for_user(team.id, owner.id)
    await tv.teams.promote_user(team.id, owner.id, bob.id, {v.id: wrap(v) for v in vaults})

    # New vaults must be sealed for exactly the current admins
    await tv.teams.create_vault(team.id, owner.id, "Prod", key_pair_for_admins)
    ```
"""

from .audit import AuditAction, AuditLogEntry, AuditLogger, ResourceType
from .client import TeamVault
from .config import DemotionKeyPolicy, StorageBackend, TeamVaultConfig, load_config
from .errors import (
    AlreadyInTeamError,
    AlreadyInvitedError,
    InvalidKeysError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    TeamVaultError,
    TransactionConflictError,
    UnauthorizedError,
)
from .invitations import TeamInvitation
from .invitations.invites import InvitationManager
from .keys import RecipientCoverage, VaultKeyPair
from .teams import Role, Team, TeamMembership
from .teams.teams import TeamManager
from .vaults import Vault

__version__ = "0.1.0"

__all__ = [
    # Main client
    "TeamVault",
    "TeamVaultConfig",
    "StorageBackend",
    "DemotionKeyPolicy",
    "load_config",
    # Teams and vaults
    "TeamManager",
    "Team",
    "TeamMembership",
    "Role",
    "Vault",
    "VaultKeyPair",
    "RecipientCoverage",
    # Invitations
    "InvitationManager",
    "TeamInvitation",
    # Audit logging
    "AuditLogger",
    "AuditLogEntry",
    "AuditAction",
    "ResourceType",
    # Errors
    "TeamVaultError",
    "NotFoundError",
    "UnauthorizedError",
    "AlreadyInvitedError",
    "AlreadyInTeamError",
    "InvalidKeysError",
    "StoreError",
    "TransactionConflictError",
    "StoreUnavailableError",
]

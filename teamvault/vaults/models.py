"""
TeamVault vault models.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from ..keys.models import VaultKeyPair


class Vault(BaseModel):
    """
    A named secret container owned by exactly one team.

    Access to a vault is defined by its key pair: a user can open the vault
    if and only if ``key_pair`` holds a wrapped key for them.
    """

    id: UUID
    team_id: UUID
    name: str
    key_pair: VaultKeyPair

    created_at: datetime

    model_config = {"from_attributes": True}

    def is_accessible_by(self, user_id: UUID) -> bool:
        return self.key_pair.has_key(user_id)

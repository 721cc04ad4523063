"""
TeamVault key models.

Pydantic models for the opaque key material clients upload. The server never
looks inside a wrapped key; it only tracks who has one.
"""

import base64
from typing import Any, Dict, FrozenSet, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def encode_blob(blob: bytes) -> str:
    return base64.b64encode(blob).decode("ascii")


def decode_blob(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


class VaultKeyPair(BaseModel):
    """
    A vault's content-key envelope.

    ``secret`` is the client-generated salt/nonce for the content key and
    ``keys`` maps each recipient's user id to that recipient's wrapped copy of
    the content key. Both are opaque bytes.

    Example:
        ```python
        key_pair = VaultKeyPair(
            secret=nonce,
            keys={alice.id: wrapped_for_alice, bob.id: wrapped_for_bob},
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    secret: bytes
    keys: Dict[UUID, bytes] = Field(default_factory=dict)

    @property
    def recipients(self) -> FrozenSet[UUID]:
        """Recipient ids holding a non-empty wrapped key."""
        return frozenset(uid for uid, blob in self.keys.items() if blob)

    def has_key(self, user_id: UUID) -> bool:
        return bool(self.keys.get(user_id))

    def with_key(self, user_id: UUID, wrapped_key: bytes) -> "VaultKeyPair":
        """Return a copy with ``user_id``'s wrapped key added or replaced."""
        keys = dict(self.keys)
        keys[user_id] = wrapped_key
        return VaultKeyPair(secret=self.secret, keys=keys)

    def without_key(self, user_id: UUID) -> "VaultKeyPair":
        """Return a copy without ``user_id``'s wrapped key."""
        keys = {uid: blob for uid, blob in self.keys.items() if uid != user_id}
        return VaultKeyPair(secret=self.secret, keys=keys)

    def to_encoded(self) -> Dict[str, Any]:
        """JSON-friendly form with base64 blobs."""
        return {
            "secret": encode_blob(self.secret),
            "keys": {str(uid): encode_blob(blob) for uid, blob in self.keys.items()},
        }

    @classmethod
    def from_encoded(cls, data: Mapping[str, Any]) -> "VaultKeyPair":
        """
        Build a key pair from its base64 form.

        Raises:
            ValueError: If a blob is not valid base64
        """
        return cls(
            secret=decode_blob(data.get("secret") or ""),
            keys={
                UUID(uid): decode_blob(blob)
                for uid, blob in (data.get("keys") or {}).items()
            },
        )

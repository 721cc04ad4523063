"""
TeamVault keys module.

Opaque vault key envelopes and the recipient coverage checks run against them.
"""

from .coverage import RecipientCoverage
from .models import VaultKeyPair, decode_blob, encode_blob

__all__ = [
    "VaultKeyPair",
    "RecipientCoverage",
    "encode_blob",
    "decode_blob",
]

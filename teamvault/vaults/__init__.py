"""
TeamVault vaults module.
"""

from .models import Vault

__all__ = ["Vault"]

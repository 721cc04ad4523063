"""
User lookups for TeamVault.

The team core needs exactly two capabilities from the identity store:
resolve a user by email and resolve a user by id. ``IdentityStore`` names that
contract; ``UserManager`` fulfils it against the teamvault_users table and
``MemoryIdentityStore`` keeps users in process.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID, uuid4

from postgrest.exceptions import APIError

from ..errors import StoreUnavailableError
from .models import TeamVaultUser

if TYPE_CHECKING:
    from ..utils.supabase import TeamVaultSupabaseClient

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Canonical form used for every email comparison."""
    return email.strip().lower()


class IdentityStore(ABC):
    """Read-only user resolution used by the team core."""

    @abstractmethod
    async def resolve_by_email(self, email: str) -> Optional[TeamVaultUser]:
        """Return the user registered with ``email`` or None."""

    @abstractmethod
    async def resolve_by_id(self, user_id: UUID) -> Optional[TeamVaultUser]:
        """Return the user with ``user_id`` or None."""


class UserManager(IdentityStore):
    """
    Resolves users from the teamvault_users table via PostgREST.

    Example:
        ```python
        user = await tv.users.resolve_by_email("user@example.com")
        if user:
            print(user.id)
        ```
    """

    def __init__(self, client: "TeamVaultSupabaseClient") -> None:
        """
        Initialize UserManager.

        Args:
            client: Supabase client wrapper
        """
        self.client = client

    async def resolve_by_id(self, user_id: UUID) -> Optional[TeamVaultUser]:
        """
        Get a user by ID.

        Args:
            user_id: User UUID

        Returns:
            TeamVaultUser instance or None if not found
        """
        rows = await self._select("id", str(user_id))
        if not rows:
            return None
        return TeamVaultUser(**rows[0])

    async def resolve_by_email(self, email: str) -> Optional[TeamVaultUser]:
        """
        Get a user by their email address.

        Args:
            email: User email address (compared case-insensitively)

        Returns:
            TeamVaultUser instance or None if not found

        Example:
            ```python
            user = await tv.users.resolve_by_email("user@example.com")
            ```
        """
        rows = await self._select("email", normalize_email(email))
        if not rows:
            return None
        return TeamVaultUser(**rows[0])

    async def _select(self, column: str, value: str) -> List[dict]:
        try:
            result = await self.client.table("teamvault_users").select("*").eq(
                column, value
            ).execute()
        except APIError as e:
            logger.error("User lookup by %s failed: %s", column, e.message)
            raise StoreUnavailableError(f"User lookup failed: {e.message}") from e
        return result.data or []


class MemoryIdentityStore(IdentityStore):
    """
    In-process identity store.

    Used by ``TeamVault.in_memory()`` and the test suite. ``register`` stands
    in for the account registration flow that lives outside this library.
    """

    def __init__(self) -> None:
        self._by_id: Dict[UUID, TeamVaultUser] = {}

    def register(self, email: str, display_name: Optional[str] = None) -> TeamVaultUser:
        """
        Register a user.

        Raises:
            ValueError: If the email is already registered
        """
        email = normalize_email(email)
        if any(u.email == email for u in self._by_id.values()):
            raise ValueError(f"User {email} already exists")
        now = datetime.now(timezone.utc)
        user = TeamVaultUser(
            id=uuid4(),
            email=email,
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        self._by_id[user.id] = user
        return user

    async def resolve_by_id(self, user_id: UUID) -> Optional[TeamVaultUser]:
        return self._by_id.get(user_id)

    async def resolve_by_email(self, email: str) -> Optional[TeamVaultUser]:
        email = normalize_email(email)
        for user in self._by_id.values():
            if user.email == email:
                return user
        return None

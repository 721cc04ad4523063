"""
Main TeamVault client.

This is the primary interface users interact with.
"""

import logging
from typing import Optional

from .audit import AuditLogger
from .auth import IdentityStore, MemoryIdentityStore, UserManager
from .config import StorageBackend, TeamVaultConfig, load_config
from .invitations import InviteNotifier, NullInviteNotifier, SupabaseInviteNotifier
from .invitations.invites import InvitationManager
from .storage import MemoryTeamStore, SupabaseTeamStore, TeamStore
from .teams.teams import TeamManager
from .utils.supabase import TeamVaultSupabaseClient

logger = logging.getLogger(__name__)


class TeamVault:
    """
    Main TeamVault client for team membership and vault key distribution.

    Provides access to all features: user resolution, teams and their vaults,
    pending invitations and the audit trail.

    Example:
        ```python
        from teamvault import TeamVault

        # Initialize from environment variables
        tv = await TeamVault.create()

        # Or with explicit config
        tv = await TeamVault.create(
            supabase_url="https://xxx.supabase.co",
            supabase_key="your-service-key"
        )

        team = await tv.teams.create(owner.id, "Platform", key_pair)
        added = await tv.teams.add_or_invite_user_by_email(
            team.id, owner.id, "bob@example.com"
        )
        ```
    """

    def __init__(
        self,
        config: TeamVaultConfig,
        store: TeamStore,
        identity: IdentityStore,
        notifier: Optional[InviteNotifier] = None,
        client: Optional[TeamVaultSupabaseClient] = None,
    ) -> None:
        """
        Initialize TeamVault client.

        Args:
            config: TeamVault configuration
            store: Team persistence backend
            identity: User resolution backend
            notifier: Invitation notice delivery (disabled if omitted)
            client: Supabase client wrapper, when the Supabase backend is used

        Note:
            Use TeamVault.create() or TeamVault.in_memory() instead of direct
            instantiation.
        """
        self.config = config
        self.client = client
        self.store = store
        self.notifier = notifier or NullInviteNotifier()

        self.users = identity
        self.audit = AuditLogger(self)
        self.teams = TeamManager(self)
        self.invites = InvitationManager(self)

    @classmethod
    async def create(
        cls,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        **kwargs,
    ) -> "TeamVault":
        """
        Create and initialize a TeamVault client.

        Args:
            supabase_url: Supabase project URL (optional, loads from env)
            supabase_key: Supabase service role key (optional, loads from env)
            **kwargs: Additional configuration options

        Returns:
            Initialized TeamVault client

        Raises:
            ValidationError: If required configuration is missing or invalid
        """
        config_kwargs = kwargs.copy()
        if supabase_url:
            config_kwargs["supabase_url"] = supabase_url
        if supabase_key:
            config_kwargs["supabase_key"] = supabase_key

        config = load_config(**config_kwargs)

        if config.storage_backend is StorageBackend.MEMORY:
            return cls.in_memory(config)

        client = await TeamVaultSupabaseClient.create(config)
        notifier = (
            SupabaseInviteNotifier(client, redirect_to=config.invite_redirect_url)
            if config.send_invite_emails
            else None
        )
        logger.debug("TeamVault connected to %s", config.supabase_url)
        return cls(
            config=config,
            store=SupabaseTeamStore(client),
            identity=UserManager(client),
            notifier=notifier,
            client=client,
        )

    @classmethod
    def in_memory(
        cls,
        config: Optional[TeamVaultConfig] = None,
        identity: Optional[IdentityStore] = None,
        notifier: Optional[InviteNotifier] = None,
    ) -> "TeamVault":
        """
        Create a TeamVault client that keeps everything in process.

        Example:
            ```python
            identity = MemoryIdentityStore()
            alice = identity.register("alice@example.com")
            tv = TeamVault.in_memory(identity=identity)
            ```
        """
        config = config or TeamVaultConfig(storage_backend=StorageBackend.MEMORY)
        return cls(
            config=config,
            store=MemoryTeamStore(),
            identity=identity or MemoryIdentityStore(),
            notifier=notifier,
        )

    async def close(self) -> None:
        """
        Close the TeamVault client and cleanup resources.

        Example:
            ```python
            tv = await TeamVault.create()
            try:
                ...
            finally:
                await tv.close()
            ```
        """
        if self.client is not None:
            await self.client.close()

    async def __aenter__(self) -> "TeamVault":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

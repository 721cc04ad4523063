"""
Supabase client wrapper for TeamVault.

Provides a thin wrapper around the Supabase AsyncClient with TeamVault-specific
configuration. Table reads go through PostgREST; every multi-row write goes
through a Postgres function called with ``rpc`` so it runs in one transaction.

Package versions this was built against:
- supabase: 2.27.1
- supabase-auth: 2.27.1
- postgrest: 2.27.1
"""

from typing import Any, Dict, Optional

from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from ..config import TeamVaultConfig


class TeamVaultSupabaseClient:
    """
    Wrapper around Supabase AsyncClient with TeamVault-specific configuration.

    This class provides:
    1. Configured client with service role key (for admin operations)
    2. Access to auth admin API (invitation emails)
    3. Table queries and RPC calls against teamvault_* objects
    4. Proper schema configuration

    Example:
        ```python
        from teamvault.config import TeamVaultConfig
        from teamvault.utils.supabase import TeamVaultSupabaseClient

        config = TeamVaultConfig()
        client = await TeamVaultSupabaseClient.create(config)

        result = await client.table("teamvault_teams").select("*").execute()
        ```
    """

    def __init__(self, config: TeamVaultConfig, client: AsyncClient) -> None:
        """
        Initialize the TeamVault Supabase client.

        Args:
            config: TeamVault configuration
            client: Initialized Supabase AsyncClient

        Note:
            Use TeamVaultSupabaseClient.create() instead of direct instantiation.
        """
        self.config = config
        self._client = client

    @classmethod
    async def create(cls, config: TeamVaultConfig) -> "TeamVaultSupabaseClient":
        """
        Create and initialize a TeamVaultSupabaseClient.

        Args:
            config: TeamVault configuration with Supabase credentials

        Returns:
            Initialized TeamVaultSupabaseClient
        """
        options = AsyncClientOptions(
            schema=config.db_schema,
            # Service role key for admin operations
            headers={
                "apikey": config.supabase_key,
                "Authorization": f"Bearer {config.supabase_key}",
            },
        )

        client = await acreate_client(
            supabase_url=config.supabase_url,
            supabase_key=config.supabase_key,
            options=options,
        )

        return cls(config=config, client=client)

    @property
    def auth(self):
        """
        Access Supabase Auth client.

        Provides access to ``auth.admin`` (invite_user_by_email, etc.).
        """
        return self._client.auth

    def table(self, table_name: str):
        """
        Create a query builder for a specific table.

        Args:
            table_name: Name of the table (e.g., "teamvault_teams")

        Returns:
            AsyncRequestBuilder for chaining queries

        Example:
            ```python
            members = await client.table("teamvault_memberships").select("*").eq(
                "team_id", str(team_id)
            ).execute()
            ```
        """
        return self._client.table(table_name)

    def rpc(self, fn: str, params: Optional[Dict[str, Any]] = None):
        """
        Call a Postgres function.

        Args:
            fn: Function name (e.g., "teamvault_apply_changes")
            params: Named arguments

        Returns:
            Request builder; ``await ....execute()`` to run it
        """
        return self._client.rpc(fn, params or {})

    async def close(self) -> None:
        """
        Close the client and cleanup resources.

        The Supabase client keeps no connection pool of its own to release;
        this exists so TeamVault.close() has a single call to make.
        """
        return None

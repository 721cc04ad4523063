"""
Pytest configuration and fixtures for TeamVault tests.

Provides a mock Supabase client plus an in-memory TeamVault with three
registered users.
"""

from datetime import datetime, timezone
from typing import Iterable
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from teamvault.auth import MemoryIdentityStore
from teamvault.client import TeamVault
from teamvault.config import StorageBackend, TeamVaultConfig
from teamvault.invitations import InviteNotifier
from teamvault.keys import VaultKeyPair
from teamvault.utils.supabase import TeamVaultSupabaseClient


def wrapped_key(user_id: UUID, tag: str = "") -> bytes:
    """Stand-in for a client-side wrapped content key."""
    return f"wrapped:{tag}:{user_id}".encode()


def key_pair_for(user_ids: Iterable[UUID], tag: str = "") -> VaultKeyPair:
    """Key pair with one wrapped key per recipient."""
    return VaultKeyPair(
        secret=f"nonce:{tag}".encode(),
        keys={uid: wrapped_key(uid, tag) for uid in user_ids},
    )


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    client = AsyncMock()

    # Mock auth client
    auth_client = AsyncMock()
    auth_admin = AsyncMock()
    auth_client.admin = auth_admin
    client.auth = auth_client

    # Store query builders by table name so we can configure them
    query_builders = {}

    # Mock table method that returns a query builder
    def table_mock(table_name: str):
        if table_name not in query_builders:
            query_builder = Mock()
            # Make all methods return self for chaining
            query_builder.select = Mock(return_value=query_builder)
            query_builder.eq = Mock(return_value=query_builder)
            query_builder.in_ = Mock(return_value=query_builder)
            query_builder.is_ = Mock(return_value=query_builder)
            query_builder.limit = Mock(return_value=query_builder)
            query_builder.order = Mock(return_value=query_builder)
            # Default execute returns empty result
            query_builder.execute = AsyncMock(return_value=Mock(data=[], count=0))
            query_builders[table_name] = query_builder
        return query_builders[table_name]

    client.table = Mock(side_effect=table_mock)

    # Postgres function calls share one builder
    rpc_builder = Mock()
    rpc_builder.execute = AsyncMock(return_value=Mock(data=None))
    client.rpc = Mock(return_value=rpc_builder)

    client._query_builders = query_builders  # Expose for test configuration
    client._rpc_builder = rpc_builder
    return client


@pytest.fixture
def supabase_config():
    """Create a TeamVaultConfig for the Supabase backend."""
    return TeamVaultConfig(
        supabase_url="https://test.supabase.co",
        supabase_key="test-service-key-12345678901234567890",
        db_schema="public",
        debug=True,
    )


@pytest.fixture
def mock_teamvault_supabase_client(mock_supabase_client, supabase_config):
    """Create a TeamVaultSupabaseClient around the mock client."""
    return TeamVaultSupabaseClient(config=supabase_config, client=mock_supabase_client)


def setup_table_mock(client, table_name, execute_return_value):
    """
    Helper function to set up a table mock with a specific execute return value.

    Args:
        client: TeamVaultSupabaseClient wrapping the mock client
        table_name: Name of the table
        execute_return_value: Mock result to return from execute()
    """
    query_builder = client._client.table(table_name)
    query_builder.execute = AsyncMock(return_value=execute_return_value)
    return query_builder


@pytest.fixture
def memory_config():
    """Create a TeamVaultConfig for the in-memory backend."""
    return TeamVaultConfig(storage_backend=StorageBackend.MEMORY)


@pytest.fixture
def identity():
    return MemoryIdentityStore()


@pytest.fixture
def alice(identity):
    return identity.register("alice@example.com", display_name="Alice")


@pytest.fixture
def bob(identity):
    return identity.register("bob@example.com", display_name="Bob")


@pytest.fixture
def carol(identity):
    return identity.register("carol@example.com", display_name="Carol")


@pytest.fixture
def notifier():
    """Notifier that records calls."""
    mock = Mock(spec=InviteNotifier)
    mock.notify_invited = AsyncMock()
    return mock


@pytest.fixture
def tv(memory_config, identity, notifier):
    """Create an in-memory TeamVault instance."""
    return TeamVault.in_memory(config=memory_config, identity=identity, notifier=notifier)


@pytest.fixture
async def team(tv, alice):
    """Team owned by alice, with its default vault sealed for alice."""
    return await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id], "default"))


@pytest.fixture
def sample_team_id():
    return uuid4()


@pytest.fixture
def now():
    return datetime.now(timezone.utc)

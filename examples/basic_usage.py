"""
Basic TeamVault usage example.

This example walks through the team lifecycle in process:
- Team creation with its default vault
- Adding an existing account and inviting an unknown email
- Promoting a member by handing over one wrapped key per vault
- Creating a vault sealed for exactly the current admins
- Demotion and the audit trail

Wrapped keys here are placeholder bytes; a real client encrypts the vault's
content key to each recipient's public key before calling TeamVault.

Run with:
    python examples/basic_usage.py
"""

import asyncio
import os

from teamvault import InvalidKeysError, TeamVault, UnauthorizedError, VaultKeyPair
from teamvault.auth import MemoryIdentityStore


def wrap(vault_name: str, user_id) -> bytes:
    """Stand-in for client-side key wrapping."""
    return f"{vault_name}:{user_id}".encode()


async def main():
    identity = MemoryIdentityStore()
    alice = identity.register("alice@example.com", display_name="Alice")
    bob = identity.register("bob@example.com", display_name="Bob")

    async with TeamVault.in_memory(identity=identity) as tv:
        # =================================================================
        # 1. Create a team
        # =================================================================
        print("Creating team...")

        team = await tv.teams.create(
            alice.id,
            "Platform",
            VaultKeyPair(secret=os.urandom(16), keys={alice.id: wrap("Default", alice.id)}),
        )
        print(f"  Created team: {team.name} (ID: {team.id})")

        # =================================================================
        # 2. Add an existing account, invite an unknown email
        # =================================================================
        print("\nAdding members...")

        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)
        print(f"  bob@example.com added: {added}")

        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "carol@example.com")
        print(f"  carol@example.com added: {added} (pending invitation)")

        # =================================================================
        # 3. Promote bob
        # =================================================================
        print("\nPromoting bob...")

        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)
        await tv.teams.promote_user(
            team.id, alice.id, bob.id, {v.id: wrap(v.name, bob.id) for v in vaults}
        )
        print(f"  bob is admin: {await tv.teams.check_admin(team.id, bob.id)}")

        # =================================================================
        # 4. Create a vault for every admin
        # =================================================================
        print("\nCreating vault...")

        try:
            await tv.teams.create_vault(
                team.id,
                alice.id,
                "Prod",
                VaultKeyPair(secret=os.urandom(16), keys={alice.id: wrap("Prod", alice.id)}),
            )
        except InvalidKeysError as e:
            print(f"  Rejected: {len(e.missing)} admin(s) missing a key")

        prod = await tv.teams.create_vault(
            team.id,
            alice.id,
            "Prod",
            VaultKeyPair(
                secret=os.urandom(16),
                keys={uid: wrap("Prod", uid) for uid in (alice.id, bob.id)},
            ),
        )
        print(f"  Created vault: {prod.name} (ID: {prod.id})")

        # =================================================================
        # 5. Demote bob
        # =================================================================
        print("\nDemoting bob...")

        await tv.teams.demote_user(team.id, alice.id, bob.id)
        print(f"  bob is admin: {await tv.teams.check_admin(team.id, bob.id)}")

        try:
            await tv.teams.demote_user(team.id, bob.id, alice.id)
        except UnauthorizedError:
            print("  bob cannot demote alice")

        # =================================================================
        # 6. Audit trail
        # =================================================================
        print("\nAudit trail:")
        for entry in await tv.audit.list_by_team(team.id):
            print(f"  {entry.created_at:%H:%M:%S} {entry.action}")


if __name__ == "__main__":
    asyncio.run(main())

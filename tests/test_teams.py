"""
Tests for teamvault.teams module.

Runs the team aggregate end to end against the in-memory store.
"""

import asyncio
import logging
from uuid import uuid4

import pytest
from pydantic import ValidationError

from teamvault.client import TeamVault
from teamvault.config import DemotionKeyPolicy, StorageBackend, TeamVaultConfig
from teamvault.errors import (
    AlreadyInTeamError,
    AlreadyInvitedError,
    InvalidKeysError,
    NotFoundError,
    UnauthorizedError,
)
from teamvault.teams import Role

from conftest import key_pair_for, wrapped_key


async def promotion_keys(tv, team_id, actor_id, target_id):
    """What a client computes before promoting: one wrapped key per actor vault."""
    vaults = await tv.teams.get_vaults_for_user(team_id, actor_id)
    return {v.id: wrapped_key(target_id, v.name) for v in vaults}


async def make_admin(tv, team_id, actor_id, user):
    await tv.teams.add_or_invite_user_by_email(team_id, actor_id, user.email)
    keys = await promotion_keys(tv, team_id, actor_id, user.id)
    await tv.teams.promote_user(team_id, actor_id, user.id, keys)


class TestCreateTeam:
    """Tests for TeamManager.create."""

    @pytest.mark.asyncio
    async def test_create_team(self, tv, alice):
        team = await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id]))

        assert team.name == "Platform"
        assert team.owner_id == alice.id
        assert await tv.teams.check_admin(team.id, alice.id) is True
        assert await tv.teams.get(team.id) == team

    @pytest.mark.asyncio
    async def test_same_name_twice_yields_distinct_teams(self, tv, alice):
        first = await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id]))
        second = await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id]))

        assert first.id != second.id
        teams = await tv.teams.list_for_user(alice.id)
        assert {t.id for t in teams} == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_default_vault_created(self, tv, alice):
        key_pair = key_pair_for([alice.id], "default")
        team = await tv.teams.create(alice.id, "Platform", key_pair)

        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)

        assert len(vaults) == 1
        assert vaults[0].name == "Default"
        assert vaults[0].key_pair == key_pair

    @pytest.mark.asyncio
    async def test_default_vault_name_from_config(self, identity, alice):
        config = TeamVaultConfig(storage_backend=StorageBackend.MEMORY, default_vault_name="Shared")
        tv = TeamVault.in_memory(config=config, identity=identity)

        team = await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id]))

        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)
        assert [v.name for v in vaults] == ["Shared"]

    @pytest.mark.asyncio
    async def test_creator_key_required(self, tv, alice, bob):
        with pytest.raises(InvalidKeysError) as exc_info:
            await tv.teams.create(alice.id, "Platform", key_pair_for([bob.id]))

        assert exc_info.value.missing == frozenset({alice.id})
        assert await tv.teams.list_for_user(alice.id) == []

    @pytest.mark.asyncio
    async def test_extra_recipient_rejected(self, tv, alice, bob):
        with pytest.raises(InvalidKeysError) as exc_info:
            await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id, bob.id]))

        assert exc_info.value.extra == frozenset({bob.id})
        assert exc_info.value.missing == frozenset()
        assert await tv.teams.list_for_user(alice.id) == []

    @pytest.mark.asyncio
    async def test_unknown_creator(self, tv):
        ghost = uuid4()
        with pytest.raises(NotFoundError):
            await tv.teams.create(ghost, "Platform", key_pair_for([ghost]))

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, tv, alice):
        with pytest.raises(ValidationError):
            await tv.teams.create(alice.id, "", key_pair_for([alice.id]))

    @pytest.mark.asyncio
    async def test_unknown_team(self, tv, alice):
        assert await tv.teams.get(uuid4()) is None
        with pytest.raises(NotFoundError):
            await tv.teams.check_admin(uuid4(), alice.id)
        with pytest.raises(NotFoundError):
            await tv.teams.add_or_invite_user_by_email(uuid4(), alice.id, "x@example.com")


class TestAddOrInvite:
    """Tests for TeamManager.add_or_invite_user_by_email."""

    @pytest.mark.asyncio
    async def test_existing_account_is_added(self, tv, team, alice, bob, notifier):
        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "bob@example.com")

        assert added is True
        members = await tv.teams.list_members(team.id)
        assert [(m.user_id, m.role) for m in members] == [
            (alice.id, Role.OWNER),
            (bob.id, Role.MEMBER),
        ]
        assert await tv.teams.check_admin(team.id, bob.id) is False
        notifier.notify_invited.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_email_is_invited(self, tv, team, alice, notifier):
        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")

        assert added is False
        pending = await tv.invites.list_by_team(team.id)
        assert [i.email for i in pending] == ["dave@example.com"]
        assert pending[0].invited_by == alice.id
        notifier.notify_invited.assert_awaited_once()
        invitation, notified_team = notifier.notify_invited.await_args.args
        assert invitation.email == "dave@example.com"
        assert notified_team.id == team.id

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, tv, team, alice, bob):
        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "  BOB@Example.COM ")
        assert added is True

    @pytest.mark.asyncio
    async def test_invite_same_unresolved_email_twice(self, tv, team, alice):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")

        with pytest.raises(AlreadyInvitedError):
            await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "Dave@example.com")

        assert len(await tv.invites.list_by_team(team.id)) == 1

    @pytest.mark.asyncio
    async def test_invite_existing_member(self, tv, team, alice, bob):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        with pytest.raises(AlreadyInTeamError):
            await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

    @pytest.mark.asyncio
    async def test_invite_owner(self, tv, team, alice):
        with pytest.raises(AlreadyInTeamError):
            await tv.teams.add_or_invite_user_by_email(team.id, alice.id, alice.email)

    @pytest.mark.asyncio
    async def test_registered_after_invite_counts_as_in_team(self, tv, team, alice, identity):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")
        identity.register("dave@example.com")

        with pytest.raises(AlreadyInTeamError):
            await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")

    @pytest.mark.asyncio
    async def test_non_admin_cannot_invite(self, tv, team, alice, bob):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        with pytest.raises(UnauthorizedError):
            await tv.teams.add_or_invite_user_by_email(team.id, bob.id, "dave@example.com")
        assert await tv.invites.list_by_team(team.id) == []

    @pytest.mark.asyncio
    async def test_malformed_email(self, tv, team, alice):
        with pytest.raises(ValidationError):
            await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "not-an-email")

    @pytest.mark.asyncio
    async def test_concurrent_invites_for_same_email(self, tv, team, alice):
        """Only one of two racing invites for one email succeeds."""
        results = await asyncio.gather(
            tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com"),
            tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com"),
            return_exceptions=True,
        )

        assert sorted(type(r).__name__ for r in results) == ["AlreadyInvitedError", "bool"]
        assert len(await tv.invites.list_by_team(team.id)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_promotion_and_vault_creation(self, tv, team, alice, bob):
        """Racing promotion and vault creation leave every vault sealed for every admin."""
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)
        keys = await promotion_keys(tv, team.id, alice.id, bob.id)

        results = await asyncio.gather(
            tv.teams.promote_user(team.id, alice.id, bob.id, keys),
            tv.teams.create_vault(team.id, alice.id, "Prod", key_pair_for([alice.id], "prod")),
            return_exceptions=True,
        )

        assert sum(isinstance(r, InvalidKeysError) for r in results) == 1
        admins = {alice.id}
        if await tv.teams.check_admin(team.id, bob.id):
            admins.add(bob.id)
        for vault in await tv.teams.get_vaults_for_user(team.id, alice.id):
            assert admins <= vault.key_pair.recipients

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_roll_back(self, tv, team, alice, notifier, caplog):
        notifier.notify_invited.side_effect = RuntimeError("smtp down")

        with caplog.at_level(logging.WARNING, logger="teamvault"):
            added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")

        assert added is False
        assert len(await tv.invites.list_by_team(team.id)) == 1
        assert "Invitation notice to dave@example.com" in caplog.text


class TestCreateVault:
    """Tests for TeamManager.create_vault."""

    @pytest.mark.asyncio
    async def test_exact_admin_set(self, tv, team, alice):
        vault = await tv.teams.create_vault(team.id, alice.id, "Prod", key_pair_for([alice.id], "prod"))

        assert vault.name == "Prod"
        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)
        assert vault.id in {v.id for v in vaults}

    @pytest.mark.asyncio
    async def test_missing_admin(self, tv, team, alice, bob):
        await make_admin(tv, team.id, alice.id, bob)

        with pytest.raises(InvalidKeysError) as exc_info:
            await tv.teams.create_vault(team.id, alice.id, "V1", key_pair_for([alice.id]))
        assert exc_info.value.missing == frozenset({bob.id})

    @pytest.mark.asyncio
    async def test_non_admin_extra_recipient(self, tv, team, alice, bob):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        with pytest.raises(InvalidKeysError) as exc_info:
            await tv.teams.create_vault(team.id, alice.id, "V1", key_pair_for([alice.id, bob.id]))
        assert exc_info.value.extra == frozenset({bob.id})

    @pytest.mark.asyncio
    async def test_rejected_vault_is_not_stored(self, tv, team, alice, carol):
        with pytest.raises(InvalidKeysError):
            await tv.teams.create_vault(team.id, alice.id, "V1", key_pair_for([alice.id, carol.id]))

        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)
        assert [v.name for v in vaults] == ["Default"]

    @pytest.mark.asyncio
    async def test_non_admin_cannot_create(self, tv, team, alice, bob):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        with pytest.raises(UnauthorizedError):
            await tv.teams.create_vault(team.id, bob.id, "V1", key_pair_for([alice.id]))

    @pytest.mark.asyncio
    async def test_scenario_retry_with_all_admins(self, tv, team, alice, bob):
        """Keys for {A} fail while B is admin; keys for {A, B} succeed."""
        await make_admin(tv, team.id, alice.id, bob)

        with pytest.raises(InvalidKeysError):
            await tv.teams.create_vault(team.id, alice.id, "V1", key_pair_for([alice.id], "v1"))

        vault = await tv.teams.create_vault(
            team.id, alice.id, "V1", key_pair_for([alice.id, bob.id], "v1")
        )

        assert vault.id in {v.id for v in await tv.teams.get_vaults_for_user(team.id, bob.id)}
        assert vault.id in {v.id for v in await tv.teams.get_vaults_for_user(team.id, alice.id)}


class TestGetVaultsForUser:
    @pytest.mark.asyncio
    async def test_only_vaults_with_a_key(self, tv, team, alice, bob):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        assert await tv.teams.get_vaults_for_user(team.id, bob.id) == []
        assert await tv.teams.get_vaults_for_user(team.id, uuid4()) == []

    @pytest.mark.asyncio
    async def test_unknown_team(self, tv, alice):
        with pytest.raises(NotFoundError):
            await tv.teams.get_vaults_for_user(uuid4(), alice.id)


class TestPromoteUser:
    """Tests for TeamManager.promote_user."""

    @pytest.mark.asyncio
    async def test_promoted_user_matches_actor_vaults(self, tv, team, alice, bob):
        await tv.teams.create_vault(team.id, alice.id, "Prod", key_pair_for([alice.id], "prod"))
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)

        before = await tv.teams.get_vaults_for_user(team.id, alice.id)
        keys = await promotion_keys(tv, team.id, alice.id, bob.id)
        await tv.teams.promote_user(team.id, alice.id, bob.id, keys)

        assert await tv.teams.check_admin(team.id, bob.id) is True
        after = await tv.teams.get_vaults_for_user(team.id, bob.id)
        assert {v.id for v in after} == {v.id for v in before}
        for vault in after:
            assert vault.key_pair.keys[bob.id] == wrapped_key(bob.id, vault.name)
            assert vault.key_pair.has_key(alice.id)

    @pytest.mark.asyncio
    async def test_missing_vault_key(self, tv, team, alice, bob):
        await tv.teams.create_vault(team.id, alice.id, "Prod", key_pair_for([alice.id], "prod"))
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)
        keys = await promotion_keys(tv, team.id, alice.id, bob.id)
        dropped = next(iter(keys))
        del keys[dropped]

        with pytest.raises(InvalidKeysError) as exc_info:
            await tv.teams.promote_user(team.id, alice.id, bob.id, keys)

        assert exc_info.value.missing == frozenset({dropped})
        assert await tv.teams.check_admin(team.id, bob.id) is False
        assert await tv.teams.get_vaults_for_user(team.id, bob.id) == []

    @pytest.mark.asyncio
    async def test_non_admin_cannot_promote(self, tv, team, alice, bob, carol):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, carol.email)

        with pytest.raises(UnauthorizedError):
            await tv.teams.promote_user(team.id, bob.id, carol.id, {})

    @pytest.mark.asyncio
    async def test_pending_invitee_cannot_be_promoted(self, tv, team, alice):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")

        with pytest.raises(NotFoundError):
            await tv.teams.promote_user(team.id, alice.id, uuid4(), {})

    @pytest.mark.asyncio
    async def test_owner_cannot_be_promoted(self, tv, team, alice, bob):
        await make_admin(tv, team.id, alice.id, bob)
        keys = await promotion_keys(tv, team.id, bob.id, alice.id)

        with pytest.raises(UnauthorizedError):
            await tv.teams.promote_user(team.id, bob.id, alice.id, keys)

    @pytest.mark.asyncio
    async def test_admin_can_promote(self, tv, team, alice, bob, carol):
        await make_admin(tv, team.id, alice.id, bob)
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, carol.email)

        keys = await promotion_keys(tv, team.id, bob.id, carol.id)
        await tv.teams.promote_user(team.id, bob.id, carol.id, keys)

        assert await tv.teams.check_admin(team.id, carol.id) is True
        assert {v.id for v in await tv.teams.get_vaults_for_user(team.id, carol.id)} == set(keys)

    @pytest.mark.asyncio
    async def test_repromotion_keeps_held_keys(self, tv, team, alice, bob):
        await make_admin(tv, team.id, alice.id, bob)
        await tv.teams.demote_user(team.id, alice.id, bob.id)
        await tv.teams.create_vault(team.id, alice.id, "Prod", key_pair_for([alice.id], "prod"))

        vaults = await tv.teams.get_vaults_for_user(team.id, alice.id)
        await tv.teams.promote_user(
            team.id, alice.id, bob.id, {v.id: b"replacement" for v in vaults}
        )

        for vault in await tv.teams.get_vaults_for_user(team.id, bob.id):
            if vault.name == "Prod":
                assert vault.key_pair.keys[bob.id] == b"replacement"
            else:
                assert vault.key_pair.keys[bob.id] == wrapped_key(bob.id, vault.name)


class TestDemoteUser:
    """Tests for TeamManager.demote_user."""

    @pytest.mark.asyncio
    async def test_demote_admin(self, tv, team, alice, bob):
        await make_admin(tv, team.id, alice.id, bob)

        await tv.teams.demote_user(team.id, alice.id, bob.id)

        assert await tv.teams.check_admin(team.id, bob.id) is False
        # Keys stay under the default retain policy
        assert len(await tv.teams.get_vaults_for_user(team.id, bob.id)) == 1

    @pytest.mark.asyncio
    async def test_non_admin_cannot_demote(self, tv, team, alice, bob, carol):
        await make_admin(tv, team.id, alice.id, bob)
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, carol.email)

        with pytest.raises(UnauthorizedError):
            await tv.teams.demote_user(team.id, carol.id, bob.id)
        assert await tv.teams.check_admin(team.id, bob.id) is True

    @pytest.mark.asyncio
    async def test_owner_cannot_be_demoted(self, tv, team, alice, bob):
        await make_admin(tv, team.id, alice.id, bob)

        with pytest.raises(UnauthorizedError):
            await tv.teams.demote_user(team.id, bob.id, alice.id)
        assert await tv.teams.check_admin(team.id, alice.id) is True

    @pytest.mark.asyncio
    async def test_unknown_target(self, tv, team, alice):
        with pytest.raises(NotFoundError):
            await tv.teams.demote_user(team.id, alice.id, uuid4())

    @pytest.mark.asyncio
    async def test_revoke_policy_drops_keys(self, identity, alice, bob):
        config = TeamVaultConfig(
            storage_backend=StorageBackend.MEMORY,
            demotion_key_policy=DemotionKeyPolicy.REVOKE,
        )
        tv = TeamVault.in_memory(config=config, identity=identity)
        team = await tv.teams.create(alice.id, "Platform", key_pair_for([alice.id]))
        await make_admin(tv, team.id, alice.id, bob)

        await tv.teams.demote_user(team.id, alice.id, bob.id)

        assert await tv.teams.get_vaults_for_user(team.id, bob.id) == []
        assert len(await tv.teams.get_vaults_for_user(team.id, alice.id)) == 1


class TestScenarios:
    @pytest.mark.asyncio
    async def test_add_promote_demote(self, tv, alice, bob):
        """A adds B, promotes B, demotes B; B then cannot demote A."""
        team = await tv.teams.create(alice.id, "T", key_pair_for([alice.id], "default"))

        added = await tv.teams.add_or_invite_user_by_email(team.id, alice.id, bob.email)
        assert added is True

        keys = await promotion_keys(tv, team.id, alice.id, bob.id)
        await tv.teams.promote_user(team.id, alice.id, bob.id, keys)
        assert await tv.teams.check_admin(team.id, bob.id) is True
        assert {v.id for v in await tv.teams.get_vaults_for_user(team.id, bob.id)} == {
            v.id for v in await tv.teams.get_vaults_for_user(team.id, alice.id)
        }

        await tv.teams.demote_user(team.id, alice.id, bob.id)
        assert await tv.teams.check_admin(team.id, bob.id) is False

        with pytest.raises(UnauthorizedError):
            await tv.teams.demote_user(team.id, bob.id, alice.id)

    @pytest.mark.asyncio
    async def test_invitee_sees_team_vaults_after_acceptance_and_promotion(
        self, tv, team, alice, identity
    ):
        await tv.teams.add_or_invite_user_by_email(team.id, alice.id, "dave@example.com")
        await tv.teams.create_vault(team.id, alice.id, "V1", key_pair_for([alice.id], "v1"))
        dave = identity.register("dave@example.com")

        await tv.invites.accept(team.id, dave.id)
        keys = await promotion_keys(tv, team.id, alice.id, dave.id)
        await tv.teams.promote_user(team.id, alice.id, dave.id, keys)

        vaults = await tv.teams.get_vaults_for_user(team.id, dave.id)
        assert sorted(v.name for v in vaults) == ["Default", "V1"]

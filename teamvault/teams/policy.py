"""
Authorization and key-coverage rules for team mutations.

Each check takes the TeamSnapshot read in the current transaction and raises
a TeamVaultError when the mutation must not happen. None of them touch a
store, so they can be exercised against a hand-built snapshot.
"""

import logging
from typing import Dict, Mapping, Optional, Union
from uuid import UUID

from ..auth.models import TeamVaultUser
from ..errors import (
    AlreadyInTeamError,
    AlreadyInvitedError,
    NotFoundError,
    UnauthorizedError,
)
from ..invitations.models import TeamInvitation
from ..keys.coverage import RecipientCoverage
from ..keys.models import VaultKeyPair
from .models import Role, TeamMembership
from .snapshot import TeamSnapshot

logger = logging.getLogger(__name__)

PromotionKeys = Union[Mapping[UUID, bytes], VaultKeyPair]


def require_admin(snapshot: TeamSnapshot, actor_id: UUID) -> TeamMembership:
    """
    Ensure ``actor_id`` is an owner or admin of the team.

    Raises:
        UnauthorizedError: If the actor is not an admin
    """
    membership = snapshot.membership(actor_id)
    if membership is None or not membership.role.is_admin:
        raise UnauthorizedError(
            f"User {actor_id} is not an admin of team {snapshot.team_id}"
        )
    return membership


def require_member(snapshot: TeamSnapshot, user_id: UUID) -> TeamMembership:
    """
    Ensure ``user_id`` holds a resolved (non-pending) membership.

    Raises:
        NotFoundError: If the user is not a member
    """
    membership = snapshot.membership(user_id)
    if membership is None:
        raise NotFoundError(f"User {user_id} is not a member of team {snapshot.team_id}")
    return membership


def check_invite(
    snapshot: TeamSnapshot,
    email: str,
    user: Optional[TeamVaultUser],
) -> None:
    """
    Decide whether ``email`` can be added or invited.

    Args:
        snapshot: Current team state
        email: Normalized email being invited
        user: The account ``email`` resolves to, if any

    Raises:
        AlreadyInTeamError: The account already has a place in the team,
            including a pending invitation under its email
        AlreadyInvitedError: No account exists and a pending invitation
            for ``email`` is already recorded
    """
    if user is not None:
        if snapshot.role_of(user.id, user.email) is not None:
            raise AlreadyInTeamError(f"User {email} is already in team {snapshot.team_id}")
        return
    if snapshot.pending_invitation(email) is not None:
        raise AlreadyInvitedError(f"{email} is already invited to team {snapshot.team_id}")


def check_vault_keys(snapshot: TeamSnapshot, key_pair: VaultKeyPair) -> RecipientCoverage:
    """
    A new vault must be wrapped for exactly the current owners and admins.

    Raises:
        InvalidKeysError: If any admin is missing or any extra recipient is present
    """
    coverage = RecipientCoverage.of(snapshot.admin_ids(), key_pair.recipients)
    if not coverage.is_exact:
        logger.debug(
            "Rejected vault keys for team %s: %d missing, %d extra",
            snapshot.team_id,
            len(coverage.missing),
            len(coverage.extra),
        )
    coverage.require_exact("vault keys")
    return coverage


def check_promotion(
    snapshot: TeamSnapshot,
    actor_id: UUID,
    target_id: UUID,
    keys: PromotionKeys,
) -> Dict[UUID, bytes]:
    """
    Validate a promotion and pick the wrapped keys to store.

    ``keys`` maps vault id to the target's wrapped key for that vault. It must
    cover every vault the promoting admin can open where the target holds no
    key yet. Wrapped keys the target already holds are never replaced, so
    entries for those vaults, and for vaults outside the actor's set, are
    ignored.

    Returns:
        Mapping of vault id to the target's wrapped key, one per covered vault

    Raises:
        UnauthorizedError: Actor is not an admin, or target is the owner
        NotFoundError: Target is not a resolved member
        InvalidKeysError: A vault the actor can open has no key for the target
    """
    require_admin(snapshot, actor_id)
    target = require_member(snapshot, target_id)
    if target.role is Role.OWNER:
        raise UnauthorizedError("The team owner's role cannot be changed")

    if isinstance(keys, VaultKeyPair):
        keys = keys.keys
    supplied = {vid: blob for vid, blob in keys.items() if blob}

    required = [
        v.id for v in snapshot.vaults_for(actor_id) if not v.key_pair.has_key(target_id)
    ]
    coverage = RecipientCoverage.of(required, supplied)
    if not coverage.is_covered:
        logger.debug(
            "Rejected promotion keys for %s in team %s: %d vaults missing",
            target_id,
            snapshot.team_id,
            len(coverage.missing),
        )
    coverage.require_covered("promotion keys")
    return {vid: supplied[vid] for vid in required}


def check_demotion(
    snapshot: TeamSnapshot,
    actor_id: UUID,
    target_id: UUID,
) -> TeamMembership:
    """
    Validate a demotion.

    Raises:
        UnauthorizedError: Actor is not an admin, or target is the owner
        NotFoundError: Target is not a resolved member
    """
    require_admin(snapshot, actor_id)
    target = require_member(snapshot, target_id)
    if target.role is Role.OWNER:
        raise UnauthorizedError("The team owner's role cannot be changed")
    return target


def check_acceptance(snapshot: TeamSnapshot, user: TeamVaultUser) -> TeamInvitation:
    """
    Find the pending invitation ``user`` is accepting.

    Raises:
        AlreadyInTeamError: User already holds a membership
        NotFoundError: No pending invitation for the user's email
    """
    if snapshot.membership(user.id) is not None:
        raise AlreadyInTeamError(f"User {user.id} is already in team {snapshot.team_id}")
    invitation = snapshot.pending_invitation(user.email)
    if invitation is None:
        raise NotFoundError(f"No pending invitation for {user.email} in team {snapshot.team_id}")
    return invitation

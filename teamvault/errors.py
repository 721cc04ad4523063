"""
TeamVault errors.

Every failure the core reports is a subclass of TeamVaultError, so callers can
catch the whole family or a single kind. Errors flagged ``retryable`` signal a
transient backend condition; the caller decides whether and when to retry.
"""

from typing import FrozenSet, Iterable, Optional
from uuid import UUID


class TeamVaultError(Exception):
    """Base class for all TeamVault errors."""

    retryable: bool = False


class NotFoundError(TeamVaultError):
    """A referenced team, user, vault or invitation does not exist."""


class UnauthorizedError(TeamVaultError):
    """The caller lacks the required role or targets an ineligible member."""


class AlreadyInvitedError(TeamVaultError):
    """A pending invitation already exists for that email."""


class AlreadyInTeamError(TeamVaultError):
    """The target user already belongs to the team."""


class InvalidKeysError(TeamVaultError):
    """
    Supplied key material does not match the required recipient set.

    Attributes:
        missing: Identifiers that should have a wrapped key but do not
        extra: Identifiers that were supplied but are not expected
    """

    def __init__(
        self,
        message: str,
        missing: Optional[Iterable[UUID]] = None,
        extra: Optional[Iterable[UUID]] = None,
    ) -> None:
        super().__init__(message)
        self.missing: FrozenSet[UUID] = frozenset(missing or ())
        self.extra: FrozenSet[UUID] = frozenset(extra or ())


class StoreError(TeamVaultError):
    """Transient persistence failure. Safe to retry with backoff."""

    retryable = True


class TransactionConflictError(StoreError):
    """A concurrent transaction changed the team before this one committed."""


class StoreUnavailableError(StoreError):
    """The persistence backend could not be reached or rejected the request."""

"""
Recipient coverage checks.

All coverage logic is set arithmetic over identifier sets. Vault creation
needs an exact match against the team's admins; promotion needs the supplied
vault ids to cover every vault the promoting admin can open.
"""

from typing import FrozenSet, Iterable
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..errors import InvalidKeysError


class RecipientCoverage(BaseModel):
    """
    Compares a required identifier set with a supplied one.

    Example:
        ```python
        coverage = RecipientCoverage.of(
            required=snapshot.admin_ids(),
            supplied=key_pair.recipients,
        )
        coverage.require_exact("vault keys")
        ```
    """

    model_config = ConfigDict(frozen=True)

    required: FrozenSet[UUID]
    supplied: FrozenSet[UUID]

    @classmethod
    def of(cls, required: Iterable[UUID], supplied: Iterable[UUID]) -> "RecipientCoverage":
        return cls(required=frozenset(required), supplied=frozenset(supplied))

    @property
    def missing(self) -> FrozenSet[UUID]:
        return self.required - self.supplied

    @property
    def extra(self) -> FrozenSet[UUID]:
        return self.supplied - self.required

    @property
    def is_covered(self) -> bool:
        return not self.missing

    @property
    def is_exact(self) -> bool:
        return self.required == self.supplied

    def require_exact(self, what: str = "keys") -> None:
        """
        Raise unless supplied == required.

        Raises:
            InvalidKeysError: With both ``missing`` and ``extra`` populated
        """
        if self.is_exact:
            return
        raise InvalidKeysError(
            f"Invalid {what}: {len(self.missing)} missing, {len(self.extra)} unexpected",
            missing=self.missing,
            extra=self.extra,
        )

    def require_covered(self, what: str = "keys") -> None:
        """
        Raise unless every required id was supplied. Extras are tolerated.

        Raises:
            InvalidKeysError: With ``missing`` populated
        """
        if self.is_covered:
            return
        raise InvalidKeysError(
            f"Invalid {what}: {len(self.missing)} missing",
            missing=self.missing,
        )

"""
TeamVault configuration management.

Loads configuration from environment variables or .env file.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where teams, memberships and vaults are persisted."""

    SUPABASE = "supabase"
    MEMORY = "memory"


class DemotionKeyPolicy(str, Enum):
    """What happens to a demoted admin's wrapped vault keys."""

    # Role changes only; revocation is left to content-key rotation
    RETAIN = "retain"
    # Wrapped keys are removed from every team vault in the same transaction
    REVOKE = "revoke"


class TeamVaultConfig(BaseSettings):
    """
    TeamVault configuration settings.

    Can be loaded from:
    1. Environment variables (TEAMVAULT_SUPABASE_URL, TEAMVAULT_SUPABASE_KEY, etc.)
    2. .env file in project root
    3. Direct instantiation with kwargs

    Example:
        ```python
        # From environment
        config = TeamVaultConfig()

        # Direct instantiation
        config = TeamVaultConfig(
            supabase_url="https://xxx.supabase.co",
            supabase_key="your-key"
        )

        # No database at all
        config = TeamVaultConfig(storage_backend="memory")
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAMVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_backend: StorageBackend = Field(
        default=StorageBackend.SUPABASE,
        description="Persistence backend (supabase or memory)",
    )

    # Supabase connection
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co)",
    )

    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (for admin operations)",
    )

    # Database schema
    db_schema: str = Field(
        default="public",
        description="PostgreSQL schema where teamvault tables live",
    )

    # Invitations
    only_invited: bool = Field(
        default=False,
        description="Only allow registration for emails with a pending invitation",
    )

    send_invite_emails: bool = Field(
        default=True,
        description="Send an email when a pending invitation is created",
    )

    invite_redirect_url: Optional[str] = Field(
        default=None,
        description="URL the invitation email links to",
    )

    # Teams and vaults
    default_vault_name: str = Field(
        default="Default",
        min_length=1,
        description="Name of the vault created together with every team",
    )

    demotion_key_policy: DemotionKeyPolicy = Field(
        default=DemotionKeyPolicy.RETAIN,
        description="Whether demotion removes the user's wrapped vault keys",
    )

    # Feature flags
    enable_audit_log: bool = Field(
        default=True,
        description="Enable audit logging for all team mutations",
    )

    # Logging
    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the teamvault loggers",
    )

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        """Ensure Supabase URL is valid."""
        if v is None:
            return v
        if not v.startswith("https://"):
            raise ValueError("supabase_url must start with https://")
        return v.rstrip("/")

    @field_validator("supabase_key")
    @classmethod
    def validate_supabase_key(cls, v: Optional[str]) -> Optional[str]:
        """Ensure Supabase key is not empty."""
        if v is None:
            return v
        if len(v) < 10:
            raise ValueError("supabase_key appears invalid (too short)")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level ({v})")
        return level

    @model_validator(mode="after")
    def require_supabase_credentials(self) -> "TeamVaultConfig":
        """The Supabase backend needs both URL and key."""
        if self.storage_backend is StorageBackend.SUPABASE:
            if not self.supabase_url or not self.supabase_key:
                raise ValueError(
                    "supabase_url and supabase_key are required for the supabase backend"
                )
        return self

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def load_config(**kwargs) -> TeamVaultConfig:
    """
    Load TeamVault configuration.

    Priority order:
    1. Keyword arguments
    2. Environment variables (TEAMVAULT_*)
    3. .env file

    Args:
        **kwargs: Override configuration values

    Returns:
        TeamVaultConfig instance

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    return TeamVaultConfig(**kwargs)

"""
Shared helpers for the TeamVault CLI commands.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict
from uuid import UUID

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..client import TeamVault
from ..config import TeamVaultConfig
from ..errors import TeamVaultError
from ..keys.models import VaultKeyPair, decode_blob

console = Console()


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def configure_logging(config: TeamVaultConfig) -> None:
    """Route the teamvault loggers through rich at the configured level."""
    logging.basicConfig(
        level=config.effective_log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@asynccontextmanager
async def open_vault() -> AsyncIterator[TeamVault]:
    """
    Create a TeamVault from the environment and report its errors.

    TeamVaultError is printed and turned into exit code 1.
    """
    tv = await TeamVault.create()
    configure_logging(tv.config)
    try:
        yield tv
    except TeamVaultError as e:
        console.print(f"[red]Error:[/red] {type(e).__name__}: {e}")
        raise typer.Exit(1)
    finally:
        await tv.close()


def parse_uuid(value: str, what: str = "ID") -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid {what}: {value}")


def load_key_pair(path: Path) -> VaultKeyPair:
    """
    Read a vault key pair file.

    Format: ``{"secret": "<base64>", "keys": {"<user id>": "<base64>", ...}}``
    """
    try:
        return VaultKeyPair.from_encoded(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        raise typer.BadParameter(f"Invalid key file {path}: {e}")


def load_promotion_keys(path: Path) -> Dict[UUID, bytes]:
    """
    Read a promotion key file.

    Format: ``{"<vault id>": "<base64 wrapped key for the target>", ...}``
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return {UUID(vault_id): decode_blob(blob) for vault_id, blob in data.items()}
    except (OSError, ValueError, AttributeError) as e:
        raise typer.BadParameter(f"Invalid key file {path}: {e}")

"""
Schema migrations for TeamVault.

The SQL files in migrations/versions create the teamvault_* tables and the
Postgres functions SupabaseTeamStore calls. Apply them with psql or the
Supabase SQL editor; ``teamvault schema`` prints them in order.
"""

from pathlib import Path
from typing import List

MIGRATIONS_DIR = Path(__file__).parent / "versions"


class Migration:
    """Represents a single database migration."""

    def __init__(self, version: str, name: str, path: Path) -> None:
        """
        Initialize a migration.

        Args:
            version: Migration version (e.g., "001")
            name: Migration name (e.g., "initial_schema")
            path: Path to the SQL file
        """
        self.version = version
        self.name = name
        self.path = path

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        """
        Create a Migration from a file path.

        Example:
            >>> Migration.from_file(Path("001_initial_schema.sql"))
            Migration(version=001, name=initial_schema)
        """
        parts = path.stem.split("_", 1)

        if len(parts) != 2 or not parts[0].isdigit():
            raise ValueError(f"Invalid migration filename: {path.name}. Expected format: 001_name.sql")

        version, name = parts
        return cls(version=version, name=name, path=path)

    def read_sql(self) -> str:
        """Read the SQL content of the migration."""
        return self.path.read_text(encoding="utf-8")

    def __repr__(self) -> str:
        return f"Migration(version={self.version}, name={self.name})"


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> List[Migration]:
    """
    Discover all migration files, sorted by version.

    Raises:
        ValueError: If a .sql file does not follow the 001_name.sql pattern
    """
    if not directory.exists():
        return []
    migrations = [Migration.from_file(path) for path in directory.glob("*.sql")]
    migrations.sort(key=lambda m: m.version)
    return migrations

"""
Migration file discovery and validation.

Migration files are named ``<YYYYMMDDHHMMSS>_<name>.sql``. The fixed-width
timestamp prefix makes lexicographic order equal to chronological order,
which is the only ordering the runner uses.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from sqlmigrate.exceptions import MigrationsDirectoryError, ValidationError

MIGRATION_EXTENSION = ".sql"
MIGRATION_FILE_PATTERN = r"^\d{14}_[A-Za-z0-9_]+\.sql$"
MIGRATION_NAME_PATTERN = r"^[A-Za-z0-9_]+$"

_FILE_RE = re.compile(MIGRATION_FILE_PATTERN, re.ASCII)
_NAME_RE = re.compile(MIGRATION_NAME_PATTERN, re.ASCII)


@dataclass(frozen=True, order=True)
class MigrationFile:
    """One migration file on disk. Ordered by version."""

    version: str
    timestamp: str
    name: str
    path: Path

    def read_sql(self) -> str:
        """Read the SQL content of this migration."""
        return self.path.read_text(encoding="utf-8")


def is_valid_name(name: str) -> bool:
    """Check a migration name (the part after the timestamp)."""
    return bool(_NAME_RE.fullmatch(name))


def parse_migration_filename(filename: str, directory: Path | None = None) -> MigrationFile:
    """
    Parse a migration filename into a MigrationFile.

    Args:
        filename: Bare filename, e.g. ``20230101120000_initial_schema.sql``
        directory: Directory the file lives in (default: current directory)

    Returns:
        MigrationFile descriptor

    Raises:
        ValidationError: If the filename does not match the convention
    """
    # fullmatch so a trailing newline is not accepted by "$"
    if not _FILE_RE.fullmatch(filename):
        raise ValidationError(
            f"Invalid migration filename '{filename}': expected pattern {MIGRATION_FILE_PATTERN} "
            f"(e.g. 20230101120000_initial_schema.sql)",
            filename=filename,
            pattern=MIGRATION_FILE_PATTERN,
        )

    version = filename[: -len(MIGRATION_EXTENSION)]
    timestamp, name = version.split("_", 1)
    path = (directory or Path(".")) / filename
    return MigrationFile(version=version, timestamp=timestamp, name=name, path=path)


def discover_migrations(migrations_dir: Path | str) -> list[MigrationFile]:
    """
    List, validate and sort the migration files in a directory.

    Every regular file ending in ``.sql`` must follow the naming
    convention; the first one that does not fails the whole listing so no
    SQL runs against an untrustworthy order. Subdirectories and other
    extensions are ignored.

    Args:
        migrations_dir: Directory containing migration files

    Returns:
        Migration files sorted by version (empty if there are none)

    Raises:
        MigrationsDirectoryError: If the directory cannot be listed
        ValidationError: If any ``.sql`` filename is malformed
    """
    migrations_dir = Path(migrations_dir)
    try:
        entries = sorted(
            (p for p in migrations_dir.iterdir() if p.name.endswith(MIGRATION_EXTENSION) and p.is_file()),
            key=lambda p: p.name,
        )
    except OSError as e:
        raise MigrationsDirectoryError(
            str(migrations_dir), f"Cannot read migrations directory '{migrations_dir}': {e}"
        ) from e

    return [parse_migration_filename(entry.name, migrations_dir) for entry in entries]

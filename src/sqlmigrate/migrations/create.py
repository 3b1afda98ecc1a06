"""
Migration file generator.

Creates an empty, correctly named migration file stamped with the current
UTC time.
"""

from datetime import UTC, datetime
from pathlib import Path

from sqlmigrate.exceptions import MigrationFileExistsError, ValidationError
from sqlmigrate.migrations.files import MIGRATION_NAME_PATTERN, is_valid_name, parse_migration_filename
from sqlmigrate.utils.logging import get_logger

logger = get_logger("sqlmigrate.migrations.create")

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

TEMPLATE = """-- Migration: {name}
-- Generated: {timestamp} UTC

-- Add your SQL migration here
"""


def create_migration(name: str, migrations_dir: Path | str, now: datetime | None = None) -> Path:
    """
    Create a new migration file ``<timestamp>_<name>.sql``.

    Args:
        name: Migration name, letters, digits and underscores only
        migrations_dir: Directory to create the file in (created if missing)
        now: Timestamp to use (default: current UTC time)

    Returns:
        Path of the created file

    Raises:
        ValidationError: If the name is empty or contains spaces or special characters
        MigrationFileExistsError: If a file with the generated name already exists
    """
    if not name:
        raise ValidationError("Migration name is required")
    if name.strip() != name:
        raise ValidationError(f"Migration name contains leading/trailing spaces: '{name}'", pattern=MIGRATION_NAME_PATTERN)
    if not is_valid_name(name):
        raise ValidationError(
            f"Invalid migration name '{name}': must contain only alphanumeric characters and underscores",
            pattern=MIGRATION_NAME_PATTERN,
        )

    now = now or datetime.now(UTC)
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    timestamp = now.strftime(TIMESTAMP_FORMAT)

    migrations_dir = Path(migrations_dir)
    migration = parse_migration_filename(f"{timestamp}_{name}.sql", migrations_dir)

    if migration.path.exists():
        raise MigrationFileExistsError(str(migration.path))

    migrations_dir.mkdir(parents=True, exist_ok=True)
    # "x" mode so a file created in the meantime is never overwritten
    try:
        with open(migration.path, "x", encoding="utf-8") as f:
            f.write(TEMPLATE.format(name=name, timestamp=timestamp))
    except FileExistsError as e:
        raise MigrationFileExistsError(str(migration.path)) from e

    logger.info(f"Created migration file: {migration.path}")
    return migration.path

"""
Migration system for schema changes.

Applies timestamp-named SQL files from a migrations directory and tracks
them in a ledger table.
"""

from sqlmigrate.migrations.create import create_migration
from sqlmigrate.migrations.files import (
    MIGRATION_FILE_PATTERN,
    MigrationFile,
    discover_migrations,
    parse_migration_filename,
)
from sqlmigrate.migrations.ledger import DEFAULT_LEDGER_TABLE, Ledger, LedgerEntry
from sqlmigrate.migrations.observer import LoggingObserver, MigrationObserver
from sqlmigrate.migrations.runner import (
    MigrationReport,
    MigrationResult,
    MigrationRunner,
    MigrationStatus,
    RunnerState,
    migrate,
)

__all__ = [
    "migrate",
    "MigrationRunner",
    "RunnerState",
    "MigrationReport",
    "MigrationResult",
    "MigrationStatus",
    "MigrationFile",
    "MIGRATION_FILE_PATTERN",
    "discover_migrations",
    "parse_migration_filename",
    "Ledger",
    "LedgerEntry",
    "DEFAULT_LEDGER_TABLE",
    "MigrationObserver",
    "LoggingObserver",
    "create_migration",
]

"""
sqlmigrate - timestamped SQL migrations tracked in a ledger table.

Each ``<YYYYMMDDHHMMSS>_<name>.sql`` file is applied once, in order, in its
own transaction together with its ledger row.
"""

__version__ = "0.1.0"

from sqlmigrate.exceptions import (
    ConfigurationError,
    ConnectionError_,
    DatastoreConnectionError,
    ExecutionError,
    LedgerConflictError,
    MigrationError,
    MigrationFileExistsError,
    MigrationsDirectoryError,
    ValidationError,
)
from sqlmigrate.migrations import (
    Ledger,
    LoggingObserver,
    MigrationFile,
    MigrationObserver,
    MigrationReport,
    MigrationRunner,
    RunnerState,
    create_migration,
    discover_migrations,
    migrate,
)
from sqlmigrate.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Migrations
    "migrate",
    "MigrationRunner",
    "RunnerState",
    "MigrationReport",
    "MigrationFile",
    "discover_migrations",
    "create_migration",
    "Ledger",
    "MigrationObserver",
    "LoggingObserver",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "MigrationError",
    "ConfigurationError",
    "ConnectionError_",
    "DatastoreConnectionError",
    "MigrationsDirectoryError",
    "ValidationError",
    "MigrationFileExistsError",
    "ExecutionError",
    "LedgerConflictError",
]

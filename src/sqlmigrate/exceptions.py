"""
sqlmigrate exception hierarchy.

All domain-specific exceptions inherit from MigrationError, so callers
(deployment scripts, the CLI) can halt on any migration failure with a
single except clause while still handling individual cases.

Hierarchy::

    MigrationError
    ├── ConfigurationError        - config loading, ledger table unreachable
    ├── ConnectionError_          - datastore connection cannot be opened
    ├── MigrationsDirectoryError  - migrations directory missing or unreadable
    ├── ValidationError           - filename or migration name is malformed
    │   └── MigrationFileExistsError - generated file would overwrite another
    ├── ExecutionError            - a migration file failed to apply
    └── LedgerConflictError       - version already recorded in the ledger
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for all sqlmigrate errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(MigrationError):
    """Raised when configuration is invalid or the ledger table cannot be created."""


# --- Connections -------------------------------------------------------------


class ConnectionError_(MigrationError):
    """Raised when a datastore connection cannot be established.

    Named with trailing underscore to avoid shadowing the builtin
    ``ConnectionError``; the public alias ``DatastoreConnectionError``
    is preferred for external use.
    """


DatastoreConnectionError = ConnectionError_


# --- Migration files ---------------------------------------------------------


class MigrationsDirectoryError(MigrationError):
    """Raised when the migrations directory cannot be listed."""

    def __init__(self, directory: str, message: str) -> None:
        super().__init__(message, details={"directory": directory})
        self.directory = directory


class ValidationError(MigrationError):
    """Raised when a migration filename or name violates the naming convention."""

    def __init__(self, message: str, *, filename: str | None = None, pattern: str | None = None) -> None:
        super().__init__(message, details={"filename": filename, "pattern": pattern})
        self.filename = filename
        self.pattern = pattern


class MigrationFileExistsError(ValidationError):
    """Raised when a generated migration file already exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Migration file already exists: {path}", filename=path)
        self.path = path


# --- Execution ---------------------------------------------------------------


class ExecutionError(MigrationError):
    """Raised when a migration fails to apply. Its transaction has been rolled back."""

    def __init__(self, version: str, message: str, *, cause: BaseException | None = None) -> None:
        full = f"Migration '{version}' failed: {message}"
        super().__init__(full, details={"version": version})
        self.version = version
        if cause is not None:
            self.__cause__ = cause


class LedgerConflictError(MigrationError):
    """Raised when a version is inserted into the ledger twice.

    Indicates another runner applied the same migration concurrently.
    """

    def __init__(self, version: str, *, table: str = "schema_migrations", cause: BaseException | None = None) -> None:
        full = f"Migration '{version}' is already recorded in ledger table '{table}'"
        super().__init__(full, details={"version": version, "table": table})
        self.version = version
        self.table = table
        if cause is not None:
            self.__cause__ = cause

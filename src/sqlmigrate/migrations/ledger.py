"""
Migration ledger.

The ledger is a table recording which migration versions have been
applied. Rows are inserted once, in the same transaction as the migration
SQL, and never updated or deleted.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import ibis

from sqlmigrate.exceptions import ConfigurationError, LedgerConflictError
from sqlmigrate.utils.logging import get_logger
from sqlmigrate.utils.sql import dbapi_connection, escape_sql_string, execute_statement, fetch_rows, transaction

logger = get_logger("sqlmigrate.ledger")

DEFAULT_LEDGER_TABLE = "schema_migrations"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Substrings drivers use for primary key / unique violations
_UNIQUE_VIOLATION_MARKERS = ("duplicate key", "unique constraint", "primary key constraint", "unique violation")


@dataclass(frozen=True)
class LedgerEntry:
    """One applied migration."""

    version: str
    applied_at: datetime | None


class Ledger:
    """Persisted record of applied migration versions."""

    def __init__(self, connection: ibis.BaseBackend, table: str = DEFAULT_LEDGER_TABLE):
        """
        Initialize ledger.

        Args:
            connection: ibis backend holding the ledger table
            table: Ledger table name (plain identifier)

        Raises:
            ConfigurationError: If the table name is not a plain identifier
        """
        if not _IDENTIFIER_RE.match(table):
            raise ConfigurationError(
                f"Invalid ledger table name '{table}': must be letters, digits and underscores",
                details={"table": table},
            )
        self.connection = connection
        self.table = table

    def ensure_schema(self) -> None:
        """
        Create the ledger table if it does not exist. Safe on every run.

        Raises:
            ConfigurationError: If the table cannot be created (permissions, lost connection)
        """
        ddl = f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                version VARCHAR(255) PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        try:
            with transaction(self.connection) as con:
                execute_statement(con, ddl)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to create ledger table '{self.table}': {e}", details={"table": self.table}
            ) from e

    def has(self, version: str, tx: Any = None) -> bool:
        """
        Check whether a version is recorded.

        Args:
            version: Migration version
            tx: DB-API connection of the open transaction (default: the ledger's connection)

        Returns:
            True if the version is in the ledger
        """
        con = tx if tx is not None else dbapi_connection(self.connection)
        rows = fetch_rows(
            con, f"SELECT 1 FROM {self.table} WHERE version = '{escape_sql_string(version)}'"
        )
        return len(rows) > 0

    def record(self, version: str, tx: Any = None) -> None:
        """
        Insert a version into the ledger.

        Args:
            version: Migration version
            tx: DB-API connection of the open transaction (default: the ledger's connection)

        Raises:
            LedgerConflictError: If the version is already recorded
        """
        con = tx if tx is not None else dbapi_connection(self.connection)
        try:
            execute_statement(con, f"INSERT INTO {self.table} (version) VALUES ('{escape_sql_string(version)}')")
        except Exception as e:
            if _is_unique_violation(e):
                raise LedgerConflictError(version, table=self.table, cause=e) from e
            raise

    def entries(self) -> list[LedgerEntry]:
        """
        Read all ledger rows ordered by version.

        Returns an empty list when the ledger table has not been created yet.
        """
        if self.table not in self.connection.list_tables():
            return []

        result = self.connection.table(self.table).order_by("version").execute()
        return [
            LedgerEntry(version=str(row["version"]), applied_at=_to_datetime(row["applied_at"]))
            for _, row in result.iterrows()
        ]

    def applied_versions(self) -> set[str]:
        """Set of recorded versions."""
        return {entry.version for entry in self.entries()}


def _is_unique_violation(error: Exception) -> bool:
    if type(error).__name__ in ("UniqueViolation", "ConstraintException", "IntegrityError"):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _UNIQUE_VIOLATION_MARKERS)


def _to_datetime(value: Any) -> datetime | None:
    # pandas returns Timestamp / NaT for timestamp columns
    if value is None or value != value:
        return None
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()
    return value

"""
Migration runner.

Applies the SQL files of a migrations directory in version order. Each
file runs in its own transaction together with its ledger check and
ledger insert, so a file is either fully applied and recorded or not at
all. The first failure stops the run; re-running resumes at the failed
file because every earlier file is already in the ledger.

Two runners must not target the same database at the same time: there is
no cross-process lock, only the ledger's primary key.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

import ibis

from sqlmigrate.exceptions import ExecutionError, LedgerConflictError, MigrationError
from sqlmigrate.migrations.files import MigrationFile, discover_migrations
from sqlmigrate.migrations.ledger import DEFAULT_LEDGER_TABLE, Ledger
from sqlmigrate.migrations.observer import LoggingObserver, MigrationObserver
from sqlmigrate.utils.sql import (
    backend_dialect,
    execute_statement,
    split_statements,
    transaction,
    transaction_control_keyword,
)


class RunnerState(str, Enum):
    """Lifecycle states of a MigrationRunner."""

    IDLE = "idle"
    ENSURING_LEDGER = "ensuring_ledger"
    VALIDATING = "validating"
    APPLYING = "applying"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class MigrationResult:
    """Outcome of one migration file in a run."""

    version: str
    status: str  # "applied" or "skipped"
    duration: float = 0.0


@dataclass
class MigrationReport:
    """Outcome of a run, in application order."""

    results: list[MigrationResult] = field(default_factory=list)

    @property
    def applied(self) -> list[str]:
        return [r.version for r in self.results if r.status == "applied"]

    @property
    def skipped(self) -> list[str]:
        return [r.version for r in self.results if r.status == "skipped"]


@dataclass(frozen=True)
class MigrationStatus:
    """Ledger status of one version.

    ``status`` is ``applied``, ``pending`` (file not yet applied) or
    ``missing`` (recorded in the ledger but no file on disk).
    """

    version: str
    status: str
    applied_at: datetime | None = None
    path: Path | None = None


class MigrationRunner:
    """Applies a directory of SQL migrations to one database."""

    def __init__(
        self,
        connection: ibis.BaseBackend,
        migrations_dir: Path | str,
        *,
        table: str = DEFAULT_LEDGER_TABLE,
        observer: MigrationObserver | None = None,
    ):
        """
        Initialize runner.

        Args:
            connection: ibis backend to migrate
            migrations_dir: Directory containing ``<timestamp>_<name>.sql`` files
            table: Ledger table name
            observer: Lifecycle observer (default: LoggingObserver)
        """
        self.connection = connection
        self.migrations_dir = Path(migrations_dir)
        self.ledger = Ledger(connection, table)
        self.observer = observer or LoggingObserver()
        self.state = RunnerState.IDLE
        self.report = MigrationReport()
        self._dialect = backend_dialect(connection)

    def run(self) -> MigrationReport:
        """
        Apply every pending migration in order.

        Returns:
            Report of applied and skipped versions

        Raises:
            ConfigurationError: Ledger table could not be created
            MigrationsDirectoryError: Migrations directory could not be read
            ValidationError: A filename is malformed (nothing was executed)
            ExecutionError: A migration failed (earlier files stay applied)
            LedgerConflictError: A version was recorded by someone else meanwhile
        """
        self.report = MigrationReport()
        try:
            self.state = RunnerState.ENSURING_LEDGER
            self.ledger.ensure_schema()
            self.observer.ledger_ensured(self.ledger.table)

            self.state = RunnerState.VALIDATING
            migrations = discover_migrations(self.migrations_dir)

            self.state = RunnerState.APPLYING
            for migration in migrations:
                self.report.results.append(self._apply(migration))
        except MigrationError as e:
            self.state = RunnerState.FAILED
            self.observer.run_failed(e)
            raise
        except BaseException:
            self.state = RunnerState.FAILED
            raise

        self.state = RunnerState.COMPLETE
        self.observer.run_complete(self.report)
        return self.report

    def _apply(self, migration: MigrationFile) -> MigrationResult:
        """Apply one migration in its own transaction, or skip it if already recorded."""
        start = time.monotonic()
        hook_error: Exception | None = None
        try:
            with transaction(self.connection) as tx:
                if self.ledger.has(migration.version, tx):
                    applied = False
                else:
                    try:
                        self.observer.file_started(migration)
                    except Exception as e:
                        hook_error = e
                        raise
                    statements = self._statements(migration)
                    for statement in statements:
                        execute_statement(tx, statement)
                    self.ledger.record(migration.version, tx)
                    applied = True
        except (LedgerConflictError, ExecutionError):
            raise
        except Exception as e:
            # Observer errors propagate unwrapped
            if e is hook_error:
                raise
            raise ExecutionError(migration.version, str(e), cause=e) from e

        if not applied:
            self.observer.file_skipped(migration)
            return MigrationResult(version=migration.version, status="skipped")

        duration = time.monotonic() - start
        self.observer.file_applied(migration, duration)
        return MigrationResult(version=migration.version, status="applied", duration=duration)

    def _statements(self, migration: MigrationFile) -> list[str]:
        """Split a migration into statements, rejecting any that would end the file's transaction."""
        statements = split_statements(migration.read_sql(), self._dialect)
        for statement in statements:
            keyword = transaction_control_keyword(statement, self._dialect)
            if keyword is not None:
                raise ExecutionError(
                    migration.version,
                    f"{keyword} is not allowed in a migration file, it runs in its own transaction: {statement}",
                )
        return statements

    def pending(self) -> list[MigrationFile]:
        """
        List migrations not yet recorded in the ledger, in application order.

        Validates filenames the same way a run does; does not create the ledger.
        """
        migrations = discover_migrations(self.migrations_dir)
        applied = self.ledger.applied_versions()
        return [m for m in migrations if m.version not in applied]

    def status(self) -> list[MigrationStatus]:
        """
        Status of every known version, sorted by version.

        Includes ledger rows whose file no longer exists as ``missing``.
        """
        migrations = discover_migrations(self.migrations_dir)
        entries = {entry.version: entry for entry in self.ledger.entries()}

        statuses = []
        for migration in migrations:
            entry = entries.pop(migration.version, None)
            if entry is None:
                statuses.append(MigrationStatus(version=migration.version, status="pending", path=migration.path))
            else:
                statuses.append(
                    MigrationStatus(
                        version=migration.version, status="applied", applied_at=entry.applied_at, path=migration.path
                    )
                )
        for entry in entries.values():
            statuses.append(MigrationStatus(version=entry.version, status="missing", applied_at=entry.applied_at))

        return sorted(statuses, key=lambda s: s.version)


def migrate(
    connection: ibis.BaseBackend,
    migrations_dir: Path | str,
    *,
    table: str = DEFAULT_LEDGER_TABLE,
    observer: MigrationObserver | None = None,
) -> MigrationReport:
    """
    Run database migrations from a directory.

    Args:
        connection: ibis backend to migrate
        migrations_dir: Directory containing migration files
        table: Ledger table name
        observer: Lifecycle observer (default: LoggingObserver)

    Returns:
        Report of applied and skipped versions

    Raises:
        MigrationError: On any failure; see MigrationRunner.run
    """
    return MigrationRunner(connection, migrations_dir, table=table, observer=observer).run()

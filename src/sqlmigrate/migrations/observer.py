"""
Lifecycle observers for the migration runner.

The runner calls its observer at fixed points of a run. The default
observer writes those events to the ``sqlmigrate.migrations`` logger.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmigrate.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlmigrate.exceptions import MigrationError
    from sqlmigrate.migrations.files import MigrationFile
    from sqlmigrate.migrations.runner import MigrationReport


class MigrationObserver:
    """Base observer. Every hook is a no-op; override the ones you need."""

    def ledger_ensured(self, table: str) -> None:
        pass

    def file_skipped(self, migration: MigrationFile) -> None:
        pass

    def file_started(self, migration: MigrationFile) -> None:
        pass

    def file_applied(self, migration: MigrationFile, duration: float) -> None:
        pass

    def run_complete(self, report: MigrationReport) -> None:
        pass

    def run_failed(self, error: MigrationError) -> None:
        pass


class LoggingObserver(MigrationObserver):
    """Observer that logs each lifecycle event."""

    def __init__(self, logger_name: str = "sqlmigrate.migrations"):
        self.logger = get_logger(logger_name)

    def ledger_ensured(self, table: str) -> None:
        self.logger.debug(f"Ledger table ready: {table}")

    def file_skipped(self, migration: MigrationFile) -> None:
        self.logger.info(f"Migration {migration.version} already applied, skipping")

    def file_started(self, migration: MigrationFile) -> None:
        self.logger.info(f"Running migration: {migration.version}")

    def file_applied(self, migration: MigrationFile, duration: float) -> None:
        self.logger.info(f"Migration {migration.version} applied successfully ({duration:.2f}s)")

    def run_complete(self, report: MigrationReport) -> None:
        self.logger.info(
            f"All migrations completed successfully "
            f"(applied: {len(report.applied)}, skipped: {len(report.skipped)})"
        )

    def run_failed(self, error: MigrationError) -> None:
        self.logger.error(f"Migration run failed: {error}")

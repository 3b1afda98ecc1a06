"""
Helpers shared by the sqlmigrate tests.
"""

from pathlib import Path

from sqlmigrate.migrations.observer import MigrationObserver


class RecordingObserver(MigrationObserver):
    """Observer that records lifecycle events as (event, value) tuples."""

    def __init__(self):
        self.events = []

    def ledger_ensured(self, table):
        self.events.append(("ledger_ensured", table))

    def file_skipped(self, migration):
        self.events.append(("file_skipped", migration.version))

    def file_started(self, migration):
        self.events.append(("file_started", migration.version))

    def file_applied(self, migration, duration):
        self.events.append(("file_applied", migration.version))

    def run_complete(self, report):
        self.events.append(("run_complete", tuple(report.applied)))

    def run_failed(self, error):
        self.events.append(("run_failed", type(error).__name__))

    def names(self, event):
        return [value for name, value in self.events if name == event]


def write_migration(directory: Path, filename: str, sql: str) -> Path:
    path = directory / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(sql, encoding="utf-8")
    return path


def count_rows(backend, table: str) -> int:
    return int(backend.table(table).count().execute())

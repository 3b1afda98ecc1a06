"""
CLI command for applying migrations.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from sqlmigrate.config.loader import MigrationSettings, load_config
from sqlmigrate.connections import connect
from sqlmigrate.exceptions import MigrationError
from sqlmigrate.migrations.runner import MigrationReport, MigrationRunner
from sqlmigrate.utils.logging import setup_logging_from_config

app = typer.Typer(name="migrate", help="Apply pending database migrations", invoke_without_command=True)


@contextmanager
def open_project(project_dir: Path, env: str | None, migrations_dir: Path | None = None) -> Iterator[MigrationRunner]:
    """
    Load project configuration, open the migrations connection and build a runner.

    The connection is closed when the block exits.

    Args:
        project_dir: Directory containing config.yaml
        env: Environment name for config.<env>.yaml overrides
        migrations_dir: Override of the configured migrations directory

    Raises:
        MigrationError: If configuration or the connection is invalid
    """
    config = load_config(project_dir, env=env)
    config.validate()
    setup_logging_from_config(config.data, project_dir=project_dir)

    settings = MigrationSettings.from_config(config)
    directory = migrations_dir or settings.migrations_path(project_dir)

    with connect(settings.connection, config.connections[settings.connection]) as conn:
        yield MigrationRunner(conn.connection, directory, table=settings.table)


def _echo_report(report: MigrationReport) -> None:
    for result in report.results:
        if result.status == "applied":
            typer.echo(f"  ✓ {result.version} ({result.duration:.2f}s)")
        else:
            typer.echo(f"  - {result.version} (already applied)")


@app.callback()
def migrate(
    ctx: typer.Context,
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    env: str = typer.Option(None, "--env", "-e", help="Environment name"),
    migrations_dir: Path = typer.Option(None, "--dir", help="Migrations directory (overrides config)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List pending migrations without running them"),
):
    """
    Apply pending database migrations in timestamp order.

    Examples:
        # Run all pending migrations
        sqlmigrate migrate --env prod

        # Show what would be executed
        sqlmigrate migrate --env prod --dry-run
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        with open_project(project_dir, env, migrations_dir) as runner:
            if dry_run:
                pending = runner.pending()
                if not pending:
                    typer.echo("No pending migrations")
                    return
                typer.echo(f"[DRY RUN] Would execute {len(pending)} migration(s):")
                for migration in pending:
                    typer.echo(f"  ⏳ {migration.path.name}")
                return

            try:
                report = runner.run()
            except MigrationError:
                if runner.report.results:
                    typer.echo("Completed before failure:")
                    _echo_report(runner.report)
                raise
    except MigrationError as e:
        typer.echo(f"Migration failed: {e}", err=True)
        raise typer.Exit(1)

    if not report.applied:
        typer.echo("No migrations to run")
        return

    typer.echo(f"Applied {len(report.applied)} migration(s), skipped {len(report.skipped)}")
    _echo_report(report)

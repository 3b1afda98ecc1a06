"""
sqlmigrate status - Show applied and pending migrations.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from sqlmigrate.exceptions import MigrationError
from sqlmigrate.migrations.cli import open_project

app = typer.Typer(name="status", help="Show migration status", invoke_without_command=True)

console = Console()

STATUS_STYLES = {"applied": "green", "pending": "yellow", "missing": "red"}


@app.callback()
def status(
    ctx: typer.Context,
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    env: str = typer.Option(None, "--env", "-e", help="Environment name"),
    migrations_dir: Path = typer.Option(None, "--dir", help="Migrations directory (overrides config)"),
):
    """
    List every migration with its ledger status.

    Versions recorded in the ledger whose file is gone are shown as missing.
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        with open_project(project_dir, env, migrations_dir) as runner:
            statuses = runner.status()
    except MigrationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not statuses:
        console.print("[yellow]No migrations found[/yellow]")
        return

    table = Table(title=f"Migrations ({len(statuses)})", show_header=True)
    table.add_column("Version", style="cyan")
    table.add_column("Status")
    table.add_column("Applied at", style="dim")

    for item in statuses:
        style = STATUS_STYLES.get(item.status, "white")
        applied_at = item.applied_at.strftime("%Y-%m-%d %H:%M:%S") if item.applied_at else ""
        table.add_row(item.version, f"[{style}]{item.status}[/{style}]", applied_at)

    console.print(table)

    applied = sum(1 for s in statuses if s.status == "applied")
    pending = sum(1 for s in statuses if s.status == "pending")
    console.print(f"Applied: {applied}, Pending: {pending}")

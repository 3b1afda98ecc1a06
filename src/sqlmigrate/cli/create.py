"""
sqlmigrate create - Generate a new migration file.
"""

from pathlib import Path

import typer

from sqlmigrate.config.loader import CONFIG_FILE, MigrationSettings, load_config
from sqlmigrate.exceptions import MigrationError
from sqlmigrate.migrations.create import create_migration


def create(
    name: str = typer.Argument(..., help="Migration name (letters, digits and underscores)"),
    migrations_dir: Path = typer.Option(None, "--dir", help="Migrations directory (overrides config)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
):
    """
    Create <UTC timestamp>_<name>.sql in the migrations directory.

    Without --dir the directory comes from config.yaml when present,
    otherwise ./migrations.
    """
    try:
        if migrations_dir is None:
            settings = MigrationSettings()
            if (project_dir / CONFIG_FILE).is_file():
                settings = MigrationSettings.from_config(load_config(project_dir))
            migrations_dir = settings.migrations_path(project_dir)

        path = create_migration(name, migrations_dir)
    except MigrationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Created migration file: {path}")

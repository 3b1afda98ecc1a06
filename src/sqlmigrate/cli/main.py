"""
Main CLI entry point.
"""

import typer

from sqlmigrate import __version__
from sqlmigrate.cli import create, status
from sqlmigrate.migrations import cli as migrate_cli


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"sqlmigrate version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="sqlmigrate",
    help="sqlmigrate - apply timestamped SQL migrations with a ledger table",
    add_completion=False,
)

# Register subcommands
app.add_typer(migrate_cli.app, name="migrate")
app.command(name="create", help="Create a new empty migration file")(create.create)
app.add_typer(status.app, name="status")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    sqlmigrate - apply timestamped SQL migrations with a ledger table.

    Run 'sqlmigrate <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()

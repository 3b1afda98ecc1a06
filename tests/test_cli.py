"""
Tests for CLI commands.

Uses typer's CliRunner against a file-backed DuckDB project in tmp_path.
"""

import logging

import ibis
import pytest
from helpers import write_migration
from typer.testing import CliRunner

from sqlmigrate.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("sqlmigrate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def project(tmp_path):
    """Project directory with config.yaml and an empty migrations directory."""
    (tmp_path / "config.yaml").write_text(
        "connections:\n"
        "  default:\n"
        "    type: duckdb\n"
        f"    path: {tmp_path / 'data' / 'app.duckdb'}\n"
        "migrations:\n"
        "  dir: migrations\n"
        "logging:\n"
        "  level: WARNING\n"
    )
    (tmp_path / "migrations").mkdir()
    return tmp_path


def open_db(project):
    return ibis.duckdb.connect(str(project / "data" / "app.duckdb"))


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "sqlmigrate version" in result.output


class TestHelp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "migrate" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "sqlmigrate" in result.output.lower()

    @pytest.mark.parametrize("command", ["migrate", "create", "status"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestCreate:
    def test_create_in_explicit_dir(self, tmp_path):
        target = tmp_path / "db"
        result = runner.invoke(app, ["create", "add_users", "--dir", str(target)])

        assert result.exit_code == 0
        assert "Created migration file" in result.output
        (created,) = list(target.iterdir())
        assert created.name.endswith("_add_users.sql")

    def test_create_uses_configured_dir(self, project):
        result = runner.invoke(app, ["create", "init", "--project-dir", str(project)])

        assert result.exit_code == 0
        assert len(list((project / "migrations").glob("*_init.sql"))) == 1

    def test_create_rejects_bad_name(self, tmp_path):
        result = runner.invoke(app, ["create", "add users", "--dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid migration name" in result.output
        assert list(tmp_path.iterdir()) == []


class TestMigrate:
    def test_migrate_applies_and_is_idempotent(self, project):
        write_migration(project / "migrations", "20230101120000_init.sql", "CREATE TABLE t (id INTEGER);")
        write_migration(project / "migrations", "20230101120001_seed.sql", "INSERT INTO t VALUES (1);")

        result = runner.invoke(app, ["migrate", "--project-dir", str(project)])
        assert result.exit_code == 0, result.output
        assert "Applied 2 migration(s)" in result.output

        result = runner.invoke(app, ["migrate", "--project-dir", str(project)])
        assert result.exit_code == 0
        assert "No migrations to run" in result.output

        con = open_db(project)
        try:
            assert int(con.table("t").count().execute()) == 1
        finally:
            con.disconnect()

    def test_dry_run_executes_nothing(self, project):
        write_migration(project / "migrations", "20230101120000_init.sql", "CREATE TABLE t (id INTEGER);")

        result = runner.invoke(app, ["migrate", "--project-dir", str(project), "--dry-run"])

        assert result.exit_code == 0
        assert "[DRY RUN] Would execute 1 migration(s)" in result.output
        assert "20230101120000_init.sql" in result.output
        con = open_db(project)
        try:
            assert "t" not in con.list_tables()
        finally:
            con.disconnect()

    def test_failure_exits_nonzero(self, project):
        write_migration(project / "migrations", "20230101120000_init.sql", "CREATE TABLE t (id INTEGER);")
        write_migration(project / "migrations", "20230101120001_bad.sql", "INSERT INTO nope VALUES (1);")

        result = runner.invoke(app, ["migrate", "--project-dir", str(project)])

        assert result.exit_code == 1
        assert "Migration failed" in result.output
        assert "20230101120001_bad" in result.output
        assert "20230101120000_init" in result.output

    def test_invalid_filename_exits_nonzero(self, project):
        write_migration(project / "migrations", "bad name.sql", "SELECT 1;")

        result = runner.invoke(app, ["migrate", "--project-dir", str(project)])

        assert result.exit_code == 1
        assert "bad name.sql" in result.output

    def test_connection_entry_not_a_mapping(self, tmp_path):
        (tmp_path / "config.yaml").write_text("connections:\n  default: duckdb\n")

        result = runner.invoke(app, ["migrate", "--project-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Connection 'default' must be a mapping" in result.output
        assert not isinstance(result.exception, AttributeError)

    def test_unresolved_port(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SQLMIGRATE_TEST_PGPORT", raising=False)
        (tmp_path / "config.yaml").write_text(
            "connections:\n"
            "  default:\n"
            "    type: postgres\n"
            "    config:\n"
            "      port: ${SQLMIGRATE_TEST_PGPORT}\n"
            "logging:\n"
            "  level: WARNING\n"
        )
        (tmp_path / "migrations").mkdir()

        result = runner.invoke(app, ["migrate", "--project-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "port must be an integer" in result.output

    def test_missing_config_exits_nonzero(self, tmp_path):
        result = runner.invoke(app, ["migrate", "--project-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output


class TestStatus:
    def test_status_table(self, project):
        write_migration(project / "migrations", "20230101120000_init.sql", "CREATE TABLE t (id INTEGER);")
        runner.invoke(app, ["migrate", "--project-dir", str(project)])
        write_migration(project / "migrations", "20230101120001_seed.sql", "INSERT INTO t VALUES (1);")

        result = runner.invoke(app, ["status", "--project-dir", str(project)])

        assert result.exit_code == 0, result.output
        assert "20230101120000_init" in result.output
        assert "applied" in result.output
        assert "pending" in result.output
        assert "Applied: 1, Pending: 1" in result.output

    def test_status_empty(self, project):
        result = runner.invoke(app, ["status", "--project-dir", str(project)])

        assert result.exit_code == 0
        assert "No migrations found" in result.output

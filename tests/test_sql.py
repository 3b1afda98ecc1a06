"""
Tests for SQL helpers: statement splitting and transactions.
"""

from unittest.mock import Mock

import pytest
from helpers import count_rows

from sqlmigrate.utils.sql import (
    backend_dialect,
    dbapi_connection,
    escape_sql_string,
    execute_statement,
    fetch_rows,
    split_statements,
    transaction,
    transaction_control_keyword,
)


class TestEscape:
    def test_escape_sql_string(self):
        assert escape_sql_string("hello") == "hello"
        assert escape_sql_string("it's") == "it''s"
        assert escape_sql_string("a'b'c") == "a''b''c"


class TestSplitStatements:
    def test_two_statements(self):
        sql = "CREATE TABLE a (x INTEGER);\nINSERT INTO a VALUES (1);\n"
        assert split_statements(sql) == ["CREATE TABLE a (x INTEGER)", "INSERT INTO a VALUES (1)"]

    def test_no_trailing_semicolon(self):
        assert split_statements("SELECT 1") == ["SELECT 1"]

    def test_semicolon_in_string_literal(self):
        statements = split_statements("INSERT INTO a VALUES ('x;y'); SELECT 1;")
        assert statements == ["INSERT INTO a VALUES ('x;y')", "SELECT 1"]

    def test_comment_only_script(self):
        assert split_statements("-- Migration: init\n-- Add your SQL migration here\n") == []

    def test_empty_script(self):
        assert split_statements("") == []
        assert split_statements("  ;; ") == []

    def test_leading_comment_is_not_a_statement(self):
        assert split_statements("-- header; with semicolon\nSELECT 1;") == ["SELECT 1"]

    def test_untokenizable_script_runs_whole(self):
        sql = "SELECT 'unterminated"
        assert split_statements(sql) == [sql]


class TestTransactionControlKeyword:
    @pytest.mark.parametrize(
        "statement, keyword",
        [
            ("COMMIT", "COMMIT"),
            ("begin", "BEGIN"),
            ("BEGIN TRANSACTION", "BEGIN"),
            ("START TRANSACTION", "START"),
            ("ROLLBACK", "ROLLBACK"),
            ("END", "END"),
            ("SAVEPOINT before_seed", "SAVEPOINT"),
            ("-- finish up\nCOMMIT", "COMMIT"),
        ],
    )
    def test_detects_transaction_control(self, statement, keyword):
        assert transaction_control_keyword(statement) == keyword

    @pytest.mark.parametrize(
        "statement",
        [
            "CREATE TABLE commits (id INTEGER)",
            "INSERT INTO log VALUES ('COMMIT')",
            "SELECT 1",
            "",
        ],
    )
    def test_ordinary_statements(self, statement):
        assert transaction_control_keyword(statement) is None


class TestBackendHelpers:
    def test_dbapi_connection_of_ibis_backend(self, backend):
        assert dbapi_connection(backend) is backend.con

    def test_dbapi_connection_passthrough(self):
        raw = object()
        assert dbapi_connection(raw) is raw

    def test_backend_dialect(self, backend):
        assert backend_dialect(backend) == "duckdb"

    def test_backend_dialect_unknown(self):
        assert backend_dialect(Mock(spec=[])) is None

    def test_fetch_rows(self, backend):
        assert fetch_rows(dbapi_connection(backend), "SELECT 1 AS x UNION ALL SELECT 2 ORDER BY x") == [(1,), (2,)]


class TestTransaction:
    def test_commit(self, backend):
        with transaction(backend) as tx:
            execute_statement(tx, "CREATE TABLE t (id INTEGER)")
            execute_statement(tx, "INSERT INTO t VALUES (1)")

        assert count_rows(backend, "t") == 1

    def test_rollback_on_error(self, backend):
        execute_statement(dbapi_connection(backend), "CREATE TABLE t (id INTEGER)")

        with pytest.raises(ValueError, match="boom"):
            with transaction(backend) as tx:
                execute_statement(tx, "INSERT INTO t VALUES (1)")
                raise ValueError("boom")

        assert count_rows(backend, "t") == 0

    def test_rollback_on_base_exception(self, backend):
        execute_statement(dbapi_connection(backend), "CREATE TABLE t (id INTEGER)")

        with pytest.raises(KeyboardInterrupt):
            with transaction(backend) as tx:
                execute_statement(tx, "INSERT INTO t VALUES (1)")
                raise KeyboardInterrupt

        assert count_rows(backend, "t") == 0

    def test_rollback_when_commit_fails(self):
        con = Mock(spec=["begin", "commit", "rollback", "execute"])
        con.commit.side_effect = RuntimeError("commit failed")

        with pytest.raises(RuntimeError, match="commit failed"):
            with transaction(con):
                pass

        con.begin.assert_called_once()
        con.rollback.assert_called_once()

    def test_rollback_failure_does_not_mask_error(self):
        con = Mock(spec=["begin", "commit", "rollback", "execute"])
        con.rollback.side_effect = RuntimeError("rollback failed")

        with pytest.raises(ValueError, match="original"):
            with transaction(con):
                raise ValueError("original")

    def test_autocommit_connection_uses_sql_statements(self):
        con = Mock(spec=["execute", "commit", "rollback", "autocommit"])
        con.autocommit = True

        with pytest.raises(ValueError):
            with transaction(con) as tx:
                assert tx is con
                raise ValueError("abort")

        assert [c.args[0] for c in con.execute.call_args_list] == ["BEGIN", "ROLLBACK"]
        con.rollback.assert_not_called()

    def test_autocommit_connection_commit(self):
        con = Mock(spec=["execute", "commit", "rollback", "autocommit"])
        con.autocommit = True

        with transaction(con):
            pass

        assert [c.args[0] for c in con.execute.call_args_list] == ["BEGIN", "COMMIT"]

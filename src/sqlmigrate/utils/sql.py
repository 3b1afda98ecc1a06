"""
SQL helpers shared by the ledger and the runner.

Migrations run on the DB-API connection behind an ibis backend so that
every statement of a file, the ledger lookup and the ledger insert share
one explicit transaction.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import ibis
import sqlglot
from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlmigrate.utils.logging import get_logger

logger = get_logger("sqlmigrate.sql")


def escape_sql_string(value: str) -> str:
    """Escape single quotes for SQL strings."""
    return value.replace("'", "''")


def dbapi_connection(connection: ibis.BaseBackend | Any) -> Any:
    """
    Return the DB-API connection behind an ibis backend.

    ibis DuckDB and Postgres backends keep their driver connection on
    ``.con``; anything without one is assumed to be a driver connection
    already.
    """
    return getattr(connection, "con", connection)


def backend_dialect(connection: ibis.BaseBackend | Any) -> str | None:
    """Return the sqlglot dialect name for an ibis backend, if sqlglot knows it."""
    name = getattr(connection, "name", None)
    if isinstance(name, str) and Dialect.get(name) is not None:
        return name
    return None


def split_statements(sql: str, dialect: str | None = None) -> list[str]:
    """
    Split a SQL script into individual statements on top-level semicolons.

    Uses the sqlglot tokenizer so semicolons inside string literals,
    comments and dollar-quoted bodies do not split. Comment-only scripts
    yield no statements. The original statement text is kept verbatim
    (no re-rendering through sqlglot).

    Args:
        sql: Script text
        dialect: Optional sqlglot dialect used for tokenizing

    Returns:
        List of statement strings without trailing semicolons
    """
    try:
        tokens = sqlglot.tokenize(sql, read=dialect)
    except TokenError as e:
        logger.debug(f"Could not tokenize script, executing it as one statement: {e}")
        stripped = sql.strip()
        return [stripped] if stripped else []

    statements: list[str] = []
    start: int | None = None
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            if start is not None:
                statements.append(sql[start : token.start].strip())
                start = None
            continue
        if start is None:
            start = token.start

    if start is not None:
        tail = sql[start:].strip()
        if tail:
            statements.append(tail)

    return statements


TRANSACTION_CONTROL_KEYWORDS = frozenset(
    {"BEGIN", "START", "COMMIT", "END", "ROLLBACK", "ABORT", "SAVEPOINT", "RELEASE"}
)


def transaction_control_keyword(statement: str, dialect: str | None = None) -> str | None:
    """
    Return the leading keyword if a statement opens, ends or splits a transaction.

    Comments before the keyword are ignored.

    Args:
        statement: One statement, as returned by split_statements
        dialect: Optional sqlglot dialect used for tokenizing

    Returns:
        Upper-cased keyword such as ``COMMIT``, or None for ordinary statements
    """
    try:
        tokens = sqlglot.tokenize(statement, read=dialect)
        first = tokens[0].text if tokens else ""
    except TokenError:
        words = statement.split(None, 1)
        first = words[0] if words else ""

    keyword = first.upper()
    return keyword if keyword in TRANSACTION_CONTROL_KEYWORDS else None


def execute_statement(con: Any, statement: str) -> None:
    """Execute one statement on a DB-API connection, discarding any result."""
    result = _run(con, statement)
    _close_cursor(con, result)


def fetch_rows(con: Any, query: str) -> list[tuple]:
    """Execute a query on a DB-API connection and return all rows."""
    result = _run(con, query)
    try:
        return list(result.fetchall())
    finally:
        _close_cursor(con, result)


def _run(con: Any, statement: str) -> Any:
    # DuckDB and psycopg 3 connections execute directly; DuckDB returns
    # the connection itself, psycopg returns a cursor
    if hasattr(con, "execute"):
        return con.execute(statement)
    cursor = con.cursor()
    cursor.execute(statement)
    return cursor


def _close_cursor(con: Any, result: Any) -> None:
    if result is not None and result is not con and hasattr(result, "close"):
        result.close()


def _uses_explicit_begin(con: Any) -> bool:
    # Connections without begin() that run in autocommit mode need
    # BEGIN/COMMIT/ROLLBACK issued as SQL
    return not hasattr(con, "begin") and bool(getattr(con, "autocommit", False))


@contextmanager
def transaction(connection: ibis.BaseBackend | Any) -> Iterator[Any]:
    """
    Run a block inside one database transaction.

    Commits when the block finishes. Rolls back when the block raises
    (any exception, including KeyboardInterrupt) or when the commit itself
    fails. A failing rollback is logged and never replaces the original
    error.

    Args:
        connection: ibis backend or DB-API connection

    Yields:
        The DB-API connection to execute statements on
    """
    con = dbapi_connection(connection)
    explicit = _uses_explicit_begin(con)

    if hasattr(con, "begin"):
        con.begin()
    elif explicit:
        execute_statement(con, "BEGIN")

    committed = False
    try:
        yield con
        if explicit:
            execute_statement(con, "COMMIT")
        else:
            con.commit()
        committed = True
    finally:
        if not committed:
            try:
                if explicit:
                    execute_statement(con, "ROLLBACK")
                else:
                    con.rollback()
            except Exception as e:
                logger.warning(f"Rollback failed: {e}")

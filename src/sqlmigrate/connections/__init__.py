"""
Connection management.

Builds ibis-backed DuckDB and Postgres connections from configuration.
"""

from typing import Any

from sqlmigrate.connections.base import BaseConnection
from sqlmigrate.connections.duckdb import DuckDBConnection
from sqlmigrate.connections.postgres import PostgresConnection
from sqlmigrate.exceptions import ConfigurationError

CONNECTION_TYPES: dict[str, type[BaseConnection]] = {
    DuckDBConnection.type_name: DuckDBConnection,
    PostgresConnection.type_name: PostgresConnection,
}


def connect(name: str, config: dict[str, Any]) -> BaseConnection:
    """
    Create a connection object from its configuration entry.

    Args:
        name: Connection name
        config: Connection configuration (must contain ``type``)

    Returns:
        Unopened connection; the ibis backend is created on first use

    Raises:
        ConfigurationError: If the entry is not a mapping or its type is missing or unsupported
    """
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Connection '{name}' must be a mapping, got {type(config).__name__}",
            details={"connection": name},
        )
    conn_type = config.get("type")
    if conn_type not in CONNECTION_TYPES:
        supported = ", ".join(sorted(CONNECTION_TYPES))
        raise ConfigurationError(
            f"Unsupported connection type '{conn_type}' for connection '{name}' (supported: {supported})",
            details={"connection": name, "type": conn_type},
        )
    return CONNECTION_TYPES[conn_type](name, config)


__all__ = [
    "BaseConnection",
    "DuckDBConnection",
    "PostgresConnection",
    "CONNECTION_TYPES",
    "connect",
]

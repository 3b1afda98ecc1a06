"""
Postgres connection via ibis.

Migrations need a single session, so unlike a service there is no pool:
one ibis backend per connection object.
"""

from typing import Any

import ibis

from sqlmigrate.connections.base import BaseConnection
from sqlmigrate.exceptions import ConfigurationError, ConnectionError_
from sqlmigrate.utils.logging import get_logger

logger = get_logger("sqlmigrate.connections.postgres")


class PostgresConnection(BaseConnection):
    """Postgres connection wrapper using ibis."""

    type_name = "postgres"

    def connect_params(self) -> dict[str, Any]:
        """
        Connection parameters from the ``config`` sub-section.

        Raises:
            ConfigurationError: If the sub-section is not a mapping or the port is not an integer
        """
        db_config = self.config.get("config") or {}
        if not isinstance(db_config, dict):
            raise ConfigurationError(
                f"Connection '{self.name}': 'config' must be a mapping, got {type(db_config).__name__}",
                details={"connection": self.name},
            )

        port = db_config.get("port", 5432)
        try:
            port = int(port)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Connection '{self.name}': port must be an integer, got {port!r}",
                details={"connection": self.name, "port": port},
            ) from e

        return {
            "host": db_config.get("host", "localhost"),
            "port": port,
            "user": db_config.get("user", ""),
            "password": db_config.get("password", ""),
            "database": db_config.get("database", ""),
        }

    @property
    def connection(self) -> ibis.BaseBackend:
        """
        Get Postgres connection via ibis (lazy initialization).

        Raises:
            ConnectionError_: If the server cannot be reached
        """
        if self._connection is None:
            params = self.connect_params()
            try:
                self._connection = ibis.postgres.connect(**params)
            except Exception as e:
                raise ConnectionError_(
                    f"Cannot connect to Postgres at {params['host']}:{params['port']}/{params['database']}: {e}",
                    details={"connection": self.name, "host": params["host"], "database": params["database"]},
                ) from e
            logger.debug(f"Connected to Postgres {params['host']}:{params['port']}/{params['database']}")

        return self._connection

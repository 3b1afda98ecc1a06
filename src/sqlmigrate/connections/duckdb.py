"""
DuckDB connection via ibis.
"""

import re
from pathlib import Path
from typing import Any

import ibis

from sqlmigrate.connections.base import BaseConnection
from sqlmigrate.exceptions import ConnectionError_
from sqlmigrate.utils.logging import get_logger

logger = get_logger("sqlmigrate.connections.duckdb")


class DuckDBConnection(BaseConnection):
    """DuckDB connection wrapper using ibis."""

    type_name = "duckdb"

    @property
    def connection(self) -> ibis.BaseBackend:
        """
        Get DuckDB connection via ibis (lazy initialization).

        Raises:
            ConnectionError_: If the database file cannot be opened
        """
        if self._connection is None:
            path = self.config.get("path", ":memory:")

            if path == ":memory:":
                self._connection = ibis.duckdb.connect()
                return self._connection

            # Ensure directory exists for file-based databases
            try:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConnectionError_(
                    f"Cannot create directory for DuckDB database '{path}': {e}",
                    details={"connection": self.name, "path": path},
                ) from e
            try:
                self._connection = ibis.duckdb.connect(path)
            except Exception as e:
                error_str = str(e)
                if "lock" in error_str.lower() or "conflicting" in error_str.lower():
                    pid_match = re.search(r"PID\s+(\d+)", error_str)
                    pid_info = f" (PID: {pid_match.group(1)})" if pid_match else ""
                    raise ConnectionError_(
                        f"Cannot connect to DuckDB database '{path}': File is locked by another process{pid_info}.\n"
                        f"Please close any other processes accessing this database",
                        details={"connection": self.name, "path": path},
                    ) from e
                raise ConnectionError_(
                    f"Cannot connect to DuckDB database '{path}': {error_str}",
                    details={"connection": self.name, "path": path},
                ) from e
            logger.debug(f"Opened DuckDB database {path} for connection '{self.name}'")

        return self._connection

"""
Abstract base connection class for ibis-backed datastores.
"""

from abc import ABC, abstractmethod
from typing import Any

import ibis

from sqlmigrate.utils.logging import get_logger

logger = get_logger("sqlmigrate.connections.base")


class BaseConnection(ABC):
    """
    Base class for datastore connections using ibis.

    The ibis backend is created lazily on first access of ``connection``
    and released by ``close()`` or by leaving a ``with`` block.
    """

    type_name: str = ""

    def __init__(self, name: str, config: dict[str, Any]):
        """
        Initialize connection.

        Args:
            name: Connection name (from config)
            config: Connection configuration dictionary
        """
        self.name = name
        self.config = config
        self._connection: ibis.BaseBackend | None = None

    @property
    @abstractmethod
    def connection(self) -> ibis.BaseBackend:
        """
        Get ibis backend connection (lazy initialization).

        Returns:
            ibis.BaseBackend: ibis backend connection
        """

    def close(self) -> None:
        """Close connection and cleanup resources."""
        if self._connection is not None:
            try:
                self._connection.disconnect()
            except Exception as e:
                logger.debug(f"Error during disconnect() for {self.name}: {e}")
            self._connection = None

    def __enter__(self) -> "BaseConnection":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        """Context manager exit - closes connection."""
        try:
            self.close()
        except Exception as e:
            # Don't override the original exception if one occurred
            if exc_type is None:
                raise
            logger.warning(f"Error closing connection {self.name} during context exit: {e}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"

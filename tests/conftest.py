"""
Shared fixtures for sqlmigrate tests.
"""

from pathlib import Path

import ibis
import pytest
from helpers import RecordingObserver


@pytest.fixture
def backend():
    """In-memory DuckDB backend."""
    con = ibis.duckdb.connect()
    yield con
    con.disconnect()


@pytest.fixture
def migrations_dir(tmp_path) -> Path:
    path = tmp_path / "migrations"
    path.mkdir()
    return path


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()

"""Pytest fixtures for nutritrend tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from nutritrend.config import Settings, set_settings
from nutritrend.db import set_db
from nutritrend.db.connection import DatabaseConnection


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def conn(temp_db):
    """Open connection to the temporary database."""
    with temp_db.get_connection() as connection:
        yield connection


@pytest.fixture
def cli_env(temp_db, tmp_path, monkeypatch):
    """Point the CLI's global settings and database at temporary files."""
    monkeypatch.setenv("NUTRITREND_CONFIG", str(tmp_path / "config.yaml"))

    settings = Settings()
    settings.database.path = temp_db.db_path
    set_settings(settings)
    set_db(temp_db)

    yield temp_db

    set_settings(None)
    set_db(None)

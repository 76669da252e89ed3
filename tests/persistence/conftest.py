"""Shared test fixtures for persistence tests."""

import pytest

from chatwallet.db import init_db


@pytest.fixture
def db_conn():
    """Create an in-memory database with all migrations applied."""
    conn = init_db(":memory:")
    yield conn
    conn.close()

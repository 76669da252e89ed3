"""DuckDB persistence for contacts and transaction history.

DUCKDB_PATH selects the database file; ":memory:" keeps everything in process.
"""

import os
from pathlib import Path

import duckdb

from chatwallet.db.migrations import run_migrations

DEFAULT_DB_PATH = "data/chatwallet.db"


def get_db_path() -> str:
    return os.getenv("DUCKDB_PATH", DEFAULT_DB_PATH)


def get_connection(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Open the wallet database, creating the file's directory if needed."""
    path = db_path or get_db_path()
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(path)


def init_db(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Open the wallet database with every packaged migration applied."""
    conn = get_connection(db_path)
    run_migrations(conn)
    return conn


__all__ = ["DEFAULT_DB_PATH", "get_connection", "get_db_path", "init_db"]

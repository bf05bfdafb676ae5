"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import URL

from parishledger.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "PARISHLEDGER_DB_PATH"
DEFAULT_DB_PATH = Path("~/.parishledger/parishledger.db")


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Work out which ledger file to open.

    An explicit path wins, then ``PARISHLEDGER_DB_PATH``, then the per-user
    default. ``~`` is expanded in all three.
    """
    chosen = database_path or os.environ.get(DB_PATH_ENV) or DEFAULT_DB_PATH
    return Path(chosen).expanduser()


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance for a ledger file.

    The file's directory is created if missing, so a fresh parish office
    install can start from ``parishledger member add``.

    Args:
        database_path: Path to the SQLite ledger file (see resolve_database_path)

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = resolve_database_path(database_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    url = URL.create("sqlite", database=str(path))
    return SQLAlchemyDatabase(url.render_as_string(hide_password=False))

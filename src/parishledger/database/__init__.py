"""Database layer for parishledger."""

from parishledger.database.base import Database
from parishledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]

"""Database layer for rulebook application."""

from rulebook.database.base import Database
from rulebook.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]

"""Database access for viewbench."""

from .connection import Database, DatabaseConnectionError, DatabaseError, QueryError
from .wait import WaitResult, WaitStatus, wait_for_condition, wait_for_database

__all__ = [
    "Database",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "WaitResult",
    "WaitStatus",
    "wait_for_condition",
    "wait_for_database",
]

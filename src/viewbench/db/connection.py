"""PostgreSQL connection wrapper for viewbench.

One connection, used sequentially by every stage. The connection runs in
autocommit mode so DDL and each bulk insert commit as they complete.

Usage::

    from viewbench.db import Database

    with Database(config.database) as db:
        db.execute("CREATE TABLE t (x int)")
        count = db.fetch_scalar("SELECT count(*) FROM t")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import psycopg
from psycopg import sql

if TYPE_CHECKING:
    from viewbench.config.schema import DatabaseConfig

logger = logging.getLogger(__name__)

Query = str | sql.Composable


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when the server cannot be reached or rejects the login."""

    pass


class QueryError(DatabaseError):
    """Raised when a statement fails on the server."""

    def __init__(self, message: str, sql_text: str = ""):
        super().__init__(message)
        self.sql_text = sql_text


def _query_text(query: Query) -> str:
    if isinstance(query, str):
        return query
    return repr(query)


class Database:
    """Single PostgreSQL connection with small fetch helpers."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._conn: psycopg.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the connection if it is not already open."""
        if self._conn is not None and not self._conn.closed:
            return

        logger.debug("Connecting to %s", self.config.safe_conninfo())
        try:
            self._conn = psycopg.connect(self.config.conninfo(), autocommit=True)
        except psycopg.Error as e:
            raise DatabaseConnectionError(  # noqa: B904
                f"Cannot connect to {self.config.safe_conninfo()}: {e}"
            )

        self._apply_session_settings()

    def _apply_session_settings(self) -> None:
        self.execute(
            sql.SQL("SET search_path TO {}").format(sql.Identifier(self.config.schema_name))
        )
        if self.config.statement_timeout_ms:
            self.set_statement_timeout(self.config.statement_timeout_ms)

    def reset_session(self) -> None:
        """Discard session state (cached plans, temp tables) and re-apply settings."""
        self.execute("DISCARD ALL")
        self._apply_session_settings()

    def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Database:
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def connection(self) -> psycopg.Connection:
        """The open connection, connecting on first use."""
        if self._conn is None or self._conn.closed:
            self.connect()
        assert self._conn is not None
        return self._conn

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    @contextmanager
    def cursor(self, sql_text: str = "") -> Iterator[psycopg.Cursor]:
        """Yield a raw cursor. psycopg errors are wrapped in QueryError.

        ``sql_text`` is attached to the QueryError for the statement run on it.
        """
        try:
            with self.connection.cursor() as cur:
                yield cur
        except psycopg.OperationalError as e:
            if self._conn is None or self._conn.closed:
                raise DatabaseConnectionError(f"Connection lost: {e}")  # noqa: B904
            raise QueryError(str(e).strip(), sql_text=sql_text)  # noqa: B904
        except psycopg.Error as e:
            raise QueryError(str(e).strip(), sql_text=sql_text)  # noqa: B904

    def execute(self, query: Query, params: Any = None) -> int:
        """Execute a statement and return the affected row count."""
        text = _query_text(query)
        logger.debug("SQL: %s", text)
        with self.cursor(text) as cur:
            cur.execute(query, params)
            return cur.rowcount

    def fetch_all(self, query: Query, params: Any = None) -> list[tuple[Any, ...]]:
        """Execute a query and return every row."""
        with self.cursor(_query_text(query)) as cur:
            cur.execute(query, params)
            return cur.fetchall() if cur.description else []

    def fetch_one(self, query: Query, params: Any = None) -> tuple[Any, ...] | None:
        """Execute a query and return the first row, or None."""
        with self.cursor(_query_text(query)) as cur:
            cur.execute(query, params)
            return cur.fetchone() if cur.description else None

    def fetch_scalar(self, query: Query, params: Any = None) -> Any:
        """Execute a query and return the first column of the first row."""
        row = self.fetch_one(query, params)
        return row[0] if row else None

    # ------------------------------------------------------------------
    # Session settings
    # ------------------------------------------------------------------

    def set_statement_timeout(self, timeout_ms: int) -> None:
        """Set the session statement timeout (0 disables it)."""
        self.execute(sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms))))

    def server_version(self) -> str:
        """Return the server's version string."""
        return str(self.fetch_scalar("SHOW server_version"))

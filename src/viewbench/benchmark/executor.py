"""Query executor for viewbench benchmarks.

Executes SQL over the shared :class:`~viewbench.db.Database` connection and
reports wall-clock latency. The timer covers execution and the full fetch,
so the materialized view is not credited for rows it has not yet shipped.

Usage::

    executor = PostgresExecutor(db)
    result = executor.execute_query("SELECT 1", timeout=30)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from viewbench.db import DatabaseConnectionError, QueryError

if TYPE_CHECKING:
    from viewbench.db import Database

logger = logging.getLogger(__name__)


@dataclass
class QueryExecutorResult:
    """Result of a single query execution."""

    sql: str
    engine: str
    duration_seconds: float
    rows_returned: int
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class QueryExecutor(Protocol):
    """Protocol for query executors."""

    def execute_query(self, sql: str, timeout: int = 300) -> QueryExecutorResult: ...

    def engine_name(self) -> str: ...

    def health_check(self) -> bool: ...

    def flush_cache(self) -> None: ...


class PostgresExecutor:
    """Times queries on a PostgreSQL connection."""

    def __init__(self, db: Database):
        self.db = db

    def engine_name(self) -> str:
        return "postgres"

    def execute_query(self, sql: str, timeout: int = 300) -> QueryExecutorResult:
        """Run ``sql``, fetch every row, and time it.

        SQL errors and timeouts are returned in the result, not raised.
        A lost connection is raised.
        """
        self.db.set_statement_timeout(timeout * 1000)
        try:
            start = time.perf_counter()
            try:
                with self.db.cursor(sql) as cur:
                    cur.execute(sql)
                    rows = cur.fetchall() if cur.description else []
                elapsed = time.perf_counter() - start
            except DatabaseConnectionError:
                raise
            except QueryError as e:
                elapsed = time.perf_counter() - start
                error = str(e)[:200] or "Unknown error"
                if "statement timeout" in error:
                    error = f"Query timed out ({timeout}s)"
                logger.warning("Query failed after %.3fs: %s", elapsed, error)
                return QueryExecutorResult(
                    sql=sql,
                    engine="postgres",
                    duration_seconds=elapsed,
                    rows_returned=0,
                    error=error,
                )
        finally:
            self.db.set_statement_timeout(self.db.config.statement_timeout_ms)

        return QueryExecutorResult(
            sql=sql,
            engine="postgres",
            duration_seconds=elapsed,
            rows_returned=len(rows),
        )

    def health_check(self) -> bool:
        try:
            return self.execute_query("SELECT 1", timeout=15).success
        except DatabaseConnectionError:
            return False

    def flush_cache(self) -> None:
        """Reset session state (prepared plans, temp tables) with DISCARD ALL.

        The shared buffer cache and the OS page cache cannot be flushed from
        SQL; a truly cold run needs a server restart.
        """
        self.db.reset_session()

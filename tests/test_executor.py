"""Tests for the PostgreSQL query executor."""

from __future__ import annotations

import pytest

from viewbench.benchmark import PostgresExecutor
from viewbench.db import DatabaseConnectionError, QueryError


@pytest.fixture
def cursor(mock_db):
    cur = mock_db.cursor.return_value.__enter__.return_value
    cur.description = [("enrollment_id",)]
    cur.fetchall.return_value = [(1,), (2,), (3,)]
    return cur


class TestPostgresExecutor:
    def test_engine_name(self, mock_db):
        assert PostgresExecutor(mock_db).engine_name() == "postgres"

    def test_success(self, mock_db, cursor):
        result = PostgresExecutor(mock_db).execute_query("SELECT * FROM v", timeout=30)
        assert result.success
        assert result.rows_returned == 3
        assert result.duration_seconds >= 0
        assert result.engine == "postgres"
        cursor.execute.assert_called_once_with("SELECT * FROM v")
        mock_db.cursor.assert_called_once_with("SELECT * FROM v")

    def test_timeout_set_and_restored(self, mock_db, cursor):
        PostgresExecutor(mock_db).execute_query("SELECT 1", timeout=30)
        timeouts = [c.args[0] for c in mock_db.set_statement_timeout.call_args_list]
        assert timeouts == [30_000, 0]

    def test_sql_error_returned(self, mock_db, cursor):
        cursor.execute.side_effect = QueryError('relation "student_enrollment_mv" does not exist')
        result = PostgresExecutor(mock_db).execute_query("SELECT * FROM student_enrollment_mv")
        assert not result.success
        assert "does not exist" in result.error
        assert result.rows_returned == 0

    def test_statement_timeout_message(self, mock_db, cursor):
        cursor.execute.side_effect = QueryError("canceling statement due to statement timeout")
        result = PostgresExecutor(mock_db).execute_query("SELECT pg_sleep(10)", timeout=5)
        assert result.error == "Query timed out (5s)"

    def test_connection_loss_raises(self, mock_db, cursor):
        cursor.execute.side_effect = DatabaseConnectionError("Connection lost")
        with pytest.raises(DatabaseConnectionError):
            PostgresExecutor(mock_db).execute_query("SELECT 1")

    def test_flush_cache_resets_session(self, mock_db):
        PostgresExecutor(mock_db).flush_cache()
        mock_db.reset_session.assert_called_once()

    def test_health_check(self, mock_db, cursor):
        assert PostgresExecutor(mock_db).health_check() is True

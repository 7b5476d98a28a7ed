"""Shared fixtures for Viewbench test suite."""

from __future__ import annotations

import os
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from viewbench.config import ViewbenchConfig
from viewbench.metrics import RunMetrics, StageTiming


def make_config(**overrides) -> ViewbenchConfig:
    """Create a ViewbenchConfig with sensible defaults for testing.

    This is the canonical config factory for tests. Prefer this over
    hand-building dicts so that new required fields are handled in one place.
    """
    base: dict = {
        "name": "test-fixture",
        "database": {
            "host": "db.test",
            "port": 5433,
            "user": "bench",
            "password": "secret",
            "dbname": "bench",
        },
    }
    base.update(overrides)
    return ViewbenchConfig(**base)


def make_run_metrics(run_id: str = "20260101-120000-abc123", **overrides) -> RunMetrics:
    """RunMetrics with a complete benchmark section, as the pipeline would save it."""
    start = datetime(2026, 1, 1, 12, 0, 0)
    data: dict = {
        "run_id": run_id,
        "deployment_name": "test-fixture",
        "start_time": start,
        "end_time": start + timedelta(seconds=42),
        "success": True,
        "scale": 1,
        "server_version": "17.2",
        "row_counts": {"course": 100, "student": 10_000, "class": 1_000, "enrollment": 100_000},
        "datagen_seconds": 3.5,
        "materialized_view_populated": True,
        "stages": [StageTiming(name="generate", elapsed_seconds=3.5)],
        "benchmark": {
            "cache": "hot",
            "iterations": 3,
            "warmup": 1,
            "scale": 1,
            "total_seconds": 1.2,
            "success": True,
            "variants": [
                {
                    "name": "raw_join",
                    "display_name": "Raw join",
                    "kind": "raw_join",
                    "object_name": None,
                    "samples": [0.100, 0.110, 0.120],
                    "min_seconds": 0.100,
                    "max_seconds": 0.120,
                    "mean_seconds": 0.110,
                    "median_seconds": 0.110,
                    "stdev_seconds": 0.01,
                    "rows_returned": 100_000,
                    "success": True,
                    "error_message": "",
                },
                {
                    "name": "view",
                    "display_name": "View",
                    "kind": "view",
                    "object_name": "student_enrollment_v",
                    "samples": [0.105, 0.112, 0.118],
                    "min_seconds": 0.105,
                    "max_seconds": 0.118,
                    "mean_seconds": 0.111667,
                    "median_seconds": 0.112,
                    "stdev_seconds": 0.0065,
                    "rows_returned": 100_000,
                    "success": True,
                    "error_message": "",
                },
                {
                    "name": "materialized_view",
                    "display_name": "Materialized view",
                    "kind": "materialized_view",
                    "object_name": "student_enrollment_mv",
                    "samples": [0.020, 0.021, 0.022],
                    "min_seconds": 0.020,
                    "max_seconds": 0.022,
                    "mean_seconds": 0.021,
                    "median_seconds": 0.021,
                    "stdev_seconds": 0.001,
                    "rows_returned": 100_000,
                    "success": True,
                    "error_message": "",
                },
            ],
            "equivalence": [
                {
                    "variant": "view",
                    "baseline": "raw_join",
                    "equivalent": True,
                    "differing_rows": 0,
                    "error": "",
                },
                {
                    "variant": "materialized_view",
                    "baseline": "raw_join",
                    "equivalent": True,
                    "differing_rows": 0,
                    "error": "",
                },
            ],
        },
        "space": [
            {
                "name": "enrollment",
                "kind": "table",
                "persistence": "permanent",
                "relation_bytes": 4_423_680,
                "total_bytes": 6_692_864,
                "index_bytes": 2_260_992,
            },
            {
                "name": "student_enrollment_v",
                "kind": "view",
                "persistence": "permanent",
                "relation_bytes": 0,
                "total_bytes": 0,
                "index_bytes": 0,
            },
            {
                "name": "student_enrollment_mv",
                "kind": "materialized view",
                "persistence": "permanent",
                "relation_bytes": 9_764_864,
                "total_bytes": 9_797_632,
                "index_bytes": 0,
            },
        ],
        "assessment": {
            "view_vs_raw_ratio": 1.018,
            "matview_speedup": 5.24,
            "view_matches_raw": True,
            "matview_fastest": True,
            "tolerance": 0.25,
        },
        "config_snapshot": {"name": "test-fixture", "scale": 1},
    }
    data.update(overrides)
    return RunMetrics(**data)


@pytest.fixture
def default_config() -> ViewbenchConfig:
    """A default ViewbenchConfig for tests that don't care about specifics."""
    return make_config()


@pytest.fixture
def mock_db():
    """MagicMock stand-in for viewbench.db.Database."""
    db = MagicMock()
    db.config = make_config().database
    db.execute.return_value = 0
    db.fetch_all.return_value = []
    db.fetch_scalar.return_value = 0
    db.server_version.return_value = "17.2"
    return db


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests that exercise container runtime calls."""
    with patch("subprocess.run") as m:
        m.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="",
        )
        yield m


@pytest.fixture
def live_db():
    """A connected Database for integration tests (VIEWBENCH_TEST_DSN)."""
    dsn = os.environ.get("VIEWBENCH_TEST_DSN")
    if not dsn:
        pytest.skip("VIEWBENCH_TEST_DSN not set")

    from psycopg.conninfo import conninfo_to_dict

    from viewbench.config import DatabaseConfig
    from viewbench.db import Database

    params = conninfo_to_dict(dsn)
    config = DatabaseConfig(
        host=params.get("host", "localhost"),
        port=int(params.get("port", 5432)),
        user=params.get("user", "postgres"),
        password=params.get("password", ""),
        dbname=params.get("dbname", "postgres"),
    )
    db = Database(config)
    db.connect()
    yield db
    db.close()

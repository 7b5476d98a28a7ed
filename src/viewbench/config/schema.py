"""Pydantic models for viewbench configuration.

The configuration is a single YAML document with one section per stage of
the benchmark: where the database lives, how to start it, how much data to
generate, and how to time the query variants.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from psycopg.conninfo import make_conninfo
from pydantic import BaseModel, Field, field_validator, model_validator

from viewbench._constants import DEFAULT_OUTPUT_DIR, PASSWORD_ENV_VAR

# =============================================================================
# Enums
# =============================================================================


class CacheMode(str, Enum):
    """Cache handling between timed runs."""

    HOT = "hot"
    COLD = "cold"


class ContainerRuntime(str, Enum):
    """Supported container runtimes."""

    DOCKER = "docker"
    PODMAN = "podman"


# =============================================================================
# Database
# =============================================================================


class DatabaseConfig(BaseModel):
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = "postgres"
    password: str = ""
    dbname: str = "postgres"
    schema_name: str = "public"
    connect_timeout: int = Field(default=10, ge=1, le=600)
    statement_timeout_ms: int = Field(
        default=0,
        ge=0,
        description="Server-side statement timeout in milliseconds (0 = unlimited)",
    )

    def get_password(self) -> str:
        """Return the configured password, falling back to the environment."""
        return self.password or os.environ.get(PASSWORD_ENV_VAR, "")

    def conninfo(self) -> str:
        """Render a libpq keyword/value connection string, quoting values as needed."""
        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "dbname": self.dbname,
            "connect_timeout": self.connect_timeout,
        }
        password = self.get_password()
        if password:
            params["password"] = password
        return make_conninfo(**params)

    def safe_conninfo(self) -> str:
        """Connection string suitable for logs (no password)."""
        return f"{self.user}@{self.host}:{self.port}/{self.dbname}"


# =============================================================================
# Container
# =============================================================================


class ContainerConfig(BaseModel):
    """Local PostgreSQL container used as the benchmark target."""

    enabled: bool = False
    runtime: ContainerRuntime = ContainerRuntime.DOCKER
    image: str = "postgres:17"
    name: str = "viewbench-postgres"
    host_port: int = Field(default=5432, ge=1, le=65535)
    password: str = Field(
        default="postgres",
        description="Value passed to the container as POSTGRES_PASSWORD",
    )
    ready_timeout: int = Field(default=60, ge=1, le=1800)


# =============================================================================
# Data generation
# =============================================================================


class DatagenConfig(BaseModel):
    """Synthetic data generation configuration.

    Row counts derive from an abstract scale factor; any table can be pinned
    to an explicit count with the per-table overrides.

    Example::

        datagen:
          scale: 10          # 1M enrollments
          enrollments: 250000
    """

    scale: int = Field(
        default=1,
        ge=1,
        le=1000,
        description="Scale factor. 1 unit = 10K students and 100K enrollments.",
    )
    seed: float | None = Field(
        default=0.42,
        description="Seed for the server RNG (setseed), in [-1, 1]. null = random.",
    )
    batch_size: int = Field(default=100_000, ge=1)

    students: int | None = Field(default=None, ge=0)
    courses: int | None = Field(default=None, ge=0)
    classes: int | None = Field(default=None, ge=0)
    enrollments: int | None = Field(default=None, ge=0)

    @field_validator("seed")
    @classmethod
    def validate_seed(cls, v: float | None) -> float | None:
        """setseed() only accepts values between -1 and 1."""
        if v is not None and not -1 <= v <= 1:
            raise ValueError("seed must be between -1 and 1")
        return v

    def overrides(self) -> dict[str, int]:
        """Per-table row count overrides that were set explicitly."""
        values = {
            "student": self.students,
            "course": self.courses,
            "class": self.classes,
            "enrollment": self.enrollments,
        }
        return {k: v for k, v in values.items() if v is not None}


# =============================================================================
# Benchmark
# =============================================================================


class BenchmarkConfig(BaseModel):
    """Benchmark execution configuration."""

    iterations: int = Field(
        default=5,
        ge=1,
        le=1000,
        description="Timed executions per variant",
    )
    warmup: int = Field(
        default=1,
        ge=0,
        le=100,
        description="Cache-warming executions per variant (timings discarded)",
    )
    cache: CacheMode = CacheMode.HOT
    variants: list[str] = Field(default_factory=list)
    verify_equivalence: bool = True
    populate_materialized_view: bool = True
    query_timeout: int = Field(default=300, ge=1)

    @field_validator("variants")
    @classmethod
    def validate_variants(cls, v: list[str]) -> list[str]:
        """Reject unknown variant names early."""
        from viewbench.benchmark.variants import VARIANT_NAMES

        unknown = [name for name in v if name not in VARIANT_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown variants: {', '.join(unknown)}. Valid: {', '.join(VARIANT_NAMES)}"
            )
        return v


# =============================================================================
# Reports
# =============================================================================


class ReportsConfig(BaseModel):
    """Report output configuration."""

    output_dir: str = DEFAULT_OUTPUT_DIR
    latency_tolerance: float = Field(
        default=0.25,
        gt=0,
        lt=1,
        description="Relative band within which view and raw join count as equal",
    )


# =============================================================================
# Root Configuration
# =============================================================================


class ViewbenchConfig(BaseModel):
    """Root configuration for viewbench."""

    name: str = Field(
        default="",
        description="Name for this benchmark setup (REQUIRED)",
    )
    description: str = ""
    version: int = 1

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    datagen: DatagenConfig = Field(default_factory=DatagenConfig)
    benchmark: BenchmarkConfig = Field(default_factory=BenchmarkConfig)
    reports: ReportsConfig = Field(default_factory=ReportsConfig)

    @model_validator(mode="after")
    def validate_required_fields(self) -> ViewbenchConfig:
        """Validate required fields are present."""
        if not self.name:
            raise ValueError("'name' is required")
        return self

    @model_validator(mode="after")
    def connect_to_container(self) -> ViewbenchConfig:
        """Point the database settings at the local container when it is enabled.

        The container publishes PostgreSQL on ``container.host_port`` and
        accepts ``container.password``. Unset database values follow those;
        explicit values that disagree are rejected.
        """
        if not self.container.enabled:
            return self

        db = self.database
        explicit = db.model_fields_set
        if "port" in explicit and db.port != self.container.host_port:
            raise ValueError(
                f"database.port ({db.port}) does not match "
                f"container.host_port ({self.container.host_port})"
            )
        db.port = self.container.host_port

        if db.password and db.password != self.container.password:
            raise ValueError("database.password does not match container.password")
        db.password = self.container.password
        return self

    def get_scale_dimensions(self):
        """Get the resolved row counts for the configured scale.

        Returns:
            ScaleDimensions with exact per-table row counts
        """
        from viewbench.config.scale import get_dimensions

        return get_dimensions(self.datagen.scale, self.datagen.overrides())

    def snapshot(self) -> dict[str, Any]:
        """Config values worth recording alongside a run (no credentials)."""
        return {
            "name": self.name,
            "database": self.database.safe_conninfo(),
            "scale": self.datagen.scale,
            "seed": self.datagen.seed,
            "iterations": self.benchmark.iterations,
            "warmup": self.benchmark.warmup,
            "cache": self.benchmark.cache.value,
            "populate_materialized_view": self.benchmark.populate_materialized_view,
        }

"""View vs materialized view vs raw join benchmark.

Runs one four-way join three ways against the university schema and
measures latency and storage for each.
"""

from .executor import PostgresExecutor, QueryExecutor, QueryExecutorResult
from .runner import (
    BenchmarkResult,
    BenchmarkRunner,
    EquivalenceResult,
    LatencyAssessment,
    VariantResult,
    assess_latency_ordering,
)
from .space import ObjectSize, SpaceInspector, format_bytes
from .variants import QUERY_VARIANTS, VARIANT_NAMES, QueryVariant, QueryVariantRegistry

__all__ = [
    "QUERY_VARIANTS",
    "VARIANT_NAMES",
    "BenchmarkResult",
    "BenchmarkRunner",
    "EquivalenceResult",
    "LatencyAssessment",
    "ObjectSize",
    "PostgresExecutor",
    "QueryExecutor",
    "QueryExecutorResult",
    "QueryVariant",
    "QueryVariantRegistry",
    "SpaceInspector",
    "VariantResult",
    "assess_latency_ordering",
    "format_bytes",
]

"""Benchmark runner for viewbench.

Times each query variant under the same conditions:

1. ``warmup`` executions whose timings are discarded (they pull the base
   tables or the materialized view into the buffer cache);
2. ``iterations`` timed executions, each optionally preceded by a session
   reset (``cache="cold"``).

It also checks that every variant returns the same multiset of rows as the
raw join, and classifies the latency ordering the comparison is about.
"""

from __future__ import annotations

import logging
import statistics
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .variants import RAW_JOIN, QueryVariant, QueryVariantRegistry

if TYPE_CHECKING:
    from viewbench.config.schema import ViewbenchConfig
    from viewbench.db import Database

    from .executor import QueryExecutor

logger = logging.getLogger(__name__)


@dataclass
class VariantResult:
    """Timings of one query variant."""

    variant: QueryVariant
    samples: list[float] = field(default_factory=list)
    rows_returned: int = 0
    success: bool = True
    error_message: str = ""

    @property
    def min_seconds(self) -> float:
        return min(self.samples) if self.samples else 0.0

    @property
    def max_seconds(self) -> float:
        return max(self.samples) if self.samples else 0.0

    @property
    def mean_seconds(self) -> float:
        return statistics.fmean(self.samples) if self.samples else 0.0

    @property
    def median_seconds(self) -> float:
        return statistics.median(self.samples) if self.samples else 0.0

    @property
    def stdev_seconds(self) -> float:
        return statistics.stdev(self.samples) if len(self.samples) > 1 else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return {
            "name": self.variant.name,
            "display_name": self.variant.display_name,
            "kind": self.variant.kind,
            "object_name": self.variant.object_name,
            "samples": [round(s, 6) for s in self.samples],
            "min_seconds": round(self.min_seconds, 6),
            "max_seconds": round(self.max_seconds, 6),
            "mean_seconds": round(self.mean_seconds, 6),
            "median_seconds": round(self.median_seconds, 6),
            "stdev_seconds": round(self.stdev_seconds, 6),
            "rows_returned": self.rows_returned,
            "success": self.success,
            "error_message": self.error_message,
        }


@dataclass
class EquivalenceResult:
    """Whether a variant's result set matches the baseline's."""

    variant: str
    baseline: str
    equivalent: bool
    differing_rows: int = 0
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return {
            "variant": self.variant,
            "baseline": self.baseline,
            "equivalent": self.equivalent,
            "differing_rows": self.differing_rows,
            "error": self.error,
        }


@dataclass
class BenchmarkResult:
    """Result of a full benchmark run."""

    cache: str  # "hot" or "cold"
    iterations: int
    warmup: int
    scale: int
    variants: list[VariantResult] = field(default_factory=list)
    equivalence: list[EquivalenceResult] = field(default_factory=list)
    total_seconds: float = 0.0

    def get(self, name: str) -> VariantResult | None:
        """Return the result for a variant name, if it was run."""
        for r in self.variants:
            if r.variant.name == name:
                return r
        return None

    @property
    def success(self) -> bool:
        return all(r.success for r in self.variants) and all(
            e.equivalent for e in self.equivalence
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return {
            "cache": self.cache,
            "iterations": self.iterations,
            "warmup": self.warmup,
            "scale": self.scale,
            "total_seconds": round(self.total_seconds, 3),
            "success": self.success,
            "variants": [r.to_dict() for r in self.variants],
            "equivalence": [e.to_dict() for e in self.equivalence],
        }


@dataclass
class LatencyAssessment:
    """How the measured latencies compare to the expected ordering.

    Expected: view ~ raw join (the view is re-planned into the same join),
    materialized view << both (it scans a stored result).
    """

    view_vs_raw_ratio: float | None = None
    matview_speedup: float | None = None
    view_matches_raw: bool | None = None
    matview_fastest: bool | None = None
    tolerance: float = 0.25

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return {
            "view_vs_raw_ratio": (
                round(self.view_vs_raw_ratio, 3) if self.view_vs_raw_ratio is not None else None
            ),
            "matview_speedup": (
                round(self.matview_speedup, 2) if self.matview_speedup is not None else None
            ),
            "view_matches_raw": self.view_matches_raw,
            "matview_fastest": self.matview_fastest,
            "tolerance": self.tolerance,
        }


def assess_latency_ordering(result: BenchmarkResult, tolerance: float = 0.25) -> LatencyAssessment:
    """Compare median latencies of the variants that succeeded.

    Args:
        result: Benchmark result
        tolerance: Relative band around 1.0 within which view and raw join
            count as equal

    Returns:
        LatencyAssessment; fields stay None when a variant is missing
    """
    assessment = LatencyAssessment(tolerance=tolerance)

    def median(name: str) -> float | None:
        r = result.get(name)
        if r is None or not r.success or not r.samples:
            return None
        return r.median_seconds

    raw = median("raw_join")
    view = median("view")
    matview = median("materialized_view")

    if raw and view is not None:
        assessment.view_vs_raw_ratio = view / raw
        assessment.view_matches_raw = abs(assessment.view_vs_raw_ratio - 1.0) <= tolerance

    if matview:
        others = [t for t in (raw, view) if t is not None]
        if others:
            assessment.matview_speedup = min(others) / matview
            assessment.matview_fastest = all(matview < t for t in others)

    return assessment


class BenchmarkRunner:
    """Runs the query variants against the configured database."""

    def __init__(
        self,
        config: ViewbenchConfig,
        db: Database,
        executor: QueryExecutor | None = None,
        registry: QueryVariantRegistry | None = None,
    ):
        """Initialize benchmark runner.

        Args:
            config: Viewbench configuration
            db: Open database connection
            executor: Query executor (default: PostgresExecutor on ``db``)
            registry: Variant registry (default: all three variants)
        """
        from .executor import PostgresExecutor

        self.config = config
        self.db = db
        self.executor = executor or PostgresExecutor(db)
        self.registry = registry or QueryVariantRegistry()

    def run(
        self,
        iterations: int | None = None,
        warmup: int | None = None,
        cache: str | None = None,
        variants: list[str] | None = None,
        verify_equivalence: bool | None = None,
    ) -> BenchmarkResult:
        """Run the benchmark. Arguments override config values.

        Args:
            iterations: Timed executions per variant
            warmup: Discarded executions per variant
            cache: "hot" or "cold"
            variants: Variant names to run (default: config, then all)
            verify_equivalence: Compare result sets against the raw join

        Returns:
            BenchmarkResult
        """
        bench_cfg = self.config.benchmark

        effective_iterations = iterations if iterations is not None else bench_cfg.iterations
        effective_warmup = warmup if warmup is not None else bench_cfg.warmup
        effective_cache = cache or bench_cfg.cache.value
        effective_verify = (
            verify_equivalence if verify_equivalence is not None else bench_cfg.verify_equivalence
        )

        if effective_cache not in ("hot", "cold"):
            raise ValueError(f"Unknown cache mode: {effective_cache}")
        if effective_iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {effective_iterations}")
        if effective_warmup < 0:
            raise ValueError(f"warmup must be >= 0, got {effective_warmup}")

        selected = self.registry.variants(variants or bench_cfg.variants or None)

        result = BenchmarkResult(
            cache=effective_cache,
            iterations=effective_iterations,
            warmup=effective_warmup,
            scale=self.config.datagen.scale,
        )

        start = time.monotonic()
        for variant in selected:
            result.variants.append(
                self._run_variant(variant, effective_iterations, effective_warmup, effective_cache)
            )

        if effective_verify:
            result.equivalence = self.check_equivalence(
                [v for v in selected if v.name != RAW_JOIN.name]
            )

        result.total_seconds = time.monotonic() - start
        return result

    def _run_variant(
        self,
        variant: QueryVariant,
        iterations: int,
        warmup: int,
        cache: str,
    ) -> VariantResult:
        """Warm up, then time ``iterations`` executions of one variant."""
        timeout = self.config.benchmark.query_timeout
        result = VariantResult(variant=variant)

        for i in range(warmup):
            warm = self.executor.execute_query(variant.sql, timeout=timeout)
            logger.debug("%s warm-up %d: %.4fs", variant.name, i + 1, warm.duration_seconds)
            if not warm.success:
                result.success = False
                result.error_message = warm.error or ""
                return result

        for i in range(iterations):
            if cache == "cold":
                self.executor.flush_cache()
            run = self.executor.execute_query(variant.sql, timeout=timeout)
            if not run.success:
                result.success = False
                result.error_message = run.error or ""
                break
            result.samples.append(run.duration_seconds)
            result.rows_returned = run.rows_returned
            logger.debug("%s run %d: %.4fs", variant.name, i + 1, run.duration_seconds)

        logger.info(
            "%s: median %.4fs over %d runs (%d rows)",
            variant.name,
            result.median_seconds,
            len(result.samples),
            result.rows_returned,
        )
        return result

    def check_equivalence(
        self,
        variants: list[QueryVariant],
        baseline: QueryVariant = RAW_JOIN,
    ) -> list[EquivalenceResult]:
        """Count rows in the symmetric multiset difference against the baseline.

        ``EXCEPT ALL`` keeps duplicates, so two result sets are equivalent
        exactly when both differences are empty.
        """
        from viewbench.db import QueryError

        results: list[EquivalenceResult] = []
        for variant in variants:
            diff_sql = (
                f"SELECT count(*) FROM (\n"
                f"  (({baseline.sql}) EXCEPT ALL ({variant.sql}))\n"
                f"  UNION ALL\n"
                f"  (({variant.sql}) EXCEPT ALL ({baseline.sql}))\n"
                f") AS diff"
            )
            try:
                differing = int(self.db.fetch_scalar(diff_sql))
            except QueryError as e:
                results.append(
                    EquivalenceResult(
                        variant=variant.name,
                        baseline=baseline.name,
                        equivalent=False,
                        error=str(e)[:200],
                    )
                )
                continue

            if differing:
                logger.warning(
                    "%s differs from %s by %d rows", variant.name, baseline.name, differing
                )
            results.append(
                EquivalenceResult(
                    variant=variant.name,
                    baseline=baseline.name,
                    equivalent=differing == 0,
                    differing_rows=differing,
                )
            )
        return results

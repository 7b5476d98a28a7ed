"""End-to-end benchmark pipeline.

Runs every step of a benchmark in order and records one StageTiming per
stage::

    provision -> generate -> views [-> refresh] -> benchmark -> space -> report

The metrics of a run are saved even when a stage fails, so a partial run can
still be listed and inspected.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from viewbench._constants import MATVIEW_NAME, TABLES, VIEW_NAME
from viewbench.benchmark import (
    BenchmarkRunner,
    QueryVariantRegistry,
    SpaceInspector,
    assess_latency_ordering,
)
from viewbench.datagen import DataGenerator
from viewbench.metrics import MetricsStorage, RunMetrics, StageTiming, generate_run_id
from viewbench.reports import ReportGenerator
from viewbench.schema import SchemaProvisioner

if TYPE_CHECKING:
    from viewbench.config import ViewbenchConfig
    from viewbench.db import Database

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""

    metrics: RunMetrics
    report_path: Path | None = None
    stages: list[StageTiming] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.metrics.success


class BenchmarkPipeline:
    """Provision, load, benchmark and report in one pass."""

    def __init__(
        self,
        config: ViewbenchConfig,
        db: Database,
        storage: MetricsStorage | None = None,
        registry: QueryVariantRegistry | None = None,
    ):
        self.config = config
        self.db = db
        self.storage = storage or MetricsStorage.for_output_dir(config.reports.output_dir)
        self.registry = registry or QueryVariantRegistry()

    def run(
        self,
        skip_generate: bool = False,
        iterations: int | None = None,
        warmup: int | None = None,
        cache: str | None = None,
        variants: list[str] | None = None,
    ) -> PipelineResult:
        """Execute all stages.

        Args:
            skip_generate: Reuse the tables and rows already in the database
            iterations: Override ``benchmark.iterations``
            warmup: Override ``benchmark.warmup``
            cache: Override ``benchmark.cache``
            variants: Override ``benchmark.variants``

        Returns:
            PipelineResult with the saved metrics and report path

        Raises:
            Whatever the failing stage raised, after the partial metrics
            have been saved
        """
        cfg = self.config
        metrics = RunMetrics(
            run_id=generate_run_id(),
            deployment_name=cfg.name,
            start_time=datetime.now(),
            scale=cfg.datagen.scale,
            config_snapshot=cfg.snapshot(),
        )
        result = PipelineResult(metrics=metrics, stages=metrics.stages)
        logger.info("Starting run %s against %s", metrics.run_id, cfg.database.safe_conninfo())

        try:
            metrics.server_version = self.db.server_version()

            if skip_generate:
                metrics.row_counts = self._current_row_counts()
            else:
                with self._stage(metrics, "provision"):
                    SchemaProvisioner(self.db).create()

                dims = cfg.get_scale_dimensions()
                with self._stage(metrics, "generate"):
                    generator = DataGenerator(
                        self.db, seed=cfg.datagen.seed, batch_size=cfg.datagen.batch_size
                    )
                    datagen = generator.generate(dims)
                    metrics.row_counts = generator.verify_counts(dims)
                    metrics.datagen_seconds = datagen.elapsed_seconds

            populate = cfg.benchmark.populate_materialized_view
            with self._stage(metrics, "views"):
                creation = self.registry.create_objects(self.db, populate=populate)
                metrics.materialized_view_populated = creation.populated
                metrics.materialized_view_create_seconds = creation.materialized_view_seconds

            if not populate:
                with self._stage(metrics, "refresh"):
                    unpopulated = SpaceInspector(self.db).size_of(MATVIEW_NAME)
                    if unpopulated is not None:
                        logger.info(
                            "%s before refresh: %s", MATVIEW_NAME, unpopulated.pretty_size
                        )
                    metrics.materialized_view_create_seconds += (
                        self.registry.refresh_materialized_view(self.db)
                    )

            with self._stage(metrics, "benchmark"):
                runner = BenchmarkRunner(cfg, self.db, registry=self.registry)
                bench = runner.run(
                    iterations=iterations, warmup=warmup, cache=cache, variants=variants
                )
                metrics.benchmark = bench.to_dict()
                metrics.assessment = assess_latency_ordering(
                    bench, tolerance=cfg.reports.latency_tolerance
                ).to_dict()

            with self._stage(metrics, "space"):
                sizes = SpaceInspector(self.db).inspect([*TABLES, VIEW_NAME, MATVIEW_NAME])
                metrics.space = [s.to_dict() for s in sizes]

            metrics.success = bench.success
        except Exception:
            metrics.success = False
            metrics.end_time = datetime.now()
            self.storage.save_run(metrics)
            logger.error("Run %s failed; partial metrics saved", metrics.run_id)
            raise

        metrics.end_time = datetime.now()
        self.storage.save_run(metrics)

        with self._stage(metrics, "report"):
            result.report_path = ReportGenerator(self.storage.metrics_dir).generate_report(
                metrics.run_id
            )
        # Persist the report stage timing as well.
        self.storage.save_run(metrics)

        return result

    @contextmanager
    def _stage(self, metrics: RunMetrics, name: str) -> Iterator[StageTiming]:
        """Time a stage and append it to ``metrics.stages``."""
        stage = StageTiming(name=name)
        metrics.stages.append(stage)
        logger.info("Stage %s started", name)
        start = time.monotonic()
        try:
            yield stage
        except Exception as e:
            stage.success = False
            stage.error_message = str(e)[:200]
            raise
        finally:
            stage.elapsed_seconds = time.monotonic() - start
        logger.info("Stage %s finished in %.2fs", name, stage.elapsed_seconds)

    def _current_row_counts(self) -> dict[str, int]:
        return {t: int(self.db.fetch_scalar(f"SELECT count(*) FROM {t}")) for t in TABLES}

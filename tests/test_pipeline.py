"""Tests for the end-to-end pipeline with the database layer mocked."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tests.conftest import make_config
from viewbench.benchmark import BenchmarkResult, ObjectSize, VariantResult
from viewbench.benchmark.variants import MATERIALIZED_VIEW, RAW_JOIN, VIEW, ObjectCreation
from viewbench.datagen import DatagenError, DatagenResult
from viewbench.metrics import MetricsStorage
from viewbench.pipeline import BenchmarkPipeline


def _bench_result() -> BenchmarkResult:
    result = BenchmarkResult(cache="hot", iterations=2, warmup=1, scale=1)
    result.variants = [
        VariantResult(variant=RAW_JOIN, samples=[0.10, 0.12], rows_returned=100),
        VariantResult(variant=VIEW, samples=[0.11, 0.12], rows_returned=100),
        VariantResult(variant=MATERIALIZED_VIEW, samples=[0.01, 0.02], rows_returned=100),
    ]
    return result


@pytest.fixture
def components():
    """Patch the stage components used by the pipeline."""
    with (
        patch("viewbench.pipeline.SchemaProvisioner") as provisioner,
        patch("viewbench.pipeline.DataGenerator") as generator,
        patch("viewbench.pipeline.BenchmarkRunner") as runner,
        patch("viewbench.pipeline.SpaceInspector") as inspector,
    ):
        generator.return_value.generate.return_value = DatagenResult(
            row_counts={"course": 100}, elapsed_seconds=1.5
        )
        generator.return_value.verify_counts.return_value = {
            "course": 100,
            "student": 10_000,
            "class": 1_000,
            "enrollment": 100_000,
        }
        runner.return_value.run.return_value = _bench_result()
        inspector.return_value.inspect.return_value = [
            ObjectSize("student_enrollment_mv", "materialized view", "permanent", 8192, 8192, 0)
        ]
        inspector.return_value.size_of.return_value = ObjectSize(
            "student_enrollment_mv", "materialized view", "permanent", 0, 0, 0
        )
        yield {
            "provisioner": provisioner,
            "generator": generator,
            "runner": runner,
            "inspector": inspector,
        }


@pytest.fixture
def registry():
    reg = MagicMock()
    reg.create_objects.return_value = ObjectCreation(
        view_seconds=0.01, materialized_view_seconds=0.5, populated=True
    )
    reg.refresh_materialized_view.return_value = 0.4
    return reg


class TestBenchmarkPipeline:
    def test_full_run(self, tmp_path, mock_db, components, registry):
        storage = MetricsStorage(tmp_path / "runs")
        result = BenchmarkPipeline(make_config(), mock_db, storage=storage, registry=registry).run()

        assert result.success
        assert [s.name for s in result.stages] == [
            "provision",
            "generate",
            "views",
            "benchmark",
            "space",
            "report",
        ]
        assert all(s.success for s in result.stages)

        m = result.metrics
        assert m.server_version == "17.2"
        assert m.row_counts["enrollment"] == 100_000
        assert m.datagen_seconds == 1.5
        assert m.materialized_view_populated is True
        assert m.benchmark["variants"][2]["name"] == "materialized_view"
        assert m.assessment["matview_fastest"] is True
        assert m.space[0]["name"] == "student_enrollment_mv"

        assert result.report_path == tmp_path / "runs" / f"run-{m.run_id}" / "report.md"
        assert result.report_path.exists()
        saved = storage.load_run(m.run_id)
        assert saved is not None
        assert saved.success
        assert [s.name for s in saved.stages][-1] == "report"

    def test_generator_uses_config(self, tmp_path, mock_db, components, registry):
        cfg = make_config(datagen={"seed": 0.7, "batch_size": 500})
        BenchmarkPipeline(
            cfg, mock_db, storage=MetricsStorage(tmp_path), registry=registry
        ).run()
        components["generator"].assert_called_once_with(mock_db, seed=0.7, batch_size=500)

    def test_skip_generate(self, tmp_path, mock_db, components, registry):
        mock_db.fetch_scalar.return_value = 5
        result = BenchmarkPipeline(
            make_config(), mock_db, storage=MetricsStorage(tmp_path), registry=registry
        ).run(skip_generate=True)

        components["provisioner"].assert_not_called()
        components["generator"].assert_not_called()
        assert "generate" not in [s.name for s in result.stages]
        assert result.metrics.row_counts == {
            "course": 5,
            "student": 5,
            "class": 5,
            "enrollment": 5,
        }

    def test_no_data_refreshes_before_benchmark(self, tmp_path, mock_db, components, registry):
        registry.create_objects.return_value = ObjectCreation(
            materialized_view_seconds=0.01, populated=False
        )
        cfg = make_config(benchmark={"populate_materialized_view": False})
        result = BenchmarkPipeline(
            cfg, mock_db, storage=MetricsStorage(tmp_path), registry=registry
        ).run()

        registry.create_objects.assert_called_once_with(mock_db, populate=False)
        registry.refresh_materialized_view.assert_called_once_with(mock_db)
        names = [s.name for s in result.stages]
        assert names.index("refresh") < names.index("benchmark")
        assert result.metrics.materialized_view_populated is False

    def test_overrides_passed_to_runner(self, tmp_path, mock_db, components, registry):
        BenchmarkPipeline(
            make_config(), mock_db, storage=MetricsStorage(tmp_path), registry=registry
        ).run(iterations=9, warmup=0, cache="cold", variants=["view"])
        components["runner"].return_value.run.assert_called_once_with(
            iterations=9, warmup=0, cache="cold", variants=["view"]
        )

    def test_failure_saves_partial_metrics(self, tmp_path, mock_db, components, registry):
        components["generator"].return_value.verify_counts.side_effect = DatagenError(
            "Row count mismatch: enrollment: expected 100000, found 1"
        )
        storage = MetricsStorage(tmp_path)
        pipeline = BenchmarkPipeline(make_config(), mock_db, storage=storage, registry=registry)

        with pytest.raises(DatagenError):
            pipeline.run()

        [summary] = storage.list_runs()
        saved = storage.load_run(summary["run_id"])
        assert saved is not None
        assert saved.success is False
        assert saved.end_time is not None
        failed = saved.stages[-1]
        assert failed.name == "generate"
        assert failed.success is False
        assert "Row count mismatch" in failed.error_message
        registry.create_objects.assert_not_called()

    def test_failed_variant_marks_run_unsuccessful(
        self, tmp_path, mock_db, components, registry
    ):
        bench = _bench_result()
        bench.variants[2].success = False
        components["runner"].return_value.run.return_value = bench
        result = BenchmarkPipeline(
            make_config(), mock_db, storage=MetricsStorage(tmp_path), registry=registry
        ).run()
        assert result.success is False
        assert result.report_path is not None

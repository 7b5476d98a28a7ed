"""CLI surface tests using typer.testing.CliRunner.

These tests exercise the CLI entry points through Typer's test harness;
database access is mocked, so no PostgreSQL server is required.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tests.conftest import make_run_metrics
from viewbench import __version__
from viewbench.benchmark import ObjectSize
from viewbench.cli import app
from viewbench.config import load_config
from viewbench.db import DatabaseConnectionError
from viewbench.metrics import MetricsStorage
from viewbench.schema import ProvisionResult

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    """A valid viewbench.yaml in the working directory."""
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["init", "--name", "cli-test"])
    assert result.exit_code == 0
    return tmp_path / "viewbench.yaml"


# =============================================================================
# version command
# =============================================================================


class TestVersionCommand:
    """Tests for 'viewbench version'."""

    def test_version_output(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_verbose_flag_accepted(self):
        result = runner.invoke(app, ["--verbose", "version"])
        assert result.exit_code == 0


# =============================================================================
# init command
# =============================================================================


class TestInitCommand:
    """Tests for 'viewbench init'."""

    def test_init_creates_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "viewbench.yaml").exists()
        assert load_config(tmp_path / "viewbench.yaml").name == "my-viewbench"

    def test_init_custom_values(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "out.yaml"
        result = runner.invoke(
            app,
            [
                "init",
                "--output",
                str(output),
                "--name",
                "campus",
                "--scale",
                "20",
                "--host",
                "pg.internal",
                "--port",
                "6543",
            ],
        )
        assert result.exit_code == 0
        cfg = load_config(output)
        assert cfg.name == "campus"
        assert cfg.datagen.scale == 20
        assert cfg.database.host == "pg.internal"
        assert cfg.database.port == 6543
        assert cfg.container.host_port == 5432

    def test_init_refuses_overwrite(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "existing.yaml"
        output.write_text("old content")
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_force_overwrites(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "existing.yaml"
        output.write_text("old content")
        result = runner.invoke(app, ["init", "--output", str(output), "--force"])
        assert result.exit_code == 0
        assert "name:" in output.read_text()


# =============================================================================
# Config resolution
# =============================================================================


class TestConfigResolution:
    @pytest.mark.parametrize("cmd", ["provision", "generate", "views", "benchmark", "run"])
    def test_missing_config(self, cmd, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, [cmd, "nonexistent.yaml"])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_auto_discover_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["space"])
        assert result.exit_code == 1
        assert "viewbench.yaml" in result.output

    def test_invalid_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "viewbench.yaml").write_text("name: x\nbenchmark:\n  iterations: 0\n")
        result = runner.invoke(app, ["benchmark"])
        assert result.exit_code == 1
        assert "benchmark.iterations" in result.output

    @pytest.mark.parametrize(
        "cmd",
        [
            "init",
            "up",
            "down",
            "provision",
            "generate",
            "views",
            "refresh",
            "benchmark",
            "space",
            "run",
            "report",
            "results",
        ],
    )
    def test_command_help(self, cmd):
        result = runner.invoke(app, [cmd, "--help"])
        assert result.exit_code == 0
        assert "usage" in result.output.lower()


# =============================================================================
# Database commands (Database mocked)
# =============================================================================


class TestDatabaseCommands:
    def test_connection_failure(self, config_path):
        with patch("viewbench.cli.Database") as db_cls:
            db_cls.return_value.connect.side_effect = DatabaseConnectionError("refused")
            result = runner.invoke(app, ["provision"])
        assert result.exit_code == 1
        assert "Cannot connect" in result.output

    def test_provision(self, config_path):
        with (
            patch("viewbench.cli.Database") as db_cls,
            patch("viewbench.schema.SchemaProvisioner") as prov_cls,
        ):
            prov_cls.return_value.create.return_value = ProvisionResult(
                created=["course", "student", "class", "enrollment"]
            )
            result = runner.invoke(app, ["provision", "--drop"])
        assert result.exit_code == 0
        prov_cls.return_value.create.assert_called_once_with(drop_existing=True)
        db_cls.return_value.close.assert_called_once()
        assert "enrollment" in result.output

    def test_views_no_data(self, config_path):
        from viewbench.benchmark.variants import ObjectCreation

        with (
            patch("viewbench.cli.Database"),
            patch("viewbench.benchmark.QueryVariantRegistry") as reg_cls,
            patch("viewbench.benchmark.SpaceInspector") as insp_cls,
        ):
            reg_cls.return_value.create_objects.return_value = ObjectCreation(populated=False)
            insp_cls.return_value.list_views.return_value = [
                ObjectSize("student_enrollment_mv", "materialized view", "permanent", 0, 0, 0)
            ]
            result = runner.invoke(app, ["views", "--no-data"])
        assert result.exit_code == 0
        assert reg_cls.return_value.create_objects.call_args.kwargs["populate"] is False
        assert "WITH NO DATA" in result.output
        assert "viewbench refresh" in result.output

    def test_views_drop(self, config_path):
        with (
            patch("viewbench.cli.Database"),
            patch("viewbench.benchmark.QueryVariantRegistry") as reg_cls,
        ):
            result = runner.invoke(app, ["views", "--drop"])
        assert result.exit_code == 0
        reg_cls.return_value.drop_objects.assert_called_once()
        reg_cls.return_value.create_objects.assert_not_called()

    def test_refresh_missing_matview(self, config_path):
        with (
            patch("viewbench.cli.Database"),
            patch("viewbench.benchmark.QueryVariantRegistry") as reg_cls,
        ):
            reg_cls.return_value.is_materialized_view_populated.return_value = None
            result = runner.invoke(app, ["refresh"])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_generate_invalid_scale(self, config_path):
        result = runner.invoke(app, ["generate", "--scale", "0"])
        assert result.exit_code == 1
        assert "Scale must be >= 1" in result.output

    def test_benchmark_unknown_variant(self, config_path):
        with patch("viewbench.cli.Database"):
            result = runner.invoke(app, ["benchmark", "--variant", "bogus"])
        assert result.exit_code == 1
        assert "Unknown variants" in result.output

    def test_space_empty(self, config_path):
        with (
            patch("viewbench.cli.Database"),
            patch("viewbench.benchmark.SpaceInspector") as insp_cls,
        ):
            insp_cls.return_value.inspect.return_value = []
            result = runner.invoke(app, ["space"])
        assert result.exit_code == 0
        assert "No benchmark objects found" in result.output


# =============================================================================
# report / results
# =============================================================================


class TestReportCommand:
    def test_list_empty(self, tmp_path):
        result = runner.invoke(app, ["report", "--metrics", str(tmp_path), "--list"])
        assert result.exit_code == 0
        assert "No runs found" in result.output

    def test_list_runs(self, tmp_path):
        MetricsStorage(tmp_path).save_run(make_run_metrics("r1"))
        result = runner.invoke(app, ["report", "--metrics", str(tmp_path), "--list"])
        assert result.exit_code == 0
        assert "r1" in result.output

    def test_generate(self, tmp_path):
        MetricsStorage(tmp_path).save_run(make_run_metrics("r1"))
        result = runner.invoke(app, ["report", "--metrics", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / "run-r1" / "report.md").exists()

    def test_unknown_run(self, tmp_path):
        result = runner.invoke(app, ["report", "--metrics", str(tmp_path), "--run", "nope"])
        assert result.exit_code == 1
        assert "Run not found" in result.output

    def test_uses_config_output_dir(self, config_path, tmp_path):
        with open(config_path, "a") as f:
            f.write("reports:\n  output_dir: custom-out\n")
        MetricsStorage(tmp_path / "custom-out" / "runs").save_run(make_run_metrics("r1"))

        result = runner.invoke(app, ["report", "--list"])
        assert result.exit_code == 0
        assert "r1" in result.output

        result = runner.invoke(app, ["report", str(config_path)])
        assert result.exit_code == 0
        assert (tmp_path / "custom-out" / "runs" / "run-r1" / "report.md").exists()

    def test_metrics_option_overrides_config(self, config_path, tmp_path):
        other = tmp_path / "elsewhere"
        MetricsStorage(other).save_run(make_run_metrics("r2"))
        result = runner.invoke(app, ["report", "--metrics", str(other), "--list"])
        assert result.exit_code == 0
        assert "r2" in result.output


class TestResultsCommand:
    def test_no_runs(self, tmp_path):
        result = runner.invoke(app, ["results", "--metrics", str(tmp_path)])
        assert result.exit_code == 1
        assert "No run found" in result.output

    def test_table(self, tmp_path):
        MetricsStorage(tmp_path).save_run(make_run_metrics("r1"))
        result = runner.invoke(app, ["results", "--metrics", str(tmp_path)])
        assert result.exit_code == 0
        assert "run r1" in result.output
        assert "Materialized view speedup" in result.output

    def test_json(self, tmp_path):
        MetricsStorage(tmp_path).save_run(make_run_metrics("r1"))
        result = runner.invoke(
            app, ["results", "--metrics", str(tmp_path), "--format", "json"]
        )
        assert result.exit_code == 0
        assert '"run_id": "r1"' in result.output

    def test_uses_config_output_dir(self, config_path, tmp_path):
        with open(config_path, "a") as f:
            f.write("reports:\n  output_dir: custom-out\n")
        MetricsStorage(tmp_path / "custom-out" / "runs").save_run(make_run_metrics("r1"))
        result = runner.invoke(app, ["results", "--format", "json"])
        assert result.exit_code == 0
        assert '"run_id": "r1"' in result.output

    def test_run_without_benchmark(self, tmp_path):
        MetricsStorage(tmp_path).save_run(make_run_metrics("r1", benchmark=None))
        result = runner.invoke(app, ["results", "--metrics", str(tmp_path)])
        assert result.exit_code == 1
        assert "does not have benchmark data" in result.output

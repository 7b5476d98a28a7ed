"""Metrics storage for viewbench.

Persists metrics to local JSON files, one subdirectory per run::

    viewbench-output/
      runs/
        run-20261016-210211-abc123/
          metrics.json
          report.md          # written by ReportGenerator
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from viewbench._constants import DEFAULT_OUTPUT_DIR

from .collector import RunMetrics

logger = logging.getLogger(__name__)

_DEFAULT_RUNS_DIR = str(Path(DEFAULT_OUTPUT_DIR) / "runs")


class MetricsStorage:
    """Stores run metrics as ``<runs_dir>/run-<id>/metrics.json``."""

    def __init__(self, metrics_dir: Path | str = _DEFAULT_RUNS_DIR):
        """Initialize metrics storage.

        Args:
            metrics_dir: Directory for storing metrics (parent of per-run dirs)
        """
        self.metrics_dir = Path(metrics_dir)
        self.metrics_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def for_output_dir(cls, output_dir: Path | str) -> MetricsStorage:
        """Storage rooted at ``<output_dir>/runs``."""
        return cls(Path(output_dir) / "runs")

    def run_dir(self, run_id: str) -> Path:
        """Return the per-run directory for *run_id*, creating it if needed."""
        d = self.metrics_dir / f"run-{run_id}"
        d.mkdir(parents=True, exist_ok=True)
        return d

    def save_run(self, metrics: RunMetrics) -> Path:
        """Save run metrics.

        Returns:
            Path to saved file
        """
        filepath = self.run_dir(metrics.run_id) / "metrics.json"

        with open(filepath, "w") as f:
            json.dump(metrics.to_dict(), f, indent=2)

        logger.info(f"Saved metrics to {filepath}")
        return filepath

    def load_run(self, run_id: str) -> RunMetrics | None:
        """Load run metrics, or None if the run does not exist."""
        path = self.metrics_dir / f"run-{run_id}" / "metrics.json"
        if not path.exists():
            return None
        with open(path) as f:
            return RunMetrics.from_dict(json.load(f))

    def list_runs(self) -> list[dict[str, Any]]:
        """List all saved runs.

        Returns:
            List of run summaries (most recent first)
        """
        runs = []
        for run_dir in self.metrics_dir.iterdir():
            metrics_file = run_dir / "metrics.json"
            if run_dir.is_dir() and run_dir.name.startswith("run-") and metrics_file.exists():
                summary = self._read_run_summary(metrics_file)
                if summary:
                    runs.append(summary)

        runs.sort(key=lambda r: r.get("start_time") or "", reverse=True)
        return runs

    @staticmethod
    def _read_run_summary(filepath: Path) -> dict[str, Any] | None:
        """Read a metrics JSON and return a summary dict."""
        try:
            with open(filepath) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.warning("Skipping unreadable metrics file %s", filepath)
            return None

        medians = {}
        for v in (data.get("benchmark") or {}).get("variants", []):
            medians[v.get("name")] = v.get("median_seconds")

        return {
            "run_id": data.get("run_id"),
            "deployment_name": data.get("deployment_name"),
            "start_time": data.get("start_time"),
            "success": data.get("success"),
            "total_elapsed_seconds": data.get("total_elapsed_seconds"),
            "scale": data.get("scale"),
            "medians": medians,
        }

    def get_latest_run(self) -> RunMetrics | None:
        """Get the most recent run, or None if no runs exist."""
        runs = self.list_runs()
        if not runs:
            return None
        return self.load_run(runs[0]["run_id"])

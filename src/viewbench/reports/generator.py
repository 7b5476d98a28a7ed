"""Report generation for viewbench.

Creates Markdown reports from stored run metrics. Reports are written into
the per-run directory managed by :class:`MetricsStorage`::

    viewbench-output/runs/run-<id>/report.md
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from viewbench.benchmark.space import format_bytes
from viewbench.metrics import MetricsStorage, RunMetrics

logger = logging.getLogger(__name__)


def _format_ms(seconds: float | None) -> str:
    """Format a duration given in seconds as milliseconds, or '-'."""
    if seconds is None:
        return "-"
    return f"{seconds * 1000:.2f}"


def _cell(value: str) -> str:
    """Fit a value into one table cell: single line, pipes escaped."""
    return " ".join(str(value).split()).replace("|", "\\|")


def _table(headers: list[str], rows: list[list[str]]) -> str:
    """Render a GitHub-flavoured Markdown table."""
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(_cell(c) for c in row) + " |")
    return "\n".join(lines)


class ReportGenerator:
    """Generates Markdown benchmark reports."""

    def __init__(self, metrics_dir: Path | str | None = None):
        """Initialize report generator.

        Args:
            metrics_dir: Directory containing run subdirectories.
                         Defaults to MetricsStorage default.
        """
        if metrics_dir is not None:
            self.storage = MetricsStorage(metrics_dir)
        else:
            self.storage = MetricsStorage()

    def generate_report(self, run_id: str | None = None) -> Path:
        """Write ``report.md`` for a run.

        Args:
            run_id: Run ID to report on (default: latest)

        Returns:
            Path to generated report

        Raises:
            ValueError: If the run (or any run) cannot be found
        """
        if run_id:
            metrics = self.storage.load_run(run_id)
            if not metrics:
                raise ValueError(f"Run not found: {run_id}")
        else:
            metrics = self.storage.get_latest_run()
            if not metrics:
                raise ValueError("No runs found")

        filepath = self.storage.run_dir(metrics.run_id) / "report.md"
        filepath.write_text(self.render_markdown(metrics))
        logger.info(f"Generated report: {filepath}")
        return filepath

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_markdown(self, metrics: RunMetrics) -> str:
        """Render the full report."""
        sections = [
            self._render_header(metrics),
            self._render_comparison(metrics),
            self._render_equivalence(metrics),
            self._render_space(metrics),
            self._render_observations(metrics),
        ]
        return "\n\n".join(s for s in sections if s) + "\n"

    def _render_header(self, metrics: RunMetrics) -> str:
        status = "passed" if metrics.success else "FAILED"
        lines = [
            f"# Viewbench report: {metrics.deployment_name}",
            "",
            f"- Run: `{metrics.run_id}` ({status})",
            f"- Started: {metrics.start_time.isoformat(timespec='seconds')}",
            f"- Scale: {metrics.scale}",
        ]
        if metrics.server_version:
            lines.append(f"- PostgreSQL: {metrics.server_version}")
        if metrics.row_counts:
            counts = ", ".join(f"{t} {n:,}" for t, n in metrics.row_counts.items())
            lines.append(f"- Rows: {counts}")
        bench = metrics.benchmark or {}
        if bench:
            lines.append(
                f"- Timing: {bench.get('iterations')} timed runs after "
                f"{bench.get('warmup')} warm-up, cache {bench.get('cache')}"
            )
        return "\n".join(lines)

    def _render_comparison(self, metrics: RunMetrics) -> str:
        variants = (metrics.benchmark or {}).get("variants", [])
        if not variants:
            return ""

        sizes = {s.get("name"): s for s in metrics.space}
        rows = []
        for v in variants:
            obj = sizes.get(v.get("object_name")) if v.get("object_name") else None
            size = format_bytes(obj["total_bytes"]) if obj else "-"
            ok = v.get("success")
            rows.append(
                [
                    v.get("display_name", v.get("name", "")),
                    _format_ms(v.get("median_seconds") if ok else None),
                    _format_ms(v.get("mean_seconds") if ok else None),
                    _format_ms(v.get("min_seconds") if ok else None),
                    _format_ms(v.get("max_seconds") if ok else None),
                    f"{v.get('rows_returned', 0):,}",
                    size,
                    "ok" if ok else f"failed: {v.get('error_message', '')}",
                ]
            )

        return "## Query latency\n\n" + _table(
            [
                "Variant",
                "Median (ms)",
                "Mean (ms)",
                "Min (ms)",
                "Max (ms)",
                "Rows",
                "Object size",
                "Status",
            ],
            rows,
        )

    def _render_equivalence(self, metrics: RunMetrics) -> str:
        checks = (metrics.benchmark or {}).get("equivalence", [])
        if not checks:
            return ""

        rows = []
        for e in checks:
            if e.get("error"):
                verdict = f"error: {e['error']}"
            elif e.get("equivalent"):
                verdict = "identical"
            else:
                verdict = f"{e.get('differing_rows', 0):,} rows differ"
            rows.append([e.get("variant", ""), e.get("baseline", ""), verdict])

        return "## Result-set equivalence\n\n" + _table(["Variant", "Baseline", "Result"], rows)

    def _render_space(self, metrics: RunMetrics) -> str:
        if not metrics.space:
            return ""

        rows = [
            [
                s.get("name", ""),
                s.get("kind", ""),
                s.get("persistence", ""),
                format_bytes(s.get("relation_bytes", 0)),
                format_bytes(s.get("index_bytes", 0)),
                format_bytes(s.get("total_bytes", 0)),
            ]
            for s in metrics.space
        ]
        return "## Storage\n\n" + _table(
            ["Object", "Type", "Persistence", "Data", "Indexes", "Total"], rows
        )

    def _render_observations(self, metrics: RunMetrics) -> str:
        a: dict[str, Any] = metrics.assessment or {}
        if not a:
            return ""

        lines = ["## Observations", ""]
        ratio = a.get("view_vs_raw_ratio")
        if ratio is not None:
            verdict = "within" if a.get("view_matches_raw") else "outside"
            lines.append(
                f"- View / raw join median ratio: {ratio:.2f} "
                f"({verdict} ±{a.get('tolerance', 0) * 100:.0f}%)"
            )
        speedup = a.get("matview_speedup")
        if speedup is not None:
            fastest = "fastest" if a.get("matview_fastest") else "not the fastest"
            lines.append(f"- Materialized view speedup: {speedup:.1f}x ({fastest})")
        if metrics.materialized_view_populated is False:
            lines.append("- Materialized view was created WITH NO DATA")
        return "\n".join(lines) if len(lines) > 2 else ""

"""Run metrics for viewbench."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def generate_run_id() -> str:
    """Run id of the form ``YYYYMMDD-HHMMSS-<6 hex>``."""
    return datetime.now().strftime("%Y%m%d-%H%M%S") + "-" + uuid.uuid4().hex[:6]


@dataclass
class StageTiming:
    """Wall-clock time of one pipeline stage."""

    name: str
    elapsed_seconds: float = 0.0
    success: bool = True
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "success": self.success,
            "error_message": self.error_message,
        }


@dataclass
class RunMetrics:
    """Everything recorded about one benchmark run.

    ``benchmark``, ``space`` and ``assessment`` hold the serialized forms of
    BenchmarkResult, ObjectSize and LatencyAssessment so a stored run can be
    reported on without a database connection.
    """

    run_id: str
    deployment_name: str
    start_time: datetime
    end_time: datetime | None = None
    success: bool = False
    scale: int = 1
    server_version: str = ""
    row_counts: dict[str, int] = field(default_factory=dict)
    datagen_seconds: float = 0.0
    materialized_view_populated: bool | None = None
    materialized_view_create_seconds: float = 0.0
    stages: list[StageTiming] = field(default_factory=list)
    benchmark: dict[str, Any] | None = None
    space: list[dict[str, Any]] = field(default_factory=list)
    assessment: dict[str, Any] | None = None
    config_snapshot: dict[str, Any] = field(default_factory=dict)

    @property
    def total_elapsed_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "run_id": self.run_id,
            "deployment_name": self.deployment_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "total_elapsed_seconds": round(self.total_elapsed_seconds, 3),
            "success": self.success,
            "scale": self.scale,
            "server_version": self.server_version,
            "row_counts": dict(self.row_counts),
            "datagen_seconds": round(self.datagen_seconds, 3),
            "materialized_view_populated": self.materialized_view_populated,
            "materialized_view_create_seconds": round(self.materialized_view_create_seconds, 3),
            "stages": [s.to_dict() for s in self.stages],
            "benchmark": self.benchmark,
            "space": list(self.space),
            "assessment": self.assessment,
            "config_snapshot": dict(self.config_snapshot),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunMetrics:
        """Rebuild from the output of :meth:`to_dict`."""
        end_time = data.get("end_time")
        return cls(
            run_id=data.get("run_id", ""),
            deployment_name=data.get("deployment_name", ""),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            success=data.get("success", False),
            scale=data.get("scale", 1),
            server_version=data.get("server_version", ""),
            row_counts=data.get("row_counts", {}),
            datagen_seconds=data.get("datagen_seconds", 0.0),
            materialized_view_populated=data.get("materialized_view_populated"),
            materialized_view_create_seconds=data.get("materialized_view_create_seconds", 0.0),
            stages=[
                StageTiming(
                    name=s.get("name", ""),
                    elapsed_seconds=s.get("elapsed_seconds", 0.0),
                    success=s.get("success", True),
                    error_message=s.get("error_message", ""),
                )
                for s in data.get("stages", [])
            ],
            benchmark=data.get("benchmark"),
            space=data.get("space", []),
            assessment=data.get("assessment"),
            config_snapshot=data.get("config_snapshot", {}),
        )

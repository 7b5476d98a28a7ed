"""Metrics module for viewbench.

Records and stores the measurements of each benchmark run.
"""

from .collector import RunMetrics, StageTiming, generate_run_id
from .storage import MetricsStorage

__all__ = [
    "MetricsStorage",
    "RunMetrics",
    "StageTiming",
    "generate_run_id",
]

"""Reports module for viewbench.

Generates Markdown benchmark reports from collected metrics.
"""

from .generator import ReportGenerator

__all__ = [
    "ReportGenerator",
]

"""Synthetic data generation for viewbench."""

from .generator import DataGenerator, DatagenError, DatagenResult

__all__ = [
    "DataGenerator",
    "DatagenError",
    "DatagenResult",
]

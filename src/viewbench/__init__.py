"""Viewbench: benchmark plain views, materialized views and raw joins on PostgreSQL."""

__version__ = "0.1.0"

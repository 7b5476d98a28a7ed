"""Benchmark schema provisioning."""

from .provisioner import GENDERS, MAX_CREDITS, MIN_CREDITS, TABLE_DDL, ProvisionResult, SchemaProvisioner

__all__ = [
    "GENDERS",
    "MAX_CREDITS",
    "MIN_CREDITS",
    "TABLE_DDL",
    "ProvisionResult",
    "SchemaProvisioner",
]

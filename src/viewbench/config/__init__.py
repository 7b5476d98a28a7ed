"""Viewbench configuration module."""

from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    generate_default_config,
    generate_example_config_yaml,
    load_config,
    save_config,
)
from .scale import ScaleDimensions, get_dimensions
from .schema import (
    BenchmarkConfig,
    CacheMode,
    ContainerConfig,
    ContainerRuntime,
    DatabaseConfig,
    DatagenConfig,
    ReportsConfig,
    ViewbenchConfig,
)

__all__ = [
    # Config classes
    "ViewbenchConfig",
    "DatabaseConfig",
    "ContainerConfig",
    "DatagenConfig",
    "BenchmarkConfig",
    "ReportsConfig",
    # Scale
    "ScaleDimensions",
    "get_dimensions",
    # Enums
    "CacheMode",
    "ContainerRuntime",
    # Loader functions
    "load_config",
    "save_config",
    "generate_default_config",
    "generate_example_config_yaml",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]

"""Configuration loader for viewbench."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import ViewbenchConfig


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when configuration file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing parsed YAML

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails or the document is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top of {path}")
    return content


def validate_config(data: dict[str, Any]) -> ViewbenchConfig:
    """Validate a raw config dict, converting pydantic errors to ConfigValidationError."""
    try:
        return ViewbenchConfig.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_messages.append(f"  - {loc}: {msg}")

        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def load_config(path: str | Path) -> ViewbenchConfig:
    """Load and validate viewbench configuration from file.

    Args:
        path: Path to configuration YAML file

    Returns:
        Validated ViewbenchConfig object

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    return validate_config(load_yaml(Path(path)))


def save_config(config: ViewbenchConfig, path: str | Path) -> None:
    """Save configuration to YAML file.

    Args:
        config: ViewbenchConfig object
        path: Path to save YAML file
    """
    path = Path(path)
    data = config.model_dump(mode="json", exclude_defaults=False)

    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def generate_default_config(
    name: str,
    host: str = "",
    port: int | None = None,
    scale: int | None = None,
    use_container: bool = False,
) -> ViewbenchConfig:
    """Generate a default configuration with common values pre-filled.

    Args:
        name: Benchmark name (required)
        host: Database host
        port: Database port
        scale: Datagen scale factor
        use_container: Start a local PostgreSQL container before running

    Returns:
        ViewbenchConfig with defaults
    """
    config_dict: dict[str, Any] = {
        "name": name,
        "description": f"Viewbench setup: {name}",
        "version": 1,
    }

    database: dict[str, Any] = {}
    if host:
        database["host"] = host
    if port is not None:
        database["port"] = port
    if database:
        config_dict["database"] = database

    if scale is not None:
        config_dict["datagen"] = {"scale": scale}

    if use_container:
        config_dict["container"] = {"enabled": True}
        if port is not None:
            config_dict["container"]["host_port"] = port

    return validate_config(config_dict)


def generate_example_config_yaml() -> str:
    """Generate example configuration YAML with comments.

    Only the fields a user normally edits are uncommented; everything else
    is shown commented-out with its default.

    Returns:
        String containing commented YAML configuration
    """
    return """# Viewbench Configuration
# =======================
# Compares a raw four-way join, a plain view and a materialized view
# over the same synthetic university schema.
#
# LEGEND:
#   Uncommented fields  = REQUIRED or explicitly set values
#   # field: value      = Available option with its DEFAULT value.

# REQUIRED: Name for this benchmark setup
name: my-viewbench

# description: ""

# ============================================================================
# DATABASE
# ============================================================================
database:
  host: localhost
  port: 5432
  user: postgres
  password: ""                       # Empty = read VIEWBENCH_DB_PASSWORD
  dbname: postgres
  # schema_name: public
  # connect_timeout: 10
  # statement_timeout_ms: 0          # 0 = unlimited

# ============================================================================
# CONTAINER (optional local PostgreSQL)
# ============================================================================
# container:
#   enabled: false                   # true = 'viewbench run' starts it first
#   runtime: docker                  # docker | podman
#   image: postgres:17
#   name: viewbench-postgres
#   host_port: 5432                  # database.port must match
#   password: postgres               # POSTGRES_PASSWORD; also used to connect
#   ready_timeout: 60

# ============================================================================
# DATA GENERATION
# ============================================================================
datagen:
  scale: 1                           # 1 = 10K students, 100K enrollments
  # seed: 0.42                       # setseed() value in [-1, 1]; null = random
  # batch_size: 100000
  ## Per-table overrides (exact row counts)
  # students: null
  # courses: null
  # classes: null
  # enrollments: null

# ============================================================================
# BENCHMARK
# ============================================================================
benchmark:
  iterations: 5                      # Timed runs per variant
  warmup: 1                          # Discarded cache-warming runs
  # cache: hot                       # hot | cold (DISCARD ALL before each run)
  # variants: []                     # raw_join | view | materialized_view (empty = all)
  # verify_equivalence: true
  # populate_materialized_view: true # false = CREATE ... WITH NO DATA
  # query_timeout: 300

# ============================================================================
# REPORTS
# ============================================================================
# reports:
#   output_dir: ./viewbench-output
#   latency_tolerance: 0.25
"""

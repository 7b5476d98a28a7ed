"""Shared constants for viewbench."""

# Unified output directory -- single top-level directory for all viewbench outputs.
# Contains:
#   runs/      -- per-run subdirectories with metrics.json and report.md
DEFAULT_OUTPUT_DIR = "./viewbench-output"

# Environment variable consulted when database.password is empty
PASSWORD_ENV_VAR = "VIEWBENCH_DB_PASSWORD"

# Base tables in dependency order (parents before children)
TABLES = ("course", "student", "class", "enrollment")

VIEW_NAME = "student_enrollment_v"
MATVIEW_NAME = "student_enrollment_mv"

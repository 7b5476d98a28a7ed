"""Schema provisioning for the university benchmark tables.

Four tables, created parents-first so every foreign key can be declared
inline:

    course  <-- class  <-- enrollment --> student
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from viewbench._constants import MATVIEW_NAME, TABLES, VIEW_NAME

if TYPE_CHECKING:
    from viewbench.db import Database

logger = logging.getLogger(__name__)

GENDERS = ("M", "F")
MIN_CREDITS = 1
MAX_CREDITS = 5

TABLE_DDL: dict[str, str] = {
    "course": f"""\
CREATE TABLE IF NOT EXISTS course (
  id integer PRIMARY KEY,
  name text NOT NULL,
  credits integer NOT NULL CHECK (credits BETWEEN {MIN_CREDITS} AND {MAX_CREDITS})
)""",
    "student": f"""\
CREATE TABLE IF NOT EXISTS student (
  id integer PRIMARY KEY,
  first_name text NOT NULL,
  last_name text NOT NULL,
  gender char(1) NOT NULL CHECK (gender IN ({", ".join(f"'{g}'" for g in GENDERS)}))
)""",
    "class": """\
CREATE TABLE IF NOT EXISTS class (
  id integer PRIMARY KEY,
  course_id integer NOT NULL REFERENCES course (id)
)""",
    "enrollment": """\
CREATE TABLE IF NOT EXISTS enrollment (
  id integer PRIMARY KEY,
  class_id integer NOT NULL REFERENCES class (id),
  student_id integer NOT NULL REFERENCES student (id)
)""",
}


@dataclass
class ProvisionResult:
    """Outcome of a provisioning call."""

    created: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


class SchemaProvisioner:
    """Creates and drops the benchmark tables."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, drop_existing: bool = False) -> ProvisionResult:
        """Create the four tables with their constraints.

        Args:
            drop_existing: Drop the derived views and tables first

        Returns:
            ProvisionResult listing what was created and dropped
        """
        start = time.monotonic()
        result = ProvisionResult()

        if drop_existing:
            result.dropped = self.drop().dropped

        for table in TABLES:
            self.db.execute(TABLE_DDL[table])
            result.created.append(table)
            logger.info("Created table %s", table)

        result.elapsed_seconds = time.monotonic() - start
        return result

    def drop(self) -> ProvisionResult:
        """Drop the derived views and the tables, children first."""
        start = time.monotonic()
        result = ProvisionResult()

        # Derived objects depend on every table
        self.db.execute(f"DROP MATERIALIZED VIEW IF EXISTS {MATVIEW_NAME} CASCADE")
        self.db.execute(f"DROP VIEW IF EXISTS {VIEW_NAME} CASCADE")
        result.dropped.extend([MATVIEW_NAME, VIEW_NAME])

        for table in reversed(TABLES):
            self.db.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
            result.dropped.append(table)

        logger.info("Dropped %d objects", len(result.dropped))
        result.elapsed_seconds = time.monotonic() - start
        return result

    def existing_tables(self) -> list[str]:
        """Names of the benchmark tables present in the current schema."""
        rows = self.db.fetch_all(
            "SELECT tablename FROM pg_catalog.pg_tables "
            "WHERE schemaname = current_schema() AND tablename = ANY(%s)",
            (list(TABLES),),
        )
        present = {row[0] for row in rows}
        return [t for t in TABLES if t in present]

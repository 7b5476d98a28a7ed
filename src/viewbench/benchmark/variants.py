"""Query variant definitions for viewbench.

One four-way join, expressed three ways:

- **raw_join**: the join written inline and planned on every execution.
- **view**: the same join stored as a plain view. The view is only a named
  query; each reference re-executes the join against the base tables.
- **materialized_view**: the same join persisted to disk at creation (or at
  the first refresh when created ``WITH NO DATA``). Reads scan the stored
  snapshot and never touch the base tables.

All three project the same columns in the same order, so their result sets
can be compared row for row.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from viewbench._constants import MATVIEW_NAME, VIEW_NAME

if TYPE_CHECKING:
    from viewbench.db import Database

logger = logging.getLogger(__name__)

JOIN_SQL = """\
SELECT
  e.id AS enrollment_id,
  s.id AS student_id,
  s.first_name,
  s.last_name,
  s.gender,
  cl.id AS class_id,
  co.id AS course_id,
  co.name AS course_name,
  co.credits
FROM enrollment e
JOIN student s ON s.id = e.student_id
JOIN class cl ON cl.id = e.class_id
JOIN course co ON co.id = cl.course_id"""


@dataclass(frozen=True)
class QueryVariant:
    """A single timed query plus the DDL for the object it reads, if any."""

    name: str
    display_name: str
    kind: str  # "raw_join", "view", "materialized_view"
    sql: str
    object_name: str | None = None
    create_sql: str | None = None
    drop_sql: str | None = None


RAW_JOIN = QueryVariant(
    name="raw_join",
    display_name="Raw join",
    kind="raw_join",
    sql=JOIN_SQL,
)

VIEW = QueryVariant(
    name="view",
    display_name="View",
    kind="view",
    sql=f"SELECT * FROM {VIEW_NAME}",
    object_name=VIEW_NAME,
    create_sql=f"CREATE VIEW {VIEW_NAME} AS\n{JOIN_SQL}",
    drop_sql=f"DROP VIEW IF EXISTS {VIEW_NAME}",
)

MATERIALIZED_VIEW = QueryVariant(
    name="materialized_view",
    display_name="Materialized view",
    kind="materialized_view",
    sql=f"SELECT * FROM {MATVIEW_NAME}",
    object_name=MATVIEW_NAME,
    create_sql=f"CREATE MATERIALIZED VIEW {MATVIEW_NAME} AS\n{JOIN_SQL}",
    drop_sql=f"DROP MATERIALIZED VIEW IF EXISTS {MATVIEW_NAME}",
)

QUERY_VARIANTS: list[QueryVariant] = [RAW_JOIN, VIEW, MATERIALIZED_VIEW]

VARIANT_NAMES: tuple[str, ...] = tuple(v.name for v in QUERY_VARIANTS)


@dataclass
class ObjectCreation:
    """Timing of derived object creation."""

    view_seconds: float = 0.0
    materialized_view_seconds: float = 0.0
    populated: bool = True


class QueryVariantRegistry:
    """Looks up query variants and manages the objects they read from."""

    def __init__(self, variants: list[QueryVariant] | None = None):
        self._variants = list(variants if variants is not None else QUERY_VARIANTS)

    def variants(self, names: list[str] | None = None) -> list[QueryVariant]:
        """Return all variants, or the named subset in registry order.

        Raises:
            ValueError: If a name is not registered
        """
        if not names:
            return list(self._variants)
        known = {v.name for v in self._variants}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ValueError(
                f"Unknown variants: {', '.join(unknown)}. Valid: {', '.join(sorted(known))}"
            )
        return [v for v in self._variants if v.name in names]

    def get(self, name: str) -> QueryVariant:
        """Return one variant by name."""
        for v in self._variants:
            if v.name == name:
                return v
        raise KeyError(f"Unknown variant: {name}")

    def create_objects(self, db: Database, populate: bool = True) -> ObjectCreation:
        """Create the view and the materialized view, replacing existing ones.

        Args:
            db: Open database
            populate: ``False`` creates the materialized view ``WITH NO DATA``

        Returns:
            ObjectCreation with per-object timings
        """
        self.drop_objects(db)
        creation = ObjectCreation(populated=populate)

        start = time.monotonic()
        db.execute(VIEW.create_sql)
        creation.view_seconds = time.monotonic() - start
        logger.info("Created view %s", VIEW_NAME)

        suffix = "WITH DATA" if populate else "WITH NO DATA"
        start = time.monotonic()
        db.execute(f"{MATERIALIZED_VIEW.create_sql}\n{suffix}")
        creation.materialized_view_seconds = time.monotonic() - start
        logger.info(
            "Created materialized view %s %s in %.2fs",
            MATVIEW_NAME,
            suffix,
            creation.materialized_view_seconds,
        )
        return creation

    def drop_objects(self, db: Database) -> None:
        """Drop the materialized view and the view if they exist."""
        db.execute(MATERIALIZED_VIEW.drop_sql)
        db.execute(VIEW.drop_sql)

    def refresh_materialized_view(self, db: Database) -> float:
        """Re-run the join and replace the materialized view's snapshot.

        Returns:
            Elapsed seconds
        """
        start = time.monotonic()
        db.execute(f"REFRESH MATERIALIZED VIEW {MATVIEW_NAME}")
        elapsed = time.monotonic() - start
        logger.info("Refreshed %s in %.2fs", MATVIEW_NAME, elapsed)
        return elapsed

    def is_materialized_view_populated(self, db: Database) -> bool | None:
        """Whether the materialized view holds data; None if it does not exist."""
        return db.fetch_scalar(
            "SELECT ispopulated FROM pg_catalog.pg_matviews "
            "WHERE schemaname = current_schema() AND matviewname = %s",
            (MATVIEW_NAME,),
        )

"""Synthetic data generation for the university schema.

Rows are produced server-side with ``generate_series`` and ``random()``, so
nothing is streamed through the client. Primary keys are dense (``1..N``),
which lets a child row reference its parent by drawing a uniform integer
from the parent's id range. Tables are filled parents first:

  1. course      (name, credits in 1..5)
  2. student     (first/last name from fixed pools, gender M/F)
  3. class       (course_id -> course)
  4. enrollment  (class_id -> class, student_id -> student)

Large tables are inserted in ``batch_size`` chunks so progress is visible
in the log and each chunk commits on its own.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from viewbench._constants import TABLES

if TYPE_CHECKING:
    from viewbench.config.scale import ScaleDimensions
    from viewbench.db import Database

logger = logging.getLogger(__name__)

# =============================================================================
# Value pools
# =============================================================================

FIRST_NAMES = [
    "Alice", "Bruno", "Chen", "Dana", "Emil", "Fatima", "Gwen", "Hiro",
    "Ines", "Jonas", "Kwame", "Lena", "Mateo", "Nadia", "Omar", "Priya",
    "Quinn", "Rosa", "Sven", "Tariq", "Uma", "Viktor", "Wen", "Yara",
]  # fmt: skip

LAST_NAMES = [
    "Adams", "Becker", "Costa", "Dubois", "Eriksen", "Fischer", "Garcia",
    "Hansen", "Ivanova", "Jensen", "Kowalski", "Lopez", "Meyer", "Novak",
    "Okafor", "Petrov", "Rossi", "Silva", "Tanaka", "Usman", "Weber", "Zhang",
]  # fmt: skip

# =============================================================================
# Insert statements (params: lo, hi + per-table values)
# =============================================================================

INSERT_SQL: dict[str, str] = {
    "course": """\
INSERT INTO course (id, name, credits)
SELECT g, 'Course ' || g, 1 + floor(random() * 5)::int
FROM generate_series(%(lo)s, %(hi)s) AS g""",
    "student": """\
INSERT INTO student (id, first_name, last_name, gender)
SELECT
  g,
  (%(first_names)s::text[])[1 + floor(random() * %(n_first)s)::int],
  (%(last_names)s::text[])[1 + floor(random() * %(n_last)s)::int],
  CASE WHEN random() < 0.5 THEN 'M' ELSE 'F' END
FROM generate_series(%(lo)s, %(hi)s) AS g""",
    "class": """\
INSERT INTO class (id, course_id)
SELECT g, 1 + floor(random() * %(courses)s)::int
FROM generate_series(%(lo)s, %(hi)s) AS g""",
    "enrollment": """\
INSERT INTO enrollment (id, class_id, student_id)
SELECT g, 1 + floor(random() * %(classes)s)::int, 1 + floor(random() * %(students)s)::int
FROM generate_series(%(lo)s, %(hi)s) AS g""",
}

# Child table -> parent tables it references
PARENTS: dict[str, tuple[str, ...]] = {
    "course": (),
    "student": (),
    "class": ("course",),
    "enrollment": ("class", "student"),
}


class DatagenError(Exception):
    """Raised when requested row counts are inconsistent or not met."""

    pass


@dataclass
class DatagenResult:
    """Outcome of a generation run."""

    row_counts: dict[str, int] = field(default_factory=dict)
    per_table_seconds: dict[str, float] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def total_rows(self) -> int:
        return sum(self.row_counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_counts": dict(self.row_counts),
            "per_table_seconds": {k: round(v, 3) for k, v in self.per_table_seconds.items()},
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


def iter_batches(total: int, batch_size: int):
    """Yield inclusive ``(lo, hi)`` id ranges covering ``1..total``."""
    lo = 1
    while lo <= total:
        hi = min(lo + batch_size - 1, total)
        yield lo, hi
        lo = hi + 1


def check_referential_counts(counts: dict[str, int]) -> None:
    """Reject counts where a non-empty child would reference an empty parent."""
    for table, parents in PARENTS.items():
        if counts.get(table, 0) == 0:
            continue
        empty = [p for p in parents if counts.get(p, 0) == 0]
        if empty:
            raise DatagenError(
                f"Cannot generate {counts[table]} {table} rows: "
                f"parent table(s) {', '.join(empty)} would be empty"
            )


class DataGenerator:
    """Fills the benchmark tables with random rows."""

    def __init__(
        self,
        db: Database,
        seed: float | None = None,
        batch_size: int = 100_000,
    ):
        self.db = db
        self.seed = seed
        self.batch_size = batch_size

    def generate(self, dimensions: ScaleDimensions) -> DatagenResult:
        """Truncate the tables and insert ``dimensions`` rows into each.

        Args:
            dimensions: Exact row counts per table

        Returns:
            DatagenResult with the row counts inserted and timings

        Raises:
            DatagenError: If a child table would reference an empty parent
        """
        counts = dimensions.row_counts()
        check_referential_counts(counts)

        start = time.monotonic()
        result = DatagenResult()

        self.db.execute(f"TRUNCATE {', '.join(reversed(TABLES))} RESTART IDENTITY CASCADE")

        if self.seed is not None:
            self.db.execute("SELECT setseed(%s)", (self.seed,))

        for table in TABLES:
            table_start = time.monotonic()
            inserted = self._fill_table(table, counts)
            result.row_counts[table] = inserted
            result.per_table_seconds[table] = time.monotonic() - table_start
            logger.info(
                "Generated %d %s rows in %.2fs", inserted, table, result.per_table_seconds[table]
            )

        for table in TABLES:
            self.db.execute(f"ANALYZE {table}")

        result.elapsed_seconds = time.monotonic() - start
        return result

    def _fill_table(self, table: str, counts: dict[str, int]) -> int:
        """Insert ``counts[table]`` rows in batches; return rows inserted."""
        total = counts[table]
        inserted = 0
        for lo, hi in iter_batches(total, self.batch_size):
            params = self._params(table, counts)
            params.update(lo=lo, hi=hi)
            inserted += self.db.execute(INSERT_SQL[table], params)
            logger.debug("%s: %d/%d", table, hi, total)
        return inserted

    @staticmethod
    def _params(table: str, counts: dict[str, int]) -> dict[str, Any]:
        if table == "student":
            return {
                "first_names": FIRST_NAMES,
                "n_first": len(FIRST_NAMES),
                "last_names": LAST_NAMES,
                "n_last": len(LAST_NAMES),
            }
        if table == "class":
            return {"courses": counts["course"]}
        if table == "enrollment":
            return {"classes": counts["class"], "students": counts["student"]}
        return {}

    def verify_counts(self, dimensions: ScaleDimensions) -> dict[str, int]:
        """Check that each table holds exactly the requested number of rows.

        Returns:
            Actual row counts keyed by table

        Raises:
            DatagenError: If any table's count differs from the request
        """
        expected = dimensions.row_counts()
        actual = {t: int(self.db.fetch_scalar(f"SELECT count(*) FROM {t}")) for t in TABLES}

        mismatched = [
            f"{t}: expected {expected[t]}, found {actual[t]}"
            for t in TABLES
            if actual[t] != expected[t]
        ]
        if mismatched:
            raise DatagenError("Row count mismatch: " + "; ".join(mismatched))
        return actual

"""Scale factor definitions.

Maps an abstract scale factor (integer >= 1) to exact per-table row counts
for the university schema. The invariant is: scale 1 = 100K enrollments.

Example YAML::

    datagen:
      scale: 10   # 100K students, 1M enrollments
"""

from __future__ import annotations

from dataclasses import dataclass

COURSES_PER_SCALE = 100
CLASSES_PER_SCALE = 1_000
STUDENTS_PER_SCALE = 10_000
ENROLLMENTS_PER_SCALE = 100_000


@dataclass(frozen=True)
class ScaleDimensions:
    """Exact row counts derived from a scale factor."""

    scale: int
    courses: int
    classes: int
    students: int
    enrollments: int

    @property
    def total_rows(self) -> int:
        return self.courses + self.classes + self.students + self.enrollments

    def row_counts(self) -> dict[str, int]:
        """Row counts keyed by table name, parents before children."""
        return {
            "course": self.courses,
            "student": self.students,
            "class": self.classes,
            "enrollment": self.enrollments,
        }


def get_dimensions(scale: int, overrides: dict[str, int] | None = None) -> ScaleDimensions:
    """Resolve per-table row counts for a scale factor.

    Args:
        scale: Scale factor (integer >= 1)
        overrides: Optional explicit counts keyed by table name
            (``student``, ``course``, ``class``, ``enrollment``)

    Returns:
        ScaleDimensions with all row counts

    Raises:
        ValueError: If scale < 1, an override names an unknown table,
            or an override is negative
    """
    if scale < 1:
        raise ValueError(f"Scale must be >= 1, got {scale}")

    counts = {
        "course": scale * COURSES_PER_SCALE,
        "class": scale * CLASSES_PER_SCALE,
        "student": scale * STUDENTS_PER_SCALE,
        "enrollment": scale * ENROLLMENTS_PER_SCALE,
    }
    for table, value in (overrides or {}).items():
        if table not in counts:
            raise ValueError(f"Unknown table override: {table}. Valid: {', '.join(sorted(counts))}")
        if value < 0:
            raise ValueError(f"Row count for {table} must be >= 0, got {value}")
        counts[table] = value

    return ScaleDimensions(
        scale=scale,
        courses=counts["course"],
        classes=counts["class"],
        students=counts["student"],
        enrollments=counts["enrollment"],
    )

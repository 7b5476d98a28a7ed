"""On-disk footprint of the benchmark objects, read from the catalog.

A plain view stores only its definition, so its relation size is always 0.
A materialized view created ``WITH NO DATA`` has an empty heap until its
first refresh.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from viewbench._constants import MATVIEW_NAME, TABLES, VIEW_NAME

if TYPE_CHECKING:
    from viewbench.db import Database

logger = logging.getLogger(__name__)

RELKIND_NAMES = {
    "r": "table",
    "p": "partitioned table",
    "v": "view",
    "m": "materialized view",
}

PERSISTENCE_NAMES = {
    "p": "permanent",
    "u": "unlogged",
    "t": "temporary",
}

BENCHMARK_OBJECTS: tuple[str, ...] = (*TABLES, VIEW_NAME, MATVIEW_NAME)

_SIZE_SQL = """\
SELECT
  c.relname,
  c.relkind,
  c.relpersistence,
  pg_relation_size(c.oid),
  pg_total_relation_size(c.oid),
  pg_indexes_size(c.oid)
FROM pg_catalog.pg_class c
JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
WHERE n.nspname = current_schema()
  AND c.relname = ANY(%s)"""

_VIEWS_SQL = """\
SELECT
  c.relname,
  c.relkind,
  c.relpersistence,
  pg_relation_size(c.oid),
  pg_total_relation_size(c.oid),
  pg_indexes_size(c.oid)
FROM pg_catalog.pg_class c
JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
WHERE n.nspname = current_schema()
  AND c.relkind IN ('v', 'm')
ORDER BY c.relname"""


def format_bytes(n: int) -> str:
    """Human-readable size in the style of ``pg_size_pretty``."""
    if n < 10 * 1024:
        return f"{n} bytes"
    for unit in ("kB", "MB", "GB"):
        n_scaled = n / 1024
        if n_scaled < 10 * 1024 or unit == "GB":
            return f"{round(n_scaled)} {unit}"
        n = n_scaled
    return f"{n} bytes"


@dataclass
class ObjectSize:
    """Catalog facts about one relation."""

    name: str
    kind: str
    persistence: str
    relation_bytes: int
    total_bytes: int
    index_bytes: int

    @property
    def pretty_size(self) -> str:
        return format_bytes(self.total_bytes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> ObjectSize:
        name, relkind, persistence, relation_bytes, total_bytes, index_bytes = row
        return cls(
            name=name,
            kind=RELKIND_NAMES.get(relkind, relkind),
            persistence=PERSISTENCE_NAMES.get(persistence, persistence),
            relation_bytes=int(relation_bytes or 0),
            total_bytes=int(total_bytes or 0),
            index_bytes=int(index_bytes or 0),
        )


class SpaceInspector:
    """Reads relation sizes from the PostgreSQL catalog."""

    def __init__(self, db: Database):
        self.db = db

    def inspect(self, names: list[str] | None = None) -> list[ObjectSize]:
        """Sizes of the named relations (default: all benchmark objects).

        Relations that do not exist are skipped. Results follow the order
        of ``names``.
        """
        wanted = list(names or BENCHMARK_OBJECTS)
        rows = self.db.fetch_all(_SIZE_SQL, (wanted,))
        by_name = {row[0]: ObjectSize.from_row(row) for row in rows}

        missing = [n for n in wanted if n not in by_name]
        if missing:
            logger.debug("Not present in catalog: %s", ", ".join(missing))
        return [by_name[n] for n in wanted if n in by_name]

    def list_views(self) -> list[ObjectSize]:
        """Every plain and materialized view in the current schema."""
        return [ObjectSize.from_row(row) for row in self.db.fetch_all(_VIEWS_SQL)]

    def size_of(self, name: str) -> ObjectSize | None:
        """Size of a single relation, or None if it does not exist."""
        found = self.inspect([name])
        return found[0] if found else None

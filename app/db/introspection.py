"""
Runtime schema introspection.

Park installations grew through several schema revisions: the same
information lives in ``park_images.image_url`` on one database and in
``park_images.url`` on another, tree health may be ``health_condition``,
``estado``, ``health`` or ``condition``. Before referencing an optional
column, queries ask the live catalog which columns exist.

Nothing is cached; every call hits ``information_schema`` so a migration
applied while the API is running is picked up by the next request.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Set, Tuple

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

COLUMNS_QUERY = text(
    """
    SELECT column_name
      FROM information_schema.columns
     WHERE table_schema = :schema
       AND table_name = :table_name
  ORDER BY ordinal_position
    """
)

TABLE_EXISTS_QUERY = text(
    """
    SELECT EXISTS (
        SELECT 1
          FROM information_schema.tables
         WHERE table_schema = :schema
           AND table_name = :table_name
    )
    """
)


def first_present(columns: Iterable[str], candidates: Iterable[str]) -> Optional[str]:
    """Return the first of ``candidates`` found in ``columns``, in candidate order."""
    available = set(columns)
    for candidate in candidates:
        if candidate in available:
            return candidate
    return None


class SchemaIntrospector:
    """Reads table and column names from the connected database's catalog."""

    def __init__(self, db: Session, schema: str = "public"):
        self.db = db
        self.schema = schema

    def table_columns(self, table: str) -> Set[str]:
        """Column names of ``table``; empty when the table does not exist.

        Catalog errors propagate as ``SQLAlchemyError``.
        """
        rows = (
            self.db.execute(
                COLUMNS_QUERY, {"schema": self.schema, "table_name": table}
            )
            .mappings()
            .all()
        )
        columns = {row["column_name"] for row in rows}
        logger.debug("Introspected %s.%s: %d columns", self.schema, table, len(columns))
        return columns

    def table_exists(self, table: str) -> bool:
        exists = self.db.execute(
            TABLE_EXISTS_QUERY, {"schema": self.schema, "table_name": table}
        ).scalar_one()
        return bool(exists)

    def first_existing_table(
        self, candidates: Iterable[str]
    ) -> Optional[Tuple[str, Set[str]]]:
        """First candidate table that has columns, together with those columns."""
        for table in candidates:
            columns = self.table_columns(table)
            if columns:
                return table, columns
        return None

    first_present = staticmethod(first_present)

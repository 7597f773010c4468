"""
Dynamic SELECT builder for raw SQL against introspected tables.

Columns are added only after the caller confirmed they exist; every value is
bound as a positional parameter rendered as ``:p1 .. :pN`` so the statement
can be run through ``sqlalchemy.text``. Result keys are the camelCase form of
the source column (``postal_code`` -> ``postalCode``), which is what the web
clients consume.

Example::

    query = SelectQuery("parks", alias="p")
    query.select_present(columns, ["id", "name", "park_type"])
    query.where_eq("park_type", "urbano")
    query.where_ilike(["name", "address"], "colomos")
    query.order_by("name")
    built = query.build()
    rows = db.execute(built.statement(), built.bind_params()).mappings().all()
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic.alias_generators import to_camel
from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_ident(name: str) -> str:
    """Double-quote a validated SQL identifier."""
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")
    return f'"{name}"'


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class BuiltQuery:
    """A rendered statement and its positional parameters."""

    sql: str
    params: Tuple[Any, ...]
    keys: Tuple[str, ...] = ()

    def bind_params(self) -> Dict[str, Any]:
        return {f"p{index}": value for index, value in enumerate(self.params, start=1)}

    def statement(self) -> TextClause:
        return text(self.sql)


class SelectQuery:
    """Accumulates the pieces of a single SELECT statement."""

    def __init__(self, table: str, alias: Optional[str] = None):
        self.table = table
        self.alias = alias
        self._columns: List[str] = []
        self._keys: List[str] = []
        self._joins: List[str] = []
        self._conditions: List[str] = []
        self._group_by: List[str] = []
        self._order_by: List[str] = []
        self._distinct_on: List[str] = []
        self._limit: Optional[int] = None
        self._params: List[Any] = []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def col(self, column: str, alias: Optional[str] = None) -> str:
        """Render ``alias."column"``; the query's own alias is the default."""
        owner = alias if alias is not None else self.alias
        if owner:
            return f"{quote_ident(owner)}.{quote_ident(column)}"
        return quote_ident(column)

    def param(self, value: Any) -> str:
        self._params.append(value)
        return f":p{len(self._params)}"

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    # ------------------------------------------------------------------
    # Select list
    # ------------------------------------------------------------------

    def select(
        self, column: str, key: Optional[str] = None, alias: Optional[str] = None
    ) -> "SelectQuery":
        return self.select_expr(self.col(column, alias), key or to_camel(column))

    def select_present(
        self,
        available: Iterable[str],
        columns: Sequence[str],
        alias: Optional[str] = None,
        keys: Optional[Dict[str, str]] = None,
    ) -> "SelectQuery":
        """Select each of ``columns`` that is in ``available``, keeping ``columns`` order."""
        available = set(available)
        keys = keys or {}
        for column in columns:
            if column in available:
                self.select(column, keys.get(column), alias)
        return self

    def select_expr(self, expression: str, key: str) -> "SelectQuery":
        if key in self._keys:
            raise ValueError(f"Duplicate result key: {key}")
        self._columns.append(f"{expression} AS {quote_ident(key)}")
        self._keys.append(key)
        return self

    def distinct_on(self, *expressions: str) -> "SelectQuery":
        self._distinct_on.extend(expressions)
        return self

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def join(self, table: str, alias: str, on: str, kind: str = "JOIN") -> "SelectQuery":
        self._joins.append(f"{kind} {quote_ident(table)} {quote_ident(alias)} ON {on}")
        return self

    def left_join(self, table: str, alias: str, on: str) -> "SelectQuery":
        return self.join(table, alias, on, kind="LEFT JOIN")

    # ------------------------------------------------------------------
    # Filters (AND-combined)
    # ------------------------------------------------------------------

    def where(self, condition: str, *values: Any) -> "SelectQuery":
        """Raw condition; ``{}`` placeholders are replaced by bound ``values``."""
        placeholders = [self.param(value) for value in values]
        self._conditions.append(condition.format(*placeholders))
        return self

    def where_eq(
        self, column: str, value: Any, alias: Optional[str] = None
    ) -> "SelectQuery":
        if value is None:
            return self
        self._conditions.append(f"{self.col(column, alias)} = {self.param(value)}")
        return self

    def where_any(
        self, column: str, values: Iterable[Any], alias: Optional[str] = None
    ) -> "SelectQuery":
        self._conditions.append(
            f"{self.col(column, alias)} = ANY({self.param(list(values))})"
        )
        return self

    def where_ilike(
        self,
        columns: Sequence[str],
        term: Optional[str],
        alias: Optional[str] = None,
    ) -> "SelectQuery":
        """Case-insensitive substring match of ``term`` against any of ``columns``."""
        if not term or not columns:
            return self
        placeholder = self.param(f"%{escape_like(term)}%")
        clauses = [
            f"COALESCE({self.col(column, alias)}, '') ILIKE {placeholder}"
            for column in columns
        ]
        self._conditions.append("(" + " OR ".join(clauses) + ")")
        return self

    def where_contains_all(
        self,
        key_column: str,
        link_table: str,
        link_key: str,
        tag_column: str,
        tag_ids: Iterable[Any],
        alias: Optional[str] = None,
    ) -> "SelectQuery":
        """Keep rows linked to every one of ``tag_ids`` through ``link_table``.

        Subset semantics: a row matches when the number of distinct requested
        tags it is linked to equals the number of distinct requested tags.
        """
        requested = list(dict.fromkeys(tag_ids))
        if not requested:
            return self
        ids_param = self.param(requested)
        count_param = self.param(len(requested))
        tag = quote_ident(tag_column)
        link = quote_ident(link_key)
        self._conditions.append(
            f"{self.col(key_column, alias)} IN ("
            f"SELECT {link} FROM {quote_ident(link_table)}"
            f" WHERE {tag} = ANY({ids_param})"
            f" GROUP BY {link}"
            f" HAVING COUNT(DISTINCT {tag}) = {count_param})"
        )
        return self

    # ------------------------------------------------------------------
    # Grouping, ordering, limits
    # ------------------------------------------------------------------

    def group_by(self, *expressions: str) -> "SelectQuery":
        self._group_by.extend(expressions)
        return self

    def order_by(
        self,
        column: str,
        descending: bool = False,
        alias: Optional[str] = None,
        nulls_last: bool = False,
    ) -> "SelectQuery":
        clause = f"{self.col(column, alias)} {'DESC' if descending else 'ASC'}"
        if nulls_last:
            clause += " NULLS LAST"
        self._order_by.append(clause)
        return self

    def order_by_expr(self, expression: str) -> "SelectQuery":
        self._order_by.append(expression)
        return self

    def limit(self, value: Optional[int]) -> "SelectQuery":
        if value is not None:
            self._limit = int(value)
        return self

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build(self) -> BuiltQuery:
        if not self._columns:
            raise ValueError(f"No columns selected from {self.table}")

        head = "SELECT "
        if self._distinct_on:
            head += f"DISTINCT ON ({', '.join(self._distinct_on)}) "
        source = quote_ident(self.table)
        if self.alias:
            source += f" {quote_ident(self.alias)}"

        parts = [head + ", ".join(self._columns), f"FROM {source}"]
        parts.extend(self._joins)
        if self._conditions:
            parts.append("WHERE " + " AND ".join(self._conditions))
        if self._group_by:
            parts.append("GROUP BY " + ", ".join(self._group_by))
        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))

        params = list(self._params)
        sql = "\n".join(parts)
        if self._limit is not None:
            params.append(self._limit)
            sql += f"\nLIMIT :p{len(params)}"

        return BuiltQuery(sql=sql, params=tuple(params), keys=tuple(self._keys))

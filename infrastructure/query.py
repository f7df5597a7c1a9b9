# ============================================================================
# QUERY BUILDERS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Runtime base of the generated access surface
# PURPOSE: SELECT/UPDATE/DELETE/INSERT builders bound to (connection, schema)
# CREATED: 19 OCT 2026
# EXPORTS: QueryBuilder, Selector, Updater, Deleter, Relation, Inserter
# DEPENDENCIES: pydantic (models), psycopg (via DatabaseConnection)
# ============================================================================
"""
Query Builders

Generated modules subclass these builders and attach one method per
condition operation. A condition method appends a predicate fragment with
its bound values; fragments are joined with AND in call order:

    db.select_from_user().email_eq("a@b.c").score_gt(10).to_list()
    -> SELECT ... FROM "user" WHERE ("email" = %s) AND ("score" > %s)

Empty collections:
    <col>_in([])      renders 1 = 0   (matches no row)
    <col>_not_in([])  renders 1 = 1   (matches every row)

Builders never touch psycopg directly; they hand SQL text and parameters to
the DatabaseConnection they are bound to.
"""

import logging
from typing import Any, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from core.contracts import OnConflict
from core.models import ColumnDefinition, TableDefinition
from core.schema.ddl_utils import quote_identifier

logger = logging.getLogger(__name__)

M = TypeVar("M")

ALWAYS_FALSE = "1 = 0"
ALWAYS_TRUE = "1 = 1"


# ============================================================================
# BASE BUILDER
# ============================================================================

class QueryBuilder:
    """
    Accumulates AND-composed predicate fragments for one table.

    Condition methods mutate and return the builder so calls chain.
    """

    def __init__(
        self,
        connection,
        schema: TableDefinition,
        clauses: Optional[List[str]] = None,
        bindings: Optional[List[Any]] = None,
    ):
        self.connection = connection
        self.schema = schema
        self.clauses: List[str] = list(clauses or [])
        self.bindings: List[Any] = list(bindings or [])

    @property
    def table_sql(self) -> str:
        return quote_identifier(self.schema.table_name)

    def where(self, clause: str, *bindings: Any):
        """Append one predicate fragment and its bound values."""
        self.clauses.append(clause)
        self.bindings.extend(bindings)
        return self

    def in_(self, negate: bool, column_sql: str, values: Sequence[Any]):
        """Append an IN / NOT IN predicate with one placeholder per value."""
        values = list(values)
        if not values:
            return self.where(ALWAYS_TRUE if negate else ALWAYS_FALSE)
        placeholders = ", ".join(["%s"] * len(values))
        operator = "NOT IN" if negate else "IN"
        return self.where(f"{column_sql} {operator} ({placeholders})", *values)

    def where_clause(self) -> str:
        """Render ` WHERE (a) AND (b)`, or an empty string without conditions."""
        if not self.clauses:
            return ""
        return " WHERE " + " AND ".join(f"({clause})" for clause in self.clauses)

    def column_sql(self, name: str) -> str:
        """Quoted SQL identifier of a column given by attribute or column name."""
        return quote_identifier(self.schema.get_column(name).column_name)

    def _copy_into(self, builder_class):
        return builder_class(self.connection, self.schema, self.clauses, self.bindings)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(table={self.schema.table_name!r}, "
            f"conditions={len(self.clauses)})"
        )


# ============================================================================
# SELECT
# ============================================================================

class Selector(QueryBuilder):
    """Builds and runs a SELECT over the bound table."""

    def __init__(self, connection, schema, clauses=None, bindings=None):
        super().__init__(connection, schema, clauses, bindings)
        self._order_by: List[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    def order_by(self, column: str, descending: bool = False) -> "Selector":
        direction = "DESC" if descending else "ASC"
        self._order_by.append(f"{self.column_sql(column)} {direction}")
        return self

    def limit(self, count: int) -> "Selector":
        if count < 0:
            raise ValueError(f"limit must be >= 0, got {count}")
        self._limit = count
        return self

    def offset(self, count: int) -> "Selector":
        if count < 0:
            raise ValueError(f"offset must be >= 0, got {count}")
        self._offset = count
        return self

    def _select_list(self) -> str:
        return ", ".join(quote_identifier(c.column_name) for c in self.schema.columns)

    def to_sql(self) -> Tuple[str, List[Any]]:
        """Render the SELECT statement and its parameters."""
        return self._render(self._limit)

    def _render(self, limit: Optional[int]) -> Tuple[str, List[Any]]:
        query = f"SELECT {self._select_list()} FROM {self.table_sql}{self.where_clause()}"
        params = list(self.bindings)
        if self._order_by:
            query += " ORDER BY " + ", ".join(self._order_by)
        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)
        if self._offset is not None:
            query += " OFFSET %s"
            params.append(self._offset)
        return query, params

    def _fetch_models(self, query: str, params: List[Any]) -> List[Any]:
        rows = self.connection.fetch_all(query, params)
        return [self.connection.new_model_from_row(self.schema, row) for row in rows]

    def to_list(self) -> List[Any]:
        return self._fetch_models(*self.to_sql())

    def first(self) -> Optional[Any]:
        """First matching model, or None. The selector's own limit is left as is."""
        limit = 1 if self._limit is None else min(self._limit, 1)
        models = self._fetch_models(*self._render(limit))
        return models[0] if models else None

    get_or_none = first

    def count(self) -> int:
        query = f"SELECT COUNT(*) AS count FROM {self.table_sql}{self.where_clause()}"
        row = self.connection.fetch_one(query, list(self.bindings))
        return row["count"] if row else 0

    def exists(self) -> bool:
        query = f"SELECT EXISTS (SELECT 1 FROM {self.table_sql}{self.where_clause()}) AS found"
        row = self.connection.fetch_one(query, list(self.bindings))
        return bool(row and row["found"])

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())


# ============================================================================
# UPDATE / DELETE
# ============================================================================

class Updater(QueryBuilder):
    """Builds and runs an UPDATE over the rows matching its conditions."""

    def __init__(self, connection, schema, clauses=None, bindings=None):
        super().__init__(connection, schema, clauses, bindings)
        self._assignments: List[Tuple[str, Any]] = []

    def set(self, column: str, value: Any) -> "Updater":
        self._assignments.append((self.column_sql(column), value))
        return self

    def to_sql(self) -> Tuple[str, List[Any]]:
        if not self._assignments:
            raise ValueError(f"UPDATE of {self.schema.table_name} has no assignments")
        assignments = ", ".join(f"{column} = %s" for column, _ in self._assignments)
        query = f"UPDATE {self.table_sql} SET {assignments}{self.where_clause()}"
        params = [value for _, value in self._assignments] + list(self.bindings)
        return query, params

    def execute(self) -> int:
        """Run the UPDATE; returns the number of rows changed."""
        query, params = self.to_sql()
        return self.connection.execute(query, params)


class Deleter(QueryBuilder):
    """Builds and runs a DELETE over the rows matching its conditions."""

    def to_sql(self) -> Tuple[str, List[Any]]:
        return f"DELETE FROM {self.table_sql}{self.where_clause()}", list(self.bindings)

    def execute(self) -> int:
        """Run the DELETE; returns the number of rows removed."""
        query, params = self.to_sql()
        return self.connection.execute(query, params)


# ============================================================================
# RELATION
# ============================================================================

class Relation(QueryBuilder):
    """
    Table-scoped entry point.

    Conditions narrowed on a relation carry over to the selector, updater and
    deleter derived from it. Generated subclasses point the class attributes
    at their generated builder subclasses.
    """

    selector_class = Selector
    updater_class = Updater
    deleter_class = Deleter
    inserter_class = None

    def selector(self):
        return self._copy_into(self.selector_class)

    def updater(self):
        return self._copy_into(self.updater_class)

    def deleter(self):
        return self._copy_into(self.deleter_class)

    def inserter(self, on_conflict: OnConflict = OnConflict.NONE, skip_auto_id: bool = False):
        inserter_class = self.inserter_class or Inserter
        return inserter_class(self.connection, self.schema, on_conflict, skip_auto_id)

    def count(self) -> int:
        return self.selector().count()

    def to_list(self) -> List[Any]:
        return self.selector().to_list()

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())


# ============================================================================
# INSERT
# ============================================================================

def resolve_conflict(
    schema: TableDefinition,
    on_conflict: OnConflict,
) -> Tuple[OnConflict, Optional[ColumnDefinition]]:
    """
    Effective policy and the column it was declared on.

    NONE falls back to the first column carrying its own policy.
    """
    if on_conflict != OnConflict.NONE:
        return on_conflict, None
    for column in schema.columns:
        if column.on_conflict != OnConflict.NONE:
            return column.on_conflict, column
    return OnConflict.NONE, None


class Inserter(Generic[M]):
    """
    Prepared INSERT for one table.

    Args:
        connection: DatabaseConnection the statement runs on
        schema: Target table
        on_conflict: Uniqueness conflict policy (NONE = column default)
        skip_auto_id: Write the model's explicit identity value instead of
            letting the database assign it (bulk restore / import)
    """

    def __init__(
        self,
        connection,
        schema: TableDefinition,
        on_conflict: OnConflict = OnConflict.NONE,
        skip_auto_id: bool = False,
    ):
        self.connection = connection
        self.schema = schema
        self.on_conflict = OnConflict(on_conflict)
        self.skip_auto_id = skip_auto_id
        self.policy, self._policy_column = resolve_conflict(schema, self.on_conflict)
        self.columns: Tuple[ColumnDefinition, ...] = tuple(
            c for c in schema.columns if skip_auto_id or not c.auto_id
        )
        self._sql = self._build_sql()

    @property
    def sql(self) -> str:
        return self._sql

    def _conflict_clause(self) -> str:
        if self.policy == OnConflict.IGNORE:
            return " ON CONFLICT DO NOTHING"
        if self.policy != OnConflict.REPLACE:
            # ABORT, FAIL and ROLLBACK let the statement raise
            return ""

        # the primary key is the only unique constraint the generated DDL declares
        target = self.schema.primary_key
        if target is None:
            declared_on = (
                f" (declared on column {self._policy_column.column_name!r})"
                if self._policy_column is not None else ""
            )
            raise ValueError(
                f"REPLACE on {self.schema.table_name}{declared_on} needs a primary key "
                f"to use as the ON CONFLICT target"
            )
        target_sql = quote_identifier(target.column_name)
        updates = [
            quote_identifier(c.column_name) for c in self.columns
            if c.column_name != target.column_name
        ]
        if not updates:
            return f" ON CONFLICT ({target_sql}) DO NOTHING"
        assignments = ", ".join(f"{col} = EXCLUDED.{col}" for col in updates)
        return f" ON CONFLICT ({target_sql}) DO UPDATE SET {assignments}"

    def _build_sql(self) -> str:
        table = quote_identifier(self.schema.table_name)
        if self.columns:
            names = ", ".join(quote_identifier(c.column_name) for c in self.columns)
            placeholders = ", ".join(["%s"] * len(self.columns))
            query = f"INSERT INTO {table} ({names}) VALUES ({placeholders})"
        else:
            query = f"INSERT INTO {table} DEFAULT VALUES"
        query += self._conflict_clause()
        pk = self.schema.primary_key
        if pk is not None:
            query += f" RETURNING {quote_identifier(pk.column_name)}"
        return query

    def values_of(self, model: M) -> List[Any]:
        return [getattr(model, c.name) for c in self.columns]

    def execute(self, model: M) -> Optional[Any]:
        """
        Insert one model.

        Returns:
            Primary key of the written row, or None when the table has no
            primary key or the conflict policy skipped the row
        """
        return self.connection.insert(self.sql, self.values_of(model))

    def execute_all(self, models: Sequence[M]) -> List[Optional[Any]]:
        return [self.execute(model) for model in models]

    def __repr__(self) -> str:
        return (
            f"Inserter(table={self.schema.table_name!r}, policy={self.policy.value}, "
            f"skip_auto_id={self.skip_auto_id})"
        )


__all__ = [
    "ALWAYS_FALSE",
    "ALWAYS_TRUE",
    "QueryBuilder",
    "Selector",
    "Updater",
    "Deleter",
    "Relation",
    "Inserter",
    "resolve_conflict",
]

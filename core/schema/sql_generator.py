# ============================================================================
# SCHEMA TO SQL GENERATOR
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - DDL generation from the schema model
# PURPOSE: Render CREATE TABLE / CREATE INDEX text and assemble tables
# CREATED: 19 OCT 2026
# EXPORTS: SqlGenerator
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema to PostgreSQL DDL Generator.

Renders DDL text for a table from its ordered columns. The text is the
input of the schema fingerprint, so the output for a given column list is
fixed:

    CREATE TABLE IF NOT EXISTS "<table>" (<column>, <column>, ...)
    CREATE INDEX IF NOT EXISTS "idx_<table>_<column>_<digest>" ON "<table>" ("<column>")

Indexes are emitted for indexed non-primary-key columns in column order;
primary keys are already indexed by their constraint.

Usage:
    generator = SqlGenerator()
    table = generator.build_table(
        table_name="users",
        model_class_name="User",
        columns=[...],
    )
    table.create_table_statement
"""

import logging
from typing import List, Optional, Sequence

from core.models import ColumnDefinition, DatabaseDefinition, TableDefinition
from core.schema.ddl_utils import ColumnBuilder, IndexBuilder, quote_identifier

# Setup logger
logger = logging.getLogger(__name__)


class SqlGenerator:
    """
    Render DDL text for tables in the schema model.

    Stateless: the same columns always produce the same text.
    """

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def create_table_statement(
        self,
        table_name: str,
        columns: Sequence[ColumnDefinition],
    ) -> str:
        """
        Generate CREATE TABLE text.

        Args:
            table_name: SQL table name
            columns: Columns in declaration order

        Returns:
            CREATE TABLE statement text
        """
        column_sql = ", ".join(ColumnBuilder.definition(c) for c in columns)
        return f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ({column_sql})"

    def create_index_statements(
        self,
        table_name: str,
        columns: Sequence[ColumnDefinition],
    ) -> List[str]:
        """
        Generate CREATE INDEX text for every indexed non-primary-key column.

        Args:
            table_name: SQL table name
            columns: Columns in declaration order

        Returns:
            List of CREATE INDEX statements in column order
        """
        return [
            IndexBuilder.btree(table_name, [column.column_name])
            for column in columns
            if column.indexed and not column.primary_key
        ]

    # =========================================================================
    # SCHEMA ASSEMBLY
    # =========================================================================

    def build_table(
        self,
        table_name: str,
        model_class_name: str,
        columns: Sequence[ColumnDefinition],
        model_module: str = "",
        **class_names: str,
    ) -> TableDefinition:
        """
        Assemble a TableDefinition with its DDL text filled in.

        Args:
            table_name: SQL table name
            model_class_name: Model class the rows materialize into
            columns: Columns in declaration order
            model_module: Import path of the model class
            **class_names: Optional overrides (relation_class_name, ...)

        Returns:
            Immutable TableDefinition
        """
        table = TableDefinition(
            table_name=table_name,
            model_class_name=model_class_name,
            model_module=model_module,
            columns=tuple(columns),
            create_table_statement=self.create_table_statement(table_name, columns),
            create_index_statements=tuple(self.create_index_statements(table_name, columns)),
            **class_names,
        )
        logger.debug(
            f"Generated table {table_name} ({len(table.columns)} columns, "
            f"{len(table.create_index_statements)} indexes)"
        )
        return table

    def build_database(
        self,
        package_name: str,
        class_name: str,
        tables: Sequence[TableDefinition],
    ) -> DatabaseDefinition:
        """Assemble a DatabaseDefinition from already built tables."""
        database = DatabaseDefinition(
            package_name=package_name,
            class_name=class_name,
            tables=tuple(tables),
        )
        logger.info(f"Assembled database {package_name}.{class_name} with {len(database.tables)} tables")
        return database

    def generate_all(self, database: DatabaseDefinition, table_name: Optional[str] = None) -> List[str]:
        """
        All DDL statements of a database, in fingerprint order.

        Args:
            database: Compiled database
            table_name: Restrict to a single table

        Returns:
            CREATE TABLE then CREATE INDEX text, table by table
        """
        statements: List[str] = []
        for table in database.tables:
            if table_name is not None and table.table_name != table_name:
                continue
            statements.extend(table.all_statements())
        return statements


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ['SqlGenerator']

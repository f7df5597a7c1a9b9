# ============================================================================
# DATABASE MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core model - Database schema
# PURPOSE: Ordered set of tables compiled into one database handle
# CREATED: 19 OCT 2026
# EXPORTS: DatabaseDefinition
# DEPENDENCIES: pydantic
# ============================================================================
"""
Database Model

The root of the schema model. Table order is part of the schema identity:
reordering tables changes the fingerprint.
"""

from typing import Dict, Tuple

from pydantic import BaseModel, Field, model_validator

from core.models.table import TableDefinition


class DatabaseDefinition(BaseModel):
    """A compiled database: package, handle class name and ordered tables."""

    model_config = {"frozen": True}

    package_name: str = Field(..., min_length=1, description="Module the handle is generated into")
    class_name: str = Field(..., min_length=1, description="Name of the generated handle class")
    tables: Tuple[TableDefinition, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_generated_names(self) -> "DatabaseDefinition":
        """Table names and model names must each map to one table."""
        seen_tables = set()
        models: Dict[str, str] = {}
        for table in self.tables:
            if table.table_name in seen_tables:
                raise ValueError(f"Duplicate table {table.table_name!r}")
            seen_tables.add(table.table_name)

            other = models.get(table.model_snake_name)
            if other is not None:
                raise ValueError(
                    f"Tables {other!r} and {table.table_name!r} both generate "
                    f"'{table.model_snake_name}' access methods"
                )
            models[table.model_snake_name] = table.table_name
        return self

    def get_table(self, table_name: str) -> TableDefinition:
        """
        Look up a table by SQL name.

        Raises:
            KeyError: If the table is not declared
        """
        for table in self.tables:
            if table.table_name == table_name:
                return table
        raise KeyError(f"Database {self.class_name} has no table {table_name!r}")


__all__ = ["DatabaseDefinition"]

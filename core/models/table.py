# ============================================================================
# TABLE MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core model - Table schema
# PURPOSE: Immutable description of one table and its DDL text
# CREATED: 19 OCT 2026
# EXPORTS: TableDefinition, snake_case
# DEPENDENCIES: pydantic
# ============================================================================
"""
Table Model

A TableDefinition owns its ordered columns, the names of the classes the
compiler generates for it, and the exact CREATE TABLE / CREATE INDEX text
the fingerprint is computed over.

Generated class names default from the model name:
    model_class_name="User" -> UserRelation, UserSelector, UserUpdater,
                               UserDeleter, UserInserter
"""

import re
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from core.models.column import ColumnDefinition

_GENERATED_SUFFIXES = {
    "relation_class_name": "Relation",
    "selector_class_name": "Selector",
    "updater_class_name": "Updater",
    "deleter_class_name": "Deleter",
    "inserter_class_name": "Inserter",
}


def snake_case(name: str) -> str:
    """Convert a CamelCase class name to snake_case (BlogPost -> blog_post)."""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


class TableDefinition(BaseModel):
    """
    One table of a database.

    Column order is significant: it drives DDL text, operation order and
    therefore the schema fingerprint.
    """

    model_config = {"frozen": True}

    table_name: str = Field(..., min_length=1)
    columns: Tuple[ColumnDefinition, ...] = Field(default_factory=tuple)

    # Generated type names
    model_class_name: str = Field(..., min_length=1)
    model_module: str = Field(
        default="",
        description="Import path of the model class referenced by generated code"
    )
    relation_class_name: str = ""
    selector_class_name: str = ""
    updater_class_name: str = ""
    deleter_class_name: str = ""
    inserter_class_name: str = ""

    # DDL text (fingerprint input)
    create_table_statement: str = Field(..., min_length=1)
    create_index_statements: Tuple[str, ...] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _default_class_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("model_class_name"):
            model = data["model_class_name"]
            filled = dict(data)
            for key, suffix in _GENERATED_SUFFIXES.items():
                if not filled.get(key):
                    filled[key] = f"{model}{suffix}"
            return filled
        return data

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @property
    def model_snake_name(self) -> str:
        """Model name used in access-surface method names."""
        return snake_case(self.model_class_name)

    @property
    def primary_key(self) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.primary_key:
                return column
        return None

    @property
    def auto_id_column(self) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.auto_id:
                return column
        return None

    def get_column(self, name: str) -> ColumnDefinition:
        """
        Look up a column by attribute name or SQL column name.

        Raises:
            KeyError: If no column matches
        """
        for column in self.columns:
            if column.name == name or column.column_name == name:
                return column
        raise KeyError(f"Table {self.table_name} has no column {name!r}")

    def all_statements(self) -> List[str]:
        """CREATE TABLE followed by every CREATE INDEX, in declaration order."""
        return [self.create_table_statement, *self.create_index_statements]


__all__ = ["TableDefinition", "snake_case"]

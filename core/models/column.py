# ============================================================================
# COLUMN MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core model - Column metadata
# PURPOSE: Immutable description of one table column
# CREATED: 19 OCT 2026
# EXPORTS: ColumnDefinition
# DEPENDENCIES: pydantic
# ============================================================================
"""
Column Model

A ColumnDefinition is produced once by the parsing front end and never
mutated. The compiler reads it to decide which condition operations,
DDL tokens and parameter annotations a column receives.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, model_validator

from core.contracts import OnConflict, StorageKind


class ColumnDefinition(BaseModel):
    """
    One column of a table.

    `name` is the attribute name used for generated method names,
    `column_name` is the SQL identifier (defaults to `name`).
    """

    model_config = {"frozen": True}

    name: str = Field(..., min_length=1, description="Attribute name on the model")
    column_name: str = Field(default="", description="SQL identifier of the column")
    storage_kind: StorageKind = Field(..., description="Storage taxonomy of the column")

    nullable: bool = Field(default=False)
    indexed: bool = Field(default=False)
    primary_key: bool = Field(default=False)
    auto_id: bool = Field(
        default=False,
        description="Identity column assigned by the database on insert"
    )
    on_conflict: OnConflict = Field(
        default=OnConflict.NONE,
        description="Column-level conflict policy used when an insert passes NONE"
    )

    @model_validator(mode="before")
    @classmethod
    def _default_column_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("column_name"):
            data = {**data, "column_name": data.get("name", "")}
        return data

    @property
    def is_primitive(self) -> bool:
        """
        Check if generated parameters use an unboxed type.

        Nullable primitives are boxed: they must be able to hold None.
        """
        return self.storage_kind.is_primitive() and not self.nullable

    @property
    def python_type(self) -> type:
        return self.storage_kind.python_type

    @property
    def has_condition_operations(self) -> bool:
        """Check if the condition compiler derives operations for this column."""
        return self.indexed or self.primary_key

    def to_summary(self) -> Dict[str, Any]:
        """Short dict for log lines."""
        return {
            "column": self.column_name,
            "kind": self.storage_kind.value,
            "nullable": self.nullable,
            "indexed": self.indexed,
            "primary_key": self.primary_key,
        }


__all__ = ["ColumnDefinition"]

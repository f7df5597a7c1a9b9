# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Model exports
# PURPOSE: Central export point for the schema model
# CREATED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Immutable Pydantic models describing a schema:
    DatabaseDefinition -> TableDefinition -> ColumnDefinition

The parsing front end produces them once; the compiler only reads them.
"""

from core.models.column import ColumnDefinition
from core.models.table import TableDefinition, snake_case
from core.models.database import DatabaseDefinition

__all__ = [
    "ColumnDefinition",
    "TableDefinition",
    "DatabaseDefinition",
    "snake_case",
]

# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core module initialization
# PURPOSE: Export contracts, schema model and DDL utilities
# CREATED: 19 OCT 2026
# ============================================================================

from core.contracts import OnConflict, StorageKind
from core.models import (
    ColumnDefinition,
    DatabaseDefinition,
    TableDefinition,
)
from core.schema import SqlGenerator, quote_identifier, unquote_identifier

__all__ = [
    # Enums
    "StorageKind",
    "OnConflict",
    # Models
    "ColumnDefinition",
    "TableDefinition",
    "DatabaseDefinition",
    # Schema
    "SqlGenerator",
    "quote_identifier",
    "unquote_identifier",
]

# ============================================================================
# SCHEMA MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - DDL text generation from the schema model
# PURPOSE: Identifier quoting and CREATE TABLE / CREATE INDEX rendering
# CREATED: 19 OCT 2026
# ============================================================================

from core.schema.ddl_utils import (
    ColumnBuilder,
    IndexBuilder,
    TYPE_MAP,
    SERIAL_TYPE_MAP,
    get_postgres_type,
    index_name_of,
    quote_identifier,
    unquote_identifier,
)
from core.schema.sql_generator import SqlGenerator

__all__ = [
    # Generator
    "SqlGenerator",
    # Utilities
    "ColumnBuilder",
    "IndexBuilder",
    "TYPE_MAP",
    "SERIAL_TYPE_MAP",
    "get_postgres_type",
    "index_name_of",
    "quote_identifier",
    "unquote_identifier",
]

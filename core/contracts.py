# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Foundation - Core enums for the schema model
# PURPOSE: Column storage kinds and insert conflict policies
# CREATED: 19 OCT 2026
# EXPORTS: StorageKind, OnConflict, NUMERIC_KINDS, PRIMITIVE_KINDS
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the schema compiler.

These enums cross every boundary of the system:
- Schema model (column metadata produced by the parsing front end)
- Compiler (condition rules, parameter annotations)
- Runtime (PostgreSQL types, INSERT conflict clauses)
"""

from enum import Enum
from typing import FrozenSet


# ============================================================================
# STORAGE KINDS
# ============================================================================

class StorageKind(str, Enum):
    """
    Storage taxonomy of a column.

    Numeric kinds receive ordering conditions (lt/le/gt/ge).
    Primitive kinds cannot represent absence unless the column is nullable.
    """
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BLOB = "blob"

    def is_numeric(self) -> bool:
        """Check if values of this kind have a numeric ordering."""
        return self in NUMERIC_KINDS

    def is_primitive(self) -> bool:
        """Check if this kind maps to an unboxed value type."""
        return self in PRIMITIVE_KINDS

    def is_integral(self) -> bool:
        """Check if this kind can back a generated identity column."""
        return self in (StorageKind.SHORT, StorageKind.INT, StorageKind.LONG)

    @property
    def python_type(self) -> type:
        """Python type that holds values of this kind."""
        return _PYTHON_TYPES[self]


NUMERIC_KINDS: FrozenSet[StorageKind] = frozenset({
    StorageKind.BYTE,
    StorageKind.SHORT,
    StorageKind.INT,
    StorageKind.LONG,
    StorageKind.FLOAT,
    StorageKind.DOUBLE,
})

PRIMITIVE_KINDS: FrozenSet[StorageKind] = NUMERIC_KINDS | {StorageKind.BOOLEAN}

_PYTHON_TYPES = {
    StorageKind.BOOLEAN: bool,
    StorageKind.BYTE: int,
    StorageKind.SHORT: int,
    StorageKind.INT: int,
    StorageKind.LONG: int,
    StorageKind.FLOAT: float,
    StorageKind.DOUBLE: float,
    StorageKind.STRING: str,
    StorageKind.BLOB: bytes,
}


# ============================================================================
# CONFLICT POLICIES
# ============================================================================

class OnConflict(str, Enum):
    """
    Resolution strategy applied when an INSERT violates a uniqueness constraint.

    PostgreSQL has no per-statement OR clause, so the runtime maps:
        IGNORE   -> ON CONFLICT DO NOTHING
        REPLACE  -> ON CONFLICT (<key>) DO UPDATE SET ...
        ABORT, FAIL, ROLLBACK -> plain INSERT (the statement raises)
        NONE     -> the column-level default policy, if any
    """
    ABORT = "abort"
    NONE = "none"
    REPLACE = "replace"
    ROLLBACK = "rollback"
    FAIL = "fail"
    IGNORE = "ignore"

    def has_conflict_clause(self) -> bool:
        """Check if this policy renders an ON CONFLICT clause."""
        return self in (OnConflict.IGNORE, OnConflict.REPLACE)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StorageKind",
    "OnConflict",
    "NUMERIC_KINDS",
    "PRIMITIVE_KINDS",
]

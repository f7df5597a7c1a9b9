# ============================================================================
# SCHEMA FINGERPRINT
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Content hash of the schema DDL
# PURPOSE: SHA-256 over ordered CREATE TABLE / CREATE INDEX text
# CREATED: 19 OCT 2026
# EXPORTS: bytes_to_hex, SchemaDigest, SchemaFingerprintResult,
#          compute_schema_fingerprint, fingerprint_database
# DEPENDENCIES: hashlib, pydantic
# ============================================================================
"""
Schema Fingerprint

The fingerprint is the only signal the migrator uses to decide whether the
persisted schema matches the declared one. For each table in database
order, the UTF-8 bytes of the CREATE TABLE statement and then every CREATE
INDEX statement (declaration order) are fed into one SHA-256 digest; the
result is encoded as uppercase hexadecimal.

Properties:
- identical ordered DDL text -> identical fingerprint
- any change to any statement, or to table order -> different fingerprint

Usage:
    from compiler.fingerprint import compute_schema_fingerprint

    SCHEMA_HASH = compute_schema_fingerprint(database)
"""

import hashlib
from typing import Iterable, Tuple

from pydantic import BaseModel, Field

from core.models import DatabaseDefinition, TableDefinition

HEX_TABLE = "0123456789ABCDEF"


def bytes_to_hex(data: bytes) -> str:
    """Encode bytes as uppercase hexadecimal."""
    return "".join(HEX_TABLE[b >> 4] + HEX_TABLE[b & 0x0F] for b in data)


class SchemaDigest:
    """
    Immutable SHA-256 accumulator over DDL statements.

    update() never touches the receiver; it returns a new accumulator, so a
    digest can be shared or forked freely and is finalised with hexdigest().
    """

    __slots__ = ("_hash",)

    def __init__(self, _hash=None):
        self._hash = _hash if _hash is not None else hashlib.sha256()

    def update(self, statement: str) -> "SchemaDigest":
        forked = self._hash.copy()
        forked.update(statement.encode("utf-8"))
        return SchemaDigest(forked)

    def update_all(self, statements: Iterable[str]) -> "SchemaDigest":
        digest = self
        for statement in statements:
            digest = digest.update(statement)
        return digest

    def digest(self) -> bytes:
        return self._hash.copy().digest()

    def hexdigest(self) -> str:
        return bytes_to_hex(self.digest())


def table_fingerprint(table: TableDefinition) -> str:
    """Fingerprint of a single table's statements."""
    return SchemaDigest().update_all(table.all_statements()).hexdigest()


def compute_schema_fingerprint(database: DatabaseDefinition) -> str:
    """
    Fingerprint of every statement of a database, in table order.

    Args:
        database: Compiled database

    Returns:
        64-character uppercase hex SHA-256
    """
    digest = SchemaDigest()
    for table in database.tables:
        digest = digest.update_all(table.all_statements())
    return digest.hexdigest()


class SchemaFingerprintResult(BaseModel):
    """
    Fingerprint plus a per-table breakdown for diagnosing drift.
    """

    model_config = {"frozen": True}

    fingerprint: str = Field(..., description="SHA256 hex digest of all DDL statements")
    table_count: int = Field(..., ge=0)
    column_count: int = Field(..., ge=0)
    statement_count: int = Field(..., ge=0)
    per_table_hashes: Tuple[Tuple[str, str], ...] = Field(
        ..., description="(table_name, hash) pairs in database order"
    )


def fingerprint_database(database: DatabaseDefinition) -> SchemaFingerprintResult:
    """Compute the fingerprint together with its per-table breakdown."""
    return SchemaFingerprintResult(
        fingerprint=compute_schema_fingerprint(database),
        table_count=len(database.tables),
        column_count=sum(len(t.columns) for t in database.tables),
        statement_count=sum(len(t.all_statements()) for t in database.tables),
        per_table_hashes=tuple((t.table_name, table_fingerprint(t)) for t in database.tables),
    )


__all__ = [
    "HEX_TABLE",
    "bytes_to_hex",
    "SchemaDigest",
    "SchemaFingerprintResult",
    "compute_schema_fingerprint",
    "fingerprint_database",
    "table_fingerprint",
]

# ============================================================================
# DDL UTILITIES
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - DRY utilities for SQL DDL text
# PURPOSE: Identifier quoting, type mapping, column and index builders
# CREATED: 19 OCT 2026
# EXPORTS: quote_identifier, unquote_identifier, IndexBuilder, ColumnBuilder,
#          TYPE_MAP, SERIAL_TYPE_MAP, get_postgres_type, index_name_of
# DEPENDENCIES: none
# ============================================================================
"""
DDL Utilities - Shared SQL Text Patterns.

Everything here returns plain strings. The schema fingerprint is computed
over this text, so every builder emits tokens in one fixed order and never
depends on a live connection.

Usage:
    from core.schema.ddl_utils import quote_identifier, IndexBuilder

    quote_identifier('user"s')           # '"user""s"'
    IndexBuilder.btree('users', ['email'])
    # 'CREATE INDEX IF NOT EXISTS "idx_users_email_<digest>" ON "users" ("email")'
"""

import hashlib
import re
from typing import List, Optional, Sequence, Union

from core.contracts import StorageKind
from core.models.column import ColumnDefinition

QUOTE = '"'

# PostgreSQL truncates identifiers longer than NAMEDATALEN - 1 bytes
MAX_IDENTIFIER_BYTES = 63
INDEX_DIGEST_LENGTH = 8


# ============================================================================
# TYPE MAPPING
# ============================================================================

TYPE_MAP = {
    StorageKind.BOOLEAN: "BOOLEAN",
    StorageKind.BYTE: "SMALLINT",
    StorageKind.SHORT: "SMALLINT",
    StorageKind.INT: "INTEGER",
    StorageKind.LONG: "BIGINT",
    StorageKind.FLOAT: "REAL",
    StorageKind.DOUBLE: "DOUBLE PRECISION",
    StorageKind.STRING: "TEXT",
    StorageKind.BLOB: "BYTEA",
}

# Identity columns assigned by the database
SERIAL_TYPE_MAP = {
    StorageKind.SHORT: "SMALLSERIAL",
    StorageKind.INT: "SERIAL",
    StorageKind.LONG: "BIGSERIAL",
}


def get_postgres_type(kind: StorageKind, auto_id: bool = False) -> str:
    """
    Map a storage kind to a PostgreSQL type.

    Args:
        kind: Column storage kind
        auto_id: True for identity columns (SERIAL family)

    Returns:
        PostgreSQL type string
    """
    if auto_id and kind in SERIAL_TYPE_MAP:
        return SERIAL_TYPE_MAP[kind]
    return TYPE_MAP[kind]


# ============================================================================
# IDENTIFIER QUOTING
# ============================================================================

def quote_identifier(name: str) -> str:
    """
    Quote an SQL identifier, doubling any embedded quote character.

    No legality check is made; identifiers are validated upstream.
    """
    return QUOTE + name.replace(QUOTE, QUOTE * 2) + QUOTE


def unquote_identifier(quoted: str) -> str:
    """
    Inverse of quote_identifier().

    Raises:
        ValueError: If the text is not a single quoted identifier
    """
    if len(quoted) < 2 or not (quoted.startswith(QUOTE) and quoted.endswith(QUOTE)):
        raise ValueError(f"Not a quoted identifier: {quoted!r}")

    body = quoted[1:-1]
    # Every quote inside the body must come in pairs
    if body.replace(QUOTE * 2, "").count(QUOTE):
        raise ValueError(f"Unescaped quote in identifier: {quoted!r}")
    return body.replace(QUOTE * 2, QUOTE)


_QUOTED_IDENTIFIER = r'"(?:[^"]|"")*"'
_INDEX_NAME_PATTERN = re.compile(
    r'^CREATE\s+(?:UNIQUE\s+)?INDEX\s+(?:IF\s+NOT\s+EXISTS\s+)?(' + _QUOTED_IDENTIFIER + r')'
)


def index_name_of(statement: str) -> str:
    """
    Read the index name back out of a CREATE INDEX statement.

    Raises:
        ValueError: If the statement does not name its index
    """
    match = _INDEX_NAME_PATTERN.match(statement.strip())
    if not match:
        raise ValueError(f"Cannot find index name in: {statement[:80]!r}")
    return unquote_identifier(match.group(1))


# ============================================================================
# COLUMN BUILDER
# ============================================================================

class ColumnBuilder:
    """
    Builder for column definitions inside CREATE TABLE.

    Token order: "<name>" <TYPE> [PRIMARY KEY] [NOT NULL]
    """

    @staticmethod
    def definition(column: ColumnDefinition) -> str:
        parts = [
            quote_identifier(column.column_name),
            get_postgres_type(column.storage_kind, auto_id=column.auto_id),
        ]
        if column.primary_key:
            parts.append("PRIMARY KEY")
        elif not column.nullable:
            parts.append("NOT NULL")
        return " ".join(parts)


# ============================================================================
# INDEX BUILDER
# ============================================================================

class IndexBuilder:
    """
    Builder for PostgreSQL index DDL text.

    All methods are static and return strings.
    """

    @staticmethod
    def _normalize_columns(columns: Union[str, Sequence[str]]) -> List[str]:
        """Convert single column or sequence to list."""
        if isinstance(columns, str):
            return [columns]
        return list(columns)

    @staticmethod
    def index_name(
        table: str,
        columns: Sequence[str],
        prefix: str = 'idx',
    ) -> str:
        """
        Generate an index name unique to (table, columns).

        Index names share one namespace per PostgreSQL schema, and a plain
        underscore join is ambiguous ("a_b"."c" vs "a"."b_c"), so the
        readable part is followed by a short digest of the exact names.
        The result stays within PostgreSQL's 63-byte identifier limit.
        """
        digest = hashlib.sha256(
            "\x00".join([table, *columns]).encode("utf-8")
        ).hexdigest()[:INDEX_DIGEST_LENGTH]
        readable = f"{prefix}_{table}_{'_'.join(columns)}"
        budget = MAX_IDENTIFIER_BYTES - len(digest) - 1
        readable = readable.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
        return f"{readable}_{digest}"

    @staticmethod
    def btree(
        table: str,
        columns: Union[str, Sequence[str]],
        name: Optional[str] = None,
    ) -> str:
        """
        Create B-tree index.

        Args:
            table: Table name
            columns: Column name(s) to index
            name: Optional custom index name

        Returns:
            CREATE INDEX statement text
        """
        cols = IndexBuilder._normalize_columns(columns)
        idx_name = name or IndexBuilder.index_name(table, cols)
        col_sql = ", ".join(quote_identifier(c) for c in cols)

        return (
            f"CREATE INDEX IF NOT EXISTS {quote_identifier(idx_name)} "
            f"ON {quote_identifier(table)} ({col_sql})"
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "QUOTE",
    "MAX_IDENTIFIER_BYTES",
    "INDEX_DIGEST_LENGTH",
    "TYPE_MAP",
    "SERIAL_TYPE_MAP",
    "get_postgres_type",
    "quote_identifier",
    "unquote_identifier",
    "index_name_of",
    "ColumnBuilder",
    "IndexBuilder",
]

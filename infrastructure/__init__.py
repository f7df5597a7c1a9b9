# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Runtime of generated database handles
# PURPOSE: Connection façade, query builders, migration, errors
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure module for the schema compiler runtime.

Provides:
- DatabaseConnection: pooled connection façade with transactions
- Selector / Updater / Deleter / Relation / Inserter: query builders
- SchemaMigrator: fingerprint-driven migration executor
- RepositoryError / SchemaViolation / TransactionAbort: typed failures

Usage:
    from infrastructure import DatabaseConnection

    conn = DatabaseConnection.connect(schemas=SCHEMAS, schema_hash=SCHEMA_HASH)
    conn.migrate()
"""

from infrastructure.base_repository import (
    BaseRepository,
    RepositoryError,
    SchemaViolation,
    TransactionAbort,
)
from infrastructure.locking import (
    ReadWriteLock,
    hash_to_lock_id,
)
from infrastructure.query import (
    Deleter,
    Inserter,
    QueryBuilder,
    Relation,
    Selector,
    Updater,
)
from infrastructure.migration import (
    MigrationResult,
    SchemaMigrator,
    StepResult,
)
from infrastructure.postgresql import (
    DatabaseConnection,
    TransactionTask,
    get_connection_string,
)

__all__ = [
    # Errors
    'BaseRepository',
    'RepositoryError',
    'SchemaViolation',
    'TransactionAbort',
    # Locking
    'ReadWriteLock',
    'hash_to_lock_id',
    # Query builders
    'QueryBuilder',
    'Selector',
    'Updater',
    'Deleter',
    'Relation',
    'Inserter',
    # Migration
    'SchemaMigrator',
    'MigrationResult',
    'StepResult',
    # PostgreSQL
    'DatabaseConnection',
    'TransactionTask',
    'get_connection_string',
]

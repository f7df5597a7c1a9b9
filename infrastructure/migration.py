# ============================================================================
# SCHEMA MIGRATOR - FINGERPRINT DRIVEN
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Migration executor
# PURPOSE: Compare SCHEMA_HASH with persisted metadata and apply DDL changes
# CREATED: 19 OCT 2026
# EXPORTS: SchemaMigrator, MigrationResult, StepResult
# DEPENDENCIES: psycopg
# ============================================================================
"""
SchemaMigrator - reconcile the declared schema with the database.

Workflow (one transaction, serialized across processes by an advisory lock):
1. Ensure the metadata table exists
2. Read the persisted fingerprint and DDL text
3. Equal fingerprint -> nothing to do
4. No metadata -> fresh install: run every CREATE statement
5. Different fingerprint -> per table:
   - table not persisted            -> create table and its indexes
   - CREATE TABLE text changed      -> SchemaViolation, or drop and
                                       recreate in destructive mode
   - CREATE INDEX set changed       -> drop removed, create added
6. Persist the new fingerprint and DDL text

The metadata table holds one row per (kind, name):
    ('hash',  'schema')       -> SCHEMA_HASH
    ('table', <table name>)   -> CREATE TABLE text
    ('index', <index name>)   -> CREATE INDEX text

Usage:
    migrator = SchemaMigrator(SCHEMAS, SCHEMA_HASH)
    with pool.connection() as conn:
        result = migrator.migrate(conn)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from psycopg import sql

from core.config import get_defaults
from core.logging import log_context
from core.models import TableDefinition
from core.schema.ddl_utils import index_name_of, quote_identifier

from infrastructure.base_repository import SchemaViolation
from infrastructure.locking import migration_lock

logger = logging.getLogger(__name__)

KIND_HASH = "hash"
KIND_TABLE = "table"
KIND_INDEX = "index"
HASH_KEY = "schema"


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass
class StepResult:
    """Result of a single migration step."""
    name: str
    status: str  # 'success', 'failed', 'skipped'
    message: str = ""
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MigrationResult:
    """Complete result of one migrate() call."""
    schema_hash: str
    persisted_hash: Optional[str]
    timestamp: str
    success: bool
    steps: List[StepResult] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(s.status == "success" for s in self.steps)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "schema_hash": self.schema_hash,
            "persisted_hash": self.persisted_hash,
            "timestamp": self.timestamp,
            "success": self.success,
            "steps": [
                {
                    "name": s.name,
                    "status": s.status,
                    "message": s.message,
                    "error": s.error,
                    "details": s.details,
                }
                for s in self.steps
            ],
            "summary": {
                "total_steps": len(self.steps),
                "successful": len([s for s in self.steps if s.status == "success"]),
                "skipped": len([s for s in self.steps if s.status == "skipped"]),
            },
        }


@dataclass
class PersistedSchema:
    """Metadata rows read back from the database."""
    schema_hash: Optional[str] = None
    tables: Dict[str, str] = field(default_factory=dict)
    indexes: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.schema_hash is None and not self.tables


# ============================================================================
# SCHEMA MIGRATOR
# ============================================================================

class SchemaMigrator:
    """
    Fingerprint-driven migration executor.

    Idempotent: a second migrate() against an unchanged schema only reads
    the metadata table.
    """

    def __init__(
        self,
        schemas: Sequence[TableDefinition],
        schema_hash: str,
        metadata_table: Optional[str] = None,
        destructive: Optional[bool] = None,
    ):
        defaults = get_defaults().migration
        self.schemas = tuple(schemas)
        self.schema_hash = schema_hash
        self.metadata_table = metadata_table or defaults.metadata_table
        self.destructive = defaults.destructive if destructive is None else destructive

    # =========================================================================
    # METADATA
    # =========================================================================

    def _metadata_identifier(self) -> sql.Identifier:
        return sql.Identifier(self.metadata_table)

    def _ensure_metadata_table(self, conn) -> None:
        conn.execute(
            sql.SQL("""
            CREATE TABLE IF NOT EXISTS {} (
                kind TEXT NOT NULL,
                name TEXT NOT NULL,
                content TEXT NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                PRIMARY KEY (kind, name)
            )
            """).format(self._metadata_identifier())
        )

    def read_persisted(self, conn) -> PersistedSchema:
        persisted = PersistedSchema()
        cur = conn.execute(
            sql.SQL("SELECT kind, name, content FROM {} ORDER BY kind, name").format(
                self._metadata_identifier()
            )
        )
        for kind, name, content in cur.fetchall():
            if kind == KIND_HASH and name == HASH_KEY:
                persisted.schema_hash = content
            elif kind == KIND_TABLE:
                persisted.tables[name] = content
            elif kind == KIND_INDEX:
                persisted.indexes[name] = content
        return persisted

    def _save_metadata(self, conn) -> None:
        table = self._metadata_identifier()
        conn.execute(sql.SQL("DELETE FROM {}").format(table))
        rows = [(KIND_HASH, HASH_KEY, self.schema_hash)]
        for schema in self.schemas:
            rows.append((KIND_TABLE, schema.table_name, schema.create_table_statement))
            for statement in schema.create_index_statements:
                rows.append((KIND_INDEX, index_name_of(statement), statement))
        insert = sql.SQL("INSERT INTO {} (kind, name, content) VALUES (%s, %s, %s)").format(table)
        with conn.cursor() as cur:
            cur.executemany(insert, rows)

    # =========================================================================
    # MIGRATION
    # =========================================================================

    def migrate(self, conn) -> MigrationResult:
        """
        Bring the database in line with the declared schemas.

        Args:
            conn: psycopg connection (not inside a transaction)

        Returns:
            MigrationResult describing every step taken

        Raises:
            SchemaViolation: A declared table differs from the persisted one
                and destructive mode is off
        """
        with log_context(operation="migrate"):
            with conn.transaction():
                lock_id = migration_lock(conn, self.metadata_table)
                self._ensure_metadata_table(conn)
                persisted = self.read_persisted(conn)

                result = MigrationResult(
                    schema_hash=self.schema_hash,
                    persisted_hash=persisted.schema_hash,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                    success=True,
                )

                if persisted.schema_hash == self.schema_hash:
                    result.steps.append(StepResult(
                        name="compare_fingerprint",
                        status="skipped",
                        message="Schema fingerprint unchanged",
                        details={"lock_id": lock_id},
                    ))
                    logger.debug(f"Schema up to date ({self.schema_hash[:12]})")
                    return result

                if persisted.is_empty:
                    result.steps.extend(self._install_fresh(conn))
                else:
                    result.steps.extend(self._apply_diff(conn, persisted))

                self._save_metadata(conn)
                result.steps.append(StepResult(
                    name="save_metadata",
                    status="success",
                    message=f"Saved fingerprint {self.schema_hash[:12]}",
                ))

        logger.info(
            f"Migrated schema {(persisted.schema_hash or 'none')[:12]} -> "
            f"{self.schema_hash[:12]} ({len(result.steps)} steps)"
        )
        return result

    def _install_fresh(self, conn) -> List[StepResult]:
        steps = []
        for schema in self.schemas:
            for statement in schema.all_statements():
                conn.execute(statement)
            steps.append(StepResult(
                name=f"create_table:{schema.table_name}",
                status="success",
                message=f"Created {schema.table_name}",
                details={"indexes": len(schema.create_index_statements)},
            ))
            logger.info(f"Created table {schema.table_name}")
        return steps

    def _apply_diff(self, conn, persisted: PersistedSchema) -> List[StepResult]:
        steps = []
        for schema in self.schemas:
            with log_context(table=schema.table_name):
                steps.extend(self._migrate_table(conn, schema, persisted))
        return steps

    def _migrate_table(
        self,
        conn,
        schema: TableDefinition,
        persisted: PersistedSchema,
    ) -> List[StepResult]:
        name = schema.table_name
        previous = persisted.tables.get(name)

        if previous is None:
            for statement in schema.all_statements():
                conn.execute(statement)
            logger.info(f"Created new table {name}")
            return [StepResult(name=f"create_table:{name}", status="success",
                               message=f"Created {name}")]

        if previous != schema.create_table_statement:
            if not self.destructive:
                raise SchemaViolation(
                    f"Table {name} changed and cannot be migrated without data loss "
                    f"(persisted fingerprint {persisted.schema_hash})",
                    table=name,
                    expected_hash=self.schema_hash,
                    persisted_hash=persisted.schema_hash,
                )
            conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(name)}")
            for statement in schema.all_statements():
                conn.execute(statement)
            logger.warning(f"Recreated table {name} (destructive)")
            return [StepResult(name=f"recreate_table:{name}", status="success",
                               message=f"Dropped and recreated {name}")]

        return self._migrate_indexes(conn, schema, persisted)

    def _migrate_indexes(
        self,
        conn,
        schema: TableDefinition,
        persisted: PersistedSchema,
    ) -> List[StepResult]:
        declared = {index_name_of(s): s for s in schema.create_index_statements}
        owner = f" ON {quote_identifier(schema.table_name)} ("
        previous = {
            name: statement for name, statement in persisted.indexes.items()
            if owner in statement
        }

        dropped = [n for n, s in previous.items() if declared.get(n) != s]
        created = [n for n, s in declared.items() if previous.get(n) != s]

        for name in dropped:
            conn.execute(f"DROP INDEX IF EXISTS {quote_identifier(name)}")
        for name in created:
            conn.execute(declared[name])

        if not dropped and not created:
            return [StepResult(name=f"indexes:{schema.table_name}", status="skipped",
                               message="Indexes unchanged")]

        logger.info(f"Indexes of {schema.table_name}: dropped {dropped}, created {created}")
        return [StepResult(
            name=f"indexes:{schema.table_name}",
            status="success",
            message=f"Dropped {len(dropped)}, created {len(created)}",
            details={"dropped": dropped, "created": created},
        )]


__all__ = [
    "SchemaMigrator",
    "MigrationResult",
    "StepResult",
    "PersistedSchema",
]

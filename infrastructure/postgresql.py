# ============================================================================
# POSTGRESQL CONNECTION INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Connection façade of generated database handles
# PURPOSE: Pooled connections, lazy migration, sync/async transactions
# CREATED: 19 OCT 2026
# EXPORTS: DatabaseConnection, get_connection_string, TransactionTask
# DEPENDENCIES: psycopg, psycopg_pool
# ============================================================================
"""
PostgreSQL Connection Infrastructure

Every generated database handle owns one DatabaseConnection:
- Connection pooling (psycopg_pool.ConnectionPool)
- Lazy, once-only migration on first access (SchemaMigrator)
- Readers-writer discipline across threads (ReadWriteLock)
- Transactions: blocking or submitted to a background executor

Transaction modes:
    transaction_sync(task)                 exclusive, blocks, SERIALIZABLE
    transaction_async(task)                exclusive, returns Future
    transaction_non_exclusive_sync(task)   readers may proceed, blocks
    transaction_non_exclusive_async(task)  readers may proceed, returns Future

A task is a zero-argument callable. Queries issued by builders on the
task's thread join the open transaction. Raising TransactionAbort inside a
task rolls back; any other exception also rolls back and is reported as
TransactionAbort chained to the original error. There is no cancellation:
a submitted task runs to completion or aborts.

Connection string priority:
1. Explicit conninfo argument
2. DATABASE_URL
3. POSTGRES_HOST / POSTGRES_PORT / POSTGRES_DB / POSTGRES_USER / POSTGRES_PASSWORD
"""

import importlib
import os
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from core.config import get_defaults
from core.logging import log_context
from core.models import TableDefinition
from core.schema.ddl_utils import quote_identifier

from infrastructure.base_repository import BaseRepository, TransactionAbort
from infrastructure.locking import ReadWriteLock
from infrastructure.migration import MigrationResult, SchemaMigrator
from infrastructure.query import Inserter, Selector

logger = logging.getLogger(__name__)

TransactionTask = Callable[[], Any]


def get_connection_string() -> str:
    """
    Build the connection string from the environment.

    Raises:
        ValueError: If neither DATABASE_URL nor POSTGRES_HOST/POSTGRES_DB is set
    """
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    host = os.environ.get("POSTGRES_HOST")
    database = os.environ.get("POSTGRES_DB")
    if not host or not database:
        raise ValueError(
            "Database connection not configured. "
            "Set DATABASE_URL, or POSTGRES_HOST and POSTGRES_DB environment variables."
        )

    port = os.environ.get("POSTGRES_PORT", "5432")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql://{credentials}@{host}:{port}/{database}?sslmode={sslmode}"


# ============================================================================
# DATABASE CONNECTION FAÇADE
# ============================================================================

class DatabaseConnection(BaseRepository):
    """
    Connection façade bound to one declared schema.

    Usage:
        conn = DatabaseConnection.connect(
            schemas=SCHEMAS, schema_hash=SCHEMA_HASH, models={"user": User},
        )
        conn.transaction_sync(lambda: ...)
        conn.close()
    """

    def __init__(
        self,
        pool: ConnectionPool,
        schemas: Sequence[TableDefinition],
        schema_hash: str,
        models: Optional[Dict[str, Type]] = None,
        migrator: Optional[SchemaMigrator] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        super().__init__()
        self.pool = pool
        self.schemas = tuple(schemas)
        self.schema_hash = schema_hash
        self._models: Dict[str, Type] = dict(models or {})
        self.migrator = migrator or SchemaMigrator(self.schemas, schema_hash)

        workers = get_defaults().connection.async_transaction_workers
        self._executor = executor or ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="db-transaction"
        )
        self._owns_executor = executor is None

        self._rw_lock = ReadWriteLock()
        self._migrate_lock = threading.Lock()
        self._migration: Optional[MigrationResult] = None
        self._local = threading.local()

    @classmethod
    def connect(
        cls,
        conninfo: Optional[str] = None,
        schemas: Sequence[TableDefinition] = (),
        schema_hash: str = "",
        models: Optional[Dict[str, Type]] = None,
        **kwargs,
    ) -> "DatabaseConnection":
        """Open a pool against conninfo (or the environment) and wrap it."""
        defaults = get_defaults().connection
        pool = ConnectionPool(
            conninfo or get_connection_string(),
            min_size=defaults.pool_min_size,
            max_size=defaults.pool_max_size,
            open=True,
        )
        logger.info(
            f"Opened connection pool (min={defaults.pool_min_size}, max={defaults.pool_max_size})"
        )
        return cls(pool, schemas, schema_hash, models=models, **kwargs)

    def get_schemas(self) -> List[TableDefinition]:
        return list(self.schemas)

    def get_schema(self, table_name: str) -> TableDefinition:
        for schema in self.schemas:
            if schema.table_name == table_name:
                return schema
        raise KeyError(f"No schema for table {table_name!r}")

    # =========================================================================
    # MIGRATION
    # =========================================================================

    def ensure_migrated(self) -> MigrationResult:
        """
        Run migration once; later calls return the first result.

        Raises:
            SchemaViolation: Persisted schema cannot be reconciled
            RepositoryError: Migration failed in the driver (no result is cached)
        """
        if self._migration is not None:
            return self._migration
        with self._migrate_lock:
            if self._migration is None:
                with self._error_context("migrate"), self._rw_lock.write():
                    with self.pool.connection() as conn:
                        self._migration = self.migrator.migrate(conn)
        return self._migration

    def migrate(self) -> MigrationResult:
        """Blocking migration; must not be called from a latency-sensitive context."""
        return self.ensure_migrated()

    def get_writable_database(self) -> "DatabaseConnection":
        self.ensure_migrated()
        return self

    # =========================================================================
    # STATEMENT EXECUTION
    # =========================================================================

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "conn", None) is not None

    @contextmanager
    def _connection(self, exclusive: bool):
        """
        Yield the connection a statement runs on.

        Inside a transaction this is the transaction's connection; otherwise
        a pooled connection held under the matching side of the lock.
        """
        current = getattr(self._local, "conn", None)
        if current is not None:
            yield current
            return
        self.ensure_migrated()
        with self._rw_lock.acquire(exclusive):
            with self.pool.connection() as conn:
                yield conn

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """Execute a write; returns the affected row count."""
        with self._error_context("execute"):
            with self._connection(exclusive=True) as conn:
                cur = conn.execute(query, params)
                return cur.rowcount

    def insert(self, query: str, params: Optional[Sequence[Any]] = None) -> Optional[Any]:
        """Execute an INSERT; returns the first RETURNING value, if any."""
        with self._error_context("insert"):
            with self._connection(exclusive=True) as conn:
                cur = conn.execute(query, params)
                if cur.description is None:
                    return None
                row = cur.fetchone()
                return row[0] if row else None

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        with self._error_context("fetch_all"):
            with self._connection(exclusive=False) as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    return cur.fetchall()

    def fetch_one(self, query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        with self._error_context("fetch_one"):
            with self._connection(exclusive=False) as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    return cur.fetchone()

    # =========================================================================
    # MODELS
    # =========================================================================

    def model_class(self, schema: TableDefinition) -> Type:
        """Registered model class of a table, imported from model_module if absent."""
        model = self._models.get(schema.table_name)
        if model is None:
            if not schema.model_module:
                raise KeyError(f"No model registered for table {schema.table_name!r}")
            module = importlib.import_module(schema.model_module)
            model = getattr(module, schema.model_class_name)
            self._models[schema.table_name] = model
        return model

    def new_model_from_row(self, schema: TableDefinition, row: Dict[str, Any]):
        """Materialize one row (keyed by column name) into the table's model."""
        data = {c.name: row[c.column_name] for c in schema.columns if c.column_name in row}
        return self.model_class(schema).model_validate(data)

    def create_model(self, schema: TableDefinition, factory: Callable[[], Any]):
        """
        Insert the model a factory produces and read back the stored row.

        Falls back to the factory's model when the row was skipped by a
        conflict policy or the table has no primary key.
        """
        model = factory()
        key = Inserter(self, schema).execute(model)
        pk = schema.primary_key
        if key is None or pk is None:
            return model
        stored = Selector(self, schema).where(f"{quote_identifier(pk.column_name)} = %s", key).first()
        return stored if stored is not None else model

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    def _run_transaction(self, task: TransactionTask, exclusive: bool) -> Any:
        mode = "exclusive" if exclusive else "non_exclusive"

        # Nested call on the same thread: run inside a savepoint
        current = getattr(self._local, "conn", None)
        if current is not None:
            with current.transaction():
                return task()

        self.ensure_migrated()
        with log_context(operation=f"transaction_{mode}"):
            with self._rw_lock.acquire(exclusive):
                with self.pool.connection() as conn:
                    self._local.conn = conn
                    try:
                        with conn.transaction():
                            if exclusive:
                                conn.execute("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE")
                            logger.debug(f"Transaction started ({mode})")
                            return task()
                    except TransactionAbort as e:
                        logger.warning(f"Transaction aborted ({mode}): {e}")
                        raise
                    except Exception as e:
                        logger.error(f"Transaction failed ({mode}): {e}")
                        raise TransactionAbort(
                            f"Transaction task failed: {e}",
                            operation=f"transaction_{mode}",
                        ) from e
                    finally:
                        self._local.conn = None

    def transaction_sync(self, task: TransactionTask) -> Any:
        """Run task in an exclusive transaction; blocks until it completes."""
        return self._run_transaction(task, exclusive=True)

    def transaction_non_exclusive_sync(self, task: TransactionTask) -> Any:
        """Run task in a non-exclusive transaction; blocks until it completes."""
        return self._run_transaction(task, exclusive=False)

    def transaction_async(self, task: TransactionTask) -> Future:
        """Submit task to run in an exclusive transaction."""
        return self._executor.submit(self._run_transaction, task, True)

    def transaction_non_exclusive_async(self, task: TransactionTask) -> Future:
        """Submit task to run in a non-exclusive transaction."""
        return self._executor.submit(self._run_transaction, task, False)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def close(self) -> None:
        """Wait for submitted transactions, then close the pool."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        self.pool.close()
        logger.info("Connection pool closed")

    def __enter__(self) -> "DatabaseConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DatabaseConnection",
    "TransactionTask",
    "get_connection_string",
]

# ============================================================================
# CONNECTION LOCKING
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Writer/reader discipline and migration lock
# PURPOSE: Serialize writers on one connection façade; one migrator at a time
# CREATED: 19 OCT 2026
# ============================================================================
"""
Connection Locking

Two layers of locking:

1. In-process readers-writer lock (ReadWriteLock):
   - Exclusive transactions and plain writes take the writer side
   - Non-exclusive transactions and plain reads take the reader side
   - Readers proceed concurrently; a writer waits for all readers and
     blocks new ones while it waits (no writer starvation)

2. PostgreSQL transaction-level advisory lock (migration_lock):
   - Held for the migration transaction so only one process migrates
   - Auto-released on COMMIT / ROLLBACK

Usage:
    lock = ReadWriteLock()
    with lock.write():
        ...

    with conn.transaction():
        migration_lock(conn, "schema_metadata")
        ...
"""

import hashlib
import logging
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)

MIGRATION_LOCK_PREFIX = "schema:migrate:"


class ReadWriteLock:
    """
    Writer-preferring readers-writer lock.

    Not reentrant: a thread holding either side must not acquire again.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self):
        """Hold the shared (reader) side."""
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        """Hold the exclusive (writer) side."""
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

    @contextmanager
    def acquire(self, exclusive: bool):
        """Hold the writer side if exclusive, else the reader side."""
        ctx = self.write() if exclusive else self.read()
        with ctx:
            yield


def hash_to_lock_id(key: str) -> int:
    """
    Convert string key to int64 for PostgreSQL advisory lock.

    PostgreSQL advisory locks use bigint keys. We hash our string
    keys to get consistent int64 values.
    """
    # Use first 8 bytes of SHA256, interpret as signed int64
    h = hashlib.sha256(key.encode()).digest()[:8]
    return int.from_bytes(h, byteorder='big', signed=True)


def migration_lock(conn, metadata_table: str) -> int:
    """
    Take the transaction-level advisory lock guarding schema migration.

    Must be called inside a transaction; released at COMMIT/ROLLBACK.

    Args:
        conn: psycopg connection with an open transaction
        metadata_table: Name of the schema metadata table (lock namespace)

    Returns:
        The lock id, for logging
    """
    lock_id = hash_to_lock_id(MIGRATION_LOCK_PREFIX + metadata_table)
    conn.execute("SELECT pg_advisory_xact_lock(%s)", (lock_id,))
    logger.debug(f"Acquired migration lock (lock_id={lock_id})")
    return lock_id


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ['ReadWriteLock', 'hash_to_lock_id', 'migration_lock', 'MIGRATION_LOCK_PREFIX']

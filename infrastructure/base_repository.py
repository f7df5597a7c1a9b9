# ============================================================================
# BASE REPOSITORY - ERROR HANDLING PATTERNS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Infrastructure - Error taxonomy and base repository
# PURPOSE: Typed failures of the generated access surface, error context
# CREATED: 19 OCT 2026
# ============================================================================
"""
Base Repository Patterns

Error taxonomy of the runtime:

    RepositoryError          storage operation failed (wraps driver errors)
    ├── SchemaViolation      persisted schema cannot be reconciled with the
    │                        declared one (raised at first access / migrate())
    └── TransactionAbort     a transaction task aborted; rolled back

Both typed errors are reported at the call site that triggered them and
are never wrapped a second time by the error context. Driver errors keep
their SQLSTATE so callers can tell a unique violation from a lost
connection without importing psycopg.
"""

import logging
from abc import ABC
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(
        self,
        message: str,
        operation: str = None,
        entity_id: str = None,
        sqlstate: str = None,
    ):
        self.operation = operation
        self.entity_id = entity_id
        self.sqlstate = sqlstate
        super().__init__(message)


class SchemaViolation(RepositoryError):
    """
    Raised when migration has insufficient information to reconcile a
    fingerprint mismatch (a declared table differs from the persisted one).
    """

    def __init__(
        self,
        message: str,
        table: str = None,
        expected_hash: str = None,
        persisted_hash: str = None,
    ):
        self.table = table
        self.expected_hash = expected_hash
        self.persisted_hash = persisted_hash
        super().__init__(message, operation="migrate", entity_id=table)


class TransactionAbort(RepositoryError):
    """Raised when a submitted transaction task aborts."""

    def __init__(self, message: str = "Transaction aborted", operation: str = "transaction"):
        super().__init__(message, operation=operation)


class BaseRepository(ABC):
    """Shared error handling for classes that talk to PostgreSQL."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def _error_context(self, operation: str, table: Optional[str] = None) -> Iterator[None]:
        """
        Re-raise driver and programming errors as RepositoryError.

        Typed repository errors pass through untouched.

        Example:
            with self._error_context("fetch_all", "users"):
                rows = cur.fetchall()
        """
        try:
            yield
        except RepositoryError:
            raise
        except psycopg.Error as e:
            target = f" on {table}" if table else ""
            message = f"{operation}{target} failed [{e.sqlstate or 'no sqlstate'}]: {e}"
            self.logger.error(message)
            raise RepositoryError(
                message, operation=operation, entity_id=table, sqlstate=e.sqlstate
            ) from e
        except Exception as e:
            target = f" on {table}" if table else ""
            message = f"{operation}{target} failed: {e}"
            self.logger.error(message)
            raise RepositoryError(message, operation=operation, entity_id=table) from e


__all__ = [
    "RepositoryError",
    "SchemaViolation",
    "TransactionAbort",
    "BaseRepository",
]

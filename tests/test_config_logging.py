# ============================================================================
# CONFIGURATION & LOGGING TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Tests - Defaults, environment overrides, structured logging
# PURPOSE: Verify config loading and logging context propagation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration & Logging Tests

Covers:
1. Built-in defaults and environment overrides
2. get_defaults() caching and reset_defaults()
3. log_context nesting and thread isolation
4. JSON and human formatters include context

Run with:
    pytest tests/test_config_logging.py -v
"""

import json
import logging
import threading

import pytest

from core.config import (
    ConnectionDefaults,
    GenerationDefaults,
    MigrationDefaults,
    get_defaults,
    reset_defaults,
)
from core.logging import (
    HumanFormatter,
    StructuredFormatter,
    configure_logging,
    get_current_context,
    get_logger,
    log_context,
)


@pytest.fixture(autouse=True)
def clean_defaults():
    reset_defaults()
    yield
    reset_defaults()


def make_record(message="hello"):
    return logging.LogRecord(
        name="compiler.test", level=logging.INFO, pathname=__file__, lineno=1,
        msg=message, args=(), exc_info=None,
    )


# ============================================================================
# CONFIGURATION
# ============================================================================

class TestDefaults:

    def test_builtin_values(self):
        assert ConnectionDefaults().pool_max_size == 10
        assert MigrationDefaults().metadata_table == "schema_metadata"
        assert MigrationDefaults().destructive is False
        assert GenerationDefaults().indent == "    "
        assert GenerationDefaults().runtime_package == "infrastructure"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("POOL_MIN_SIZE", "2")
        monkeypatch.setenv("POOL_MAX_SIZE", "20")
        monkeypatch.setenv("ASYNC_TRANSACTION_WORKERS", "4")
        monkeypatch.setenv("SCHEMA_METADATA_TABLE", "orm_meta")
        monkeypatch.setenv("SCHEMA_MIGRATION_DESTRUCTIVE", "yes")

        defaults = get_defaults()
        assert defaults.connection.pool_min_size == 2
        assert defaults.connection.pool_max_size == 20
        assert defaults.connection.async_transaction_workers == 4
        assert defaults.migration.metadata_table == "orm_meta"
        assert defaults.migration.destructive is True

    def test_cached_until_reset(self, monkeypatch):
        first = get_defaults()
        assert get_defaults() is first
        monkeypatch.setenv("POOL_MAX_SIZE", "3")
        assert get_defaults().connection.pool_max_size == first.connection.pool_max_size
        reset_defaults()
        assert get_defaults().connection.pool_max_size == 3

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            ConnectionDefaults(pool_min_size=5, pool_max_size=2)
        with pytest.raises(ValueError):
            ConnectionDefaults(async_transaction_workers=0)
        with pytest.raises(ValueError):
            MigrationDefaults(metadata_table=" ")

    def test_frozen(self):
        with pytest.raises(Exception):
            ConnectionDefaults().pool_max_size = 1


# ============================================================================
# LOGGING
# ============================================================================

class TestLogContext:

    def test_nesting_merges_parent(self):
        with log_context(database="AppDatabase"):
            with log_context(table="user", operation="compile"):
                context = get_current_context()
                assert context.database == "AppDatabase"
                assert context.table == "user"
            assert get_current_context().table is None
        assert get_current_context().database is None

    def test_thread_isolation(self):
        seen = {}

        def worker():
            seen["table"] = get_current_context().table

        with log_context(table="user"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join(timeout=5)
        assert seen["table"] is None

    def test_to_dict_drops_empty_fields(self):
        with log_context(table="user", extra={"k": 1}):
            assert get_current_context().to_dict() == {"table": "user", "k": 1}


class TestFormatters:

    def test_structured_includes_context(self):
        with log_context(table="user", operation="migrate"):
            data = json.loads(StructuredFormatter().format(make_record()))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["context"] == {"table": "user", "operation": "migrate"}

    def test_human_includes_context(self):
        with log_context(database="AppDatabase", table="user"):
            line = HumanFormatter().format(make_record())
        assert "[db=AppDatabase, table=user]" in line
        assert line.endswith("compiler.test [db=AppDatabase, table=user]: hello")

    def test_context_logger_attaches_context(self, caplog):
        logger = get_logger("compiler.test")
        with caplog.at_level(logging.INFO, logger="compiler.test"):
            with log_context(table="user"):
                logger.info("compiled")
        record = caplog.records[-1]
        assert record.extra["table"] == "user"

    def test_configure_logging_json(self, monkeypatch):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            monkeypatch.setenv("LOG_FORMAT", "json")
            configure_logging("DEBUG")
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[-1].formatter, StructuredFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


# ============================================================================
# VERSION
# ============================================================================

class TestVersion:

    def test_compiler_exports_version(self):
        import compiler
        from __version__ import __version__, __version_info__

        assert compiler.__version__ == __version__
        assert __version_info__ == tuple(int(x) for x in __version__.split("."))

# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for generation, connections and migration
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides defaults for source generation, the runtime connection façade and
the schema migrator. Runtime values can be overridden via environment
variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GenerationDefaults:
    """
    Defaults for generated source text.

    Not read from the environment: generated text must not vary between
    machines.
    """
    indent: str = "    "
    header: str = "Generated by the schema compiler. Do not edit."
    runtime_package: str = "infrastructure"


@dataclass(frozen=True)
class ConnectionDefaults:
    """
    Defaults for the runtime connection façade.

    Controls pool sizing and the background executor used by
    asynchronous transactions.
    """
    pool_min_size: int = 1
    pool_max_size: int = 10
    async_transaction_workers: int = 1

    def __post_init__(self):
        if self.pool_min_size < 0 or self.pool_max_size < max(self.pool_min_size, 1):
            raise ValueError(
                f"invalid pool size: min={self.pool_min_size} max={self.pool_max_size}"
            )
        if self.async_transaction_workers < 1:
            raise ValueError("async_transaction_workers must be at least 1")

    @classmethod
    def from_env(cls) -> "ConnectionDefaults":
        """Create from environment variables."""
        return cls(
            pool_min_size=int(os.getenv("POOL_MIN_SIZE", 1)),
            pool_max_size=int(os.getenv("POOL_MAX_SIZE", 10)),
            async_transaction_workers=int(os.getenv("ASYNC_TRANSACTION_WORKERS", 1)),
        )


@dataclass(frozen=True)
class MigrationDefaults:
    """
    Defaults for fingerprint-driven migration.

    destructive=True allows DROP + CREATE of tables whose definition
    changed (data loss). When False, a changed table is a SchemaViolation.
    """
    metadata_table: str = "schema_metadata"
    destructive: bool = False

    def __post_init__(self):
        if not self.metadata_table.strip():
            raise ValueError("metadata_table must not be empty")

    @classmethod
    def from_env(cls) -> "MigrationDefaults":
        """Create from environment variables."""
        return cls(
            metadata_table=os.getenv("SCHEMA_METADATA_TABLE", "schema_metadata"),
            destructive=_env_bool("SCHEMA_MIGRATION_DESTRUCTIVE", False),
        )


@dataclass(frozen=True)
class Defaults:
    """All defaults in one place."""
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)
    connection: ConnectionDefaults = field(default_factory=ConnectionDefaults)
    migration: MigrationDefaults = field(default_factory=MigrationDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            generation=GenerationDefaults(),
            connection=ConnectionDefaults.from_env(),
            migration=MigrationDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "GenerationDefaults",
    "ConnectionDefaults",
    "MigrationDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]

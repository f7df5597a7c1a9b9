# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the schema compiler
and its runtime.
"""

from core.config.defaults import (
    GenerationDefaults,
    ConnectionDefaults,
    MigrationDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "GenerationDefaults",
    "ConnectionDefaults",
    "MigrationDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]

# ============================================================================
# COMPILER MODULE
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler module initialization
# PURPOSE: Export compiler stages and the compiler entry point
# CREATED: 19 OCT 2026
# ============================================================================
"""
Schema compiler.

Usage:
    from compiler import SchemaCompiler

    result = SchemaCompiler(database).compile()
"""

from __version__ import __version__
from compiler.operations import (
    OperationKind,
    OperationSpec,
    OperationProvider,
    ParameterSpec,
)
from compiler.conditions import ConditionCompiler
from compiler.fingerprint import (
    SchemaDigest,
    SchemaFingerprintResult,
    bytes_to_hex,
    compute_schema_fingerprint,
    fingerprint_database,
)
from compiler.access_surface import AccessSurfaceCompiler
from compiler.writer import SourceWriter
from compiler.generator import CompilationResult, SchemaCompiler, compile_database

__all__ = [
    "__version__",
    # Operation model
    "OperationKind",
    "OperationSpec",
    "OperationProvider",
    "ParameterSpec",
    # Stages
    "ConditionCompiler",
    "AccessSurfaceCompiler",
    "SourceWriter",
    # Fingerprint
    "SchemaDigest",
    "SchemaFingerprintResult",
    "bytes_to_hex",
    "compute_schema_fingerprint",
    "fingerprint_database",
    # Entry point
    "SchemaCompiler",
    "CompilationResult",
    "compile_database",
]

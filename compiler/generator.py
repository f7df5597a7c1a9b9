# ============================================================================
# SCHEMA COMPILER
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Entry point
# PURPOSE: Run every compiler stage over a database and render the module
# CREATED: 19 OCT 2026
# EXPORTS: SchemaCompiler, CompilationResult, compile_database
# DEPENDENCIES: pydantic
# ============================================================================
"""
Schema Compiler

Stages, in order:
1. ConditionCompiler       per table, once per builder class
2. Fingerprint             SHA-256 over every DDL statement
3. AccessSurfaceCompiler   per-table entry points and database forwards
4. SourceWriter            deterministic Python module text

Usage:
    from compiler import SchemaCompiler

    result = SchemaCompiler(database).compile()
    result.schema_hash
    result.source
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.config import GenerationDefaults
from core.logging import get_logger, log_context, log_elapsed
from core.models import DatabaseDefinition, TableDefinition

from compiler.access_surface import AccessSurfaceCompiler
from compiler.conditions import ConditionCompiler
from compiler.fingerprint import SchemaFingerprintResult, fingerprint_database
from compiler.operations import OperationSpec
from compiler.writer import SourceWriter

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompilationResult:
    """Everything one compile() run produced."""
    database: DatabaseDefinition
    fingerprint: SchemaFingerprintResult
    conditions: Dict[str, Dict[str, List[OperationSpec]]] = field(default_factory=dict)
    access_surface: List[OperationSpec] = field(default_factory=list)
    source: str = ""

    @property
    def schema_hash(self) -> str:
        return self.fingerprint.fingerprint

    def conditions_for(self, table_name: str) -> List[OperationSpec]:
        """Condition operations of a table, as attached to its selector."""
        table = self.database.get_table(table_name)
        return self.conditions[table_name][table.selector_class_name]


class SchemaCompiler:
    """
    Compile a DatabaseDefinition.

    Pure: the same database always yields an equal CompilationResult.
    """

    def __init__(self, database: DatabaseDefinition, defaults: Optional[GenerationDefaults] = None):
        self.database = database
        self.defaults = defaults

    def compile_conditions(self, table: TableDefinition) -> Dict[str, List[OperationSpec]]:
        """Condition operations keyed by the builder class they are attached to."""
        return {
            class_name: ConditionCompiler(table, class_name).build_operations()
            for class_name in (
                table.selector_class_name,
                table.updater_class_name,
                table.deleter_class_name,
                table.relation_class_name,
            )
        }

    def compile(self) -> CompilationResult:
        with log_context(database=self.database.class_name, operation="compile"), \
                log_elapsed(logger, "compile"):
            conditions = {
                table.table_name: self.compile_conditions(table)
                for table in self.database.tables
            }
            fingerprint = fingerprint_database(self.database)
            access_surface = AccessSurfaceCompiler(self.database).build_operations()

            writer = SourceWriter(self.database, fingerprint.fingerprint, self.defaults)
            source = writer.render(conditions, access_surface)

            logger.info(
                f"Compiled {self.database.package_name}.{self.database.class_name}: "
                f"{fingerprint.table_count} tables, {fingerprint.statement_count} statements, "
                f"hash {fingerprint.fingerprint[:12]}"
            )

        return CompilationResult(
            database=self.database,
            fingerprint=fingerprint,
            conditions=conditions,
            access_surface=access_surface,
            source=source,
        )


def compile_database(database: DatabaseDefinition) -> CompilationResult:
    """Convenience wrapper around SchemaCompiler(database).compile()."""
    return SchemaCompiler(database).compile()


__all__ = ["SchemaCompiler", "CompilationResult", "compile_database"]

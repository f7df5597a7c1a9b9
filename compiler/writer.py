# ============================================================================
# SOURCE WRITER
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Deterministic Python source rendering
# PURPOSE: Render compiled operations as the database-handle module
# CREATED: 19 OCT 2026
# EXPORTS: SourceWriter
# DEPENDENCIES: pydantic (schema constants are serialized model JSON)
# ============================================================================
"""
Source Writer

Renders one Python module per database. Layout, top to bottom:

    module docstring (header)
    imports, sorted
    SCHEMA_HASH
    <MODEL>_SCHEMA constants, one per table, database order
    SCHEMAS tuple, MODELS registry
    per table: Selector, Updater, Deleter, Inserter, Relation subclasses
    the database handle class

Nothing in the output depends on time, environment or dict iteration of
unordered inputs, so the same DatabaseDefinition always renders the same
text.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from core.config import GenerationDefaults, get_defaults
from core.models import DatabaseDefinition, TableDefinition

from compiler.access_surface import schema_constant_name
from compiler.operations import OperationSpec

TYPING_NAMES = ("Any", "Callable", "Dict", "List", "Optional", "Sequence")


class SourceWriter:
    """
    Render a compiled database as Python source.

    Args:
        database: Compiled database
        schema_hash: Fingerprint constant to embed
        defaults: Generation defaults (indent, header, runtime package)
    """

    def __init__(
        self,
        database: DatabaseDefinition,
        schema_hash: str,
        defaults: Optional[GenerationDefaults] = None,
    ):
        self.database = database
        self.schema_hash = schema_hash
        self.defaults = defaults or get_defaults().generation
        self.indent = self.defaults.indent

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def render(
        self,
        conditions: Dict[str, Dict[str, List[OperationSpec]]],
        access_surface: Sequence[OperationSpec],
    ) -> str:
        """
        Render the module.

        Args:
            conditions: table name -> builder class name -> condition operations
            access_surface: Methods of the database handle class, in order

        Returns:
            Module source text ending in a single newline
        """
        blocks: List[str] = [
            self.render_header(),
            self.render_imports(),
            self.render_constants(),
        ]
        for table in self.database.tables:
            blocks.extend(self.render_table_classes(table, conditions.get(table.table_name, {})))
        blocks.append(self.render_database_class(access_surface))
        return "\n\n\n".join(block.rstrip("\n") for block in blocks) + "\n"

    # =========================================================================
    # MODULE PARTS
    # =========================================================================

    def render_header(self) -> str:
        return (
            f'"""\n{self.defaults.header}\n\n'
            f"Database: {self.database.package_name}.{self.database.class_name}\n"
            f'"""'
        )

    def render_imports(self) -> str:
        runtime = self.defaults.runtime_package
        lines = [
            "from concurrent.futures import Future",
            f"from typing import {', '.join(TYPING_NAMES)}",
            "",
            "from core.contracts import OnConflict",
            "from core.models import TableDefinition",
            f"from {runtime}.migration import MigrationResult",
            f"from {runtime}.postgresql import DatabaseConnection, TransactionTask",
            f"from {runtime}.query import Deleter, Inserter, Relation, Selector, Updater",
        ]

        models: Dict[str, set] = {}
        for table in self.database.tables:
            if table.model_module:
                models.setdefault(table.model_module, set()).add(table.model_class_name)
        if models:
            lines.append("")
            for module in sorted(models):
                lines.append(f"from {module} import {', '.join(sorted(models[module]))}")
        return "\n".join(lines)

    def render_constants(self) -> str:
        lines = [f'SCHEMA_HASH = "{self.schema_hash}"', ""]
        for table in self.database.tables:
            lines.append(f"{schema_constant_name(table)} = TableDefinition.model_validate_json(")
            lines.append(f"{self.indent}{table.model_dump_json()!r}")
            lines.append(")")
            lines.append("")

        names = [schema_constant_name(t) for t in self.database.tables]
        if names:
            lines.append("SCHEMAS = (")
            lines.extend(f"{self.indent}{name}," for name in names)
            lines.append(")")
        else:
            lines.append("SCHEMAS = ()")
        lines.append("")

        registered = [t for t in self.database.tables if t.model_module]
        if registered:
            lines.append("MODELS = {")
            lines.extend(
                f'{self.indent}"{t.table_name}": {t.model_class_name},' for t in registered
            )
            lines.append("}")
        else:
            lines.append("MODELS = {}")
        return "\n".join(lines)

    def render_table_classes(
        self,
        table: TableDefinition,
        conditions: Dict[str, List[OperationSpec]],
    ) -> List[str]:
        quoted = f'"{table.table_name}"'
        blocks = [
            self.render_class(
                table.selector_class_name, "Selector", f"SELECT from {quoted}.",
                operations=conditions.get(table.selector_class_name, ()),
            ),
            self.render_class(
                table.updater_class_name, "Updater", f"UPDATE of {quoted}.",
                operations=conditions.get(table.updater_class_name, ()),
            ),
            self.render_class(
                table.deleter_class_name, "Deleter", f"DELETE from {quoted}.",
                operations=conditions.get(table.deleter_class_name, ()),
            ),
            self.render_class(
                table.inserter_class_name, "Inserter", f"Prepared INSERT into {quoted}.",
            ),
            self.render_class(
                table.relation_class_name, "Relation", f"Entry point for {quoted}.",
                attributes=(
                    ("selector_class", table.selector_class_name),
                    ("updater_class", table.updater_class_name),
                    ("deleter_class", table.deleter_class_name),
                    ("inserter_class", table.inserter_class_name),
                ),
                operations=conditions.get(table.relation_class_name, ()),
            ),
        ]
        return blocks

    def render_database_class(self, operations: Sequence[OperationSpec]) -> str:
        name = self.database.class_name
        i = self.indent
        lines = [
            f"class {name}:",
            f'{i}"""Database handle for {self.database.package_name}."""',
            "",
            f"{i}def __init__(self, connection: DatabaseConnection):",
            f"{i}{i}self.connection = connection",
        ]
        for operation in operations:
            lines.append("")
            lines.extend(self.render_method(operation))
        return "\n".join(lines)

    # =========================================================================
    # CLASSES AND METHODS
    # =========================================================================

    def render_class(
        self,
        name: str,
        base: str,
        docstring: str,
        attributes: Iterable = (),
        operations: Iterable[OperationSpec] = (),
    ) -> str:
        i = self.indent
        lines = [f"class {name}({base}):", f'{i}"""{docstring}"""']
        attributes = list(attributes)
        if attributes:
            lines.append("")
            lines.extend(f"{i}{attr} = {value}" for attr, value in attributes)
        for operation in operations:
            lines.append("")
            lines.extend(self.render_method(operation))
        return "\n".join(lines)

    def render_method(self, operation: OperationSpec) -> List[str]:
        i = self.indent
        receiver = "cls" if operation.is_classmethod else "self"
        params = ", ".join([receiver] + [p.render() for p in operation.parameters])
        lines = []
        if operation.is_classmethod:
            lines.append(f"{i}@classmethod")
        lines.append(f"{i}def {operation.name}({params}) -> {operation.returns}:")
        if operation.docstring:
            lines.append(f'{i}{i}"""{operation.docstring}"""')
        lines.extend(f"{i}{i}{statement}" for statement in operation.statements)
        return lines


__all__ = ["SourceWriter", "TYPING_NAMES"]

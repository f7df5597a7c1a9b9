# ============================================================================
# CONDITION COMPILER
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Per-column query condition derivation
# PURPOSE: Rule table mapping column metadata to condition operations
# CREATED: 19 OCT 2026
# EXPORTS: ConditionCompiler, condition_parameter, is_number_kind
# DEPENDENCIES: none
# ============================================================================
"""
Condition Compiler

For every indexed or primary-key column, in column order, derives the
condition methods attached to a table's Relation/Selector/Updater/Deleter.
Rules, first match of rule 1 is terminal:

    1. primary key           -> find(value)                    "<col>" = %s
    2. nullable              -> <col>_is_null, <col>_is_not_null
    3. every indexed column  -> <col>_eq, <col>_not_eq, <col>_in, <col>_not_in
    4. numeric storage kind  -> <col>_lt, <col>_le, <col>_gt, <col>_ge

Columns of non-numeric kinds (boolean, string, blob) simply get no ordering
operations. That is not an error.

Each generated method appends one predicate fragment to the builder; the
runtime joins fragments with AND in call order.
"""

import keyword
from typing import List, Optional

from core.contracts import StorageKind
from core.logging import get_logger, log_context
from core.models import ColumnDefinition, TableDefinition
from core.schema.ddl_utils import quote_identifier

from compiler.operations import OperationKind, OperationSpec, ParameterSpec

logger = get_logger(__name__)

# Comparison operators keyed by kind: (method suffix, SQL operator)
_COMPARISONS = {
    OperationKind.EQ: ("eq", "="),
    OperationKind.NOT_EQ: ("not_eq", "<>"),
    OperationKind.LT: ("lt", "<"),
    OperationKind.LE: ("le", "<="),
    OperationKind.GT: ("gt", ">"),
    OperationKind.GE: ("ge", ">="),
}

_ORDERING_KINDS = (OperationKind.LT, OperationKind.LE, OperationKind.GT, OperationKind.GE)


def is_number_kind(kind: StorageKind) -> bool:
    """Check if a storage kind receives ordering operations."""
    return kind.is_numeric()


def nullability(column: ColumnDefinition) -> Optional[bool]:
    """
    Nullability annotation of a parameter bound to this column.

    Primitive (unboxed) columns get no annotation; every other column
    mirrors its own nullable flag.
    """
    if column.is_primitive:
        return None
    return column.nullable


def parameter_name(column: ColumnDefinition) -> str:
    """Column attribute name made safe to use as a Python parameter."""
    if keyword.iskeyword(column.name) or column.name == "self":
        return column.name + "_"
    return column.name


def condition_parameter(column: ColumnDefinition) -> ParameterSpec:
    """Parameter carrying one value of the column."""
    return ParameterSpec(
        name=parameter_name(column),
        type_name=column.python_type.__name__,
        nullable=nullability(column),
    )


def values_parameter(column: ColumnDefinition) -> ParameterSpec:
    """Parameter carrying the ordered collection of an IN / NOT IN condition."""
    return ParameterSpec(
        name="values",
        type_name=f"Sequence[{column.python_type.__name__}]",
        nullable=False,
    )


class ConditionCompiler:
    """
    Derive condition operations for one table.

    Implements OperationProvider. The result is a pure function of column
    order and the rule table, so regenerating an unchanged table yields the
    same operations in the same order.
    """

    def __init__(self, table: TableDefinition, target_class_name: Optional[str] = None):
        """
        Args:
            table: Table whose columns are compiled
            target_class_name: Builder class the methods are attached to,
                used as the return annotation (defaults to the selector)
        """
        self.table = table
        self.target_class_name = f'"{target_class_name or table.selector_class_name}"'

    def build_operations(self) -> List[OperationSpec]:
        operations: List[OperationSpec] = []
        with log_context(table=self.table.table_name, operation="compile_conditions"):
            for column in self.table.columns:
                if column.has_condition_operations:
                    operations.extend(self.build_column_operations(column))
            logger.debug(f"Derived {len(operations)} condition operations")
        return operations

    def build_column_operations(self, column: ColumnDefinition) -> List[OperationSpec]:
        """Apply the rule table to a single column."""
        if column.primary_key:
            return [self._find(column)]

        operations: List[OperationSpec] = []

        if column.nullable:
            operations.append(self._null_check(column, negate=False))
            operations.append(self._null_check(column, negate=True))

        operations.append(self._comparison(column, OperationKind.EQ))
        operations.append(self._comparison(column, OperationKind.NOT_EQ))
        operations.append(self._membership(column, negate=False))
        operations.append(self._membership(column, negate=True))

        if is_number_kind(column.storage_kind):
            for kind in _ORDERING_KINDS:
                operations.append(self._comparison(column, kind))

        return operations

    # =========================================================================
    # OPERATION BUILDERS
    # =========================================================================

    def _find(self, column: ColumnDefinition) -> OperationSpec:
        fragment = f"{quote_identifier(column.column_name)} = %s"
        return OperationSpec(
            name="find",
            kind=OperationKind.FIND,
            returns=self.target_class_name,
            parameters=(condition_parameter(column),),
            statements=(f"return self.where({fragment!r}, {parameter_name(column)})",),
            sql=fragment,
            column=column.name,
        )

    def _null_check(self, column: ColumnDefinition, negate: bool) -> OperationSpec:
        if negate:
            kind, suffix, predicate = OperationKind.IS_NOT_NULL, "is_not_null", "IS NOT NULL"
        else:
            kind, suffix, predicate = OperationKind.IS_NULL, "is_null", "IS NULL"
        fragment = f"{quote_identifier(column.column_name)} {predicate}"
        return OperationSpec(
            name=f"{column.name}_{suffix}",
            kind=kind,
            returns=self.target_class_name,
            statements=(f"return self.where({fragment!r})",),
            sql=fragment,
            column=column.name,
        )

    def _comparison(self, column: ColumnDefinition, kind: OperationKind) -> OperationSpec:
        suffix, operator = _COMPARISONS[kind]
        fragment = f"{quote_identifier(column.column_name)} {operator} %s"
        return OperationSpec(
            name=f"{column.name}_{suffix}",
            kind=kind,
            returns=self.target_class_name,
            parameters=(condition_parameter(column),),
            statements=(f"return self.where({fragment!r}, {parameter_name(column)})",),
            sql=fragment,
            column=column.name,
        )

    def _membership(self, column: ColumnDefinition, negate: bool) -> OperationSpec:
        kind = OperationKind.NOT_IN if negate else OperationKind.IN
        quoted = quote_identifier(column.column_name)
        return OperationSpec(
            name=f"{column.name}_{'not_in' if negate else 'in'}",
            kind=kind,
            returns=self.target_class_name,
            parameters=(values_parameter(column),),
            statements=(f"return self.in_({negate!r}, {quoted!r}, values)",),
            sql=f"{quoted} {'NOT IN' if negate else 'IN'} (%s, ...)",
            column=column.name,
        )


__all__ = [
    "ConditionCompiler",
    "condition_parameter",
    "parameter_name",
    "values_parameter",
    "nullability",
    "is_number_kind",
]

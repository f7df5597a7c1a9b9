# ============================================================================
# GENERATED OPERATION MODEL
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Data describing generated methods
# PURPOSE: Operation/parameter specs and the provider capability interface
# CREATED: 19 OCT 2026
# EXPORTS: OperationKind, ParameterSpec, OperationSpec, OperationProvider
# DEPENDENCIES: none
# ============================================================================
"""
Generated Operation Model

Compiler stages do not write source text directly. Each stage returns a
list of OperationSpec values (name, parameters, return type, body) and the
SourceWriter renders them. Keeping the operations as data makes the rule
tables testable without parsing generated code.

Every stage implements the same small capability:

    class OperationProvider(Protocol):
        def build_operations(self) -> List[OperationSpec]: ...
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Tuple


class OperationKind(str, Enum):
    """What a generated method does."""
    # Conditions
    FIND = "find"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    EQ = "eq"
    NOT_EQ = "not_eq"
    IN = "in"
    NOT_IN = "not_in"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"

    # Access surface
    LOAD_FROM_ROW = "load_from_row"
    CREATE = "create"
    RELATION = "relation"
    SELECT = "select"
    UPDATE = "update"
    DELETE = "delete"
    INSERT = "insert"
    PREPARE_INSERT = "prepare_insert"

    # Database handle
    SCHEMAS = "schemas"
    CONNECTION = "connection"
    MIGRATE = "migrate"
    TRANSACTION = "transaction"

    def is_condition(self) -> bool:
        return self in CONDITION_KINDS


CONDITION_KINDS = frozenset({
    OperationKind.FIND,
    OperationKind.IS_NULL,
    OperationKind.IS_NOT_NULL,
    OperationKind.EQ,
    OperationKind.NOT_EQ,
    OperationKind.IN,
    OperationKind.NOT_IN,
    OperationKind.LT,
    OperationKind.LE,
    OperationKind.GT,
    OperationKind.GE,
})


@dataclass(frozen=True)
class ParameterSpec:
    """
    One parameter of a generated method.

    nullable:
        None  -> primitive value, no nullability annotation
        True  -> annotated Optional[...]
        False -> annotated with the bare type
    """
    name: str
    type_name: str
    nullable: Optional[bool] = None
    default: Optional[str] = None

    @property
    def annotation(self) -> str:
        if self.nullable:
            return f"Optional[{self.type_name}]"
        return self.type_name

    def render(self) -> str:
        """Render as it appears in a signature: name: annotation [= default]."""
        text = f"{self.name}: {self.annotation}"
        if self.default is not None:
            text += f" = {self.default}"
        return text


@dataclass(frozen=True)
class OperationSpec:
    """
    One generated method.

    `statements` are body lines relative to the method indent.
    `sql` holds the predicate fragment for condition operations.
    """
    name: str
    kind: OperationKind
    returns: str
    statements: Tuple[str, ...]
    parameters: Tuple[ParameterSpec, ...] = ()
    sql: Optional[str] = None
    column: Optional[str] = None
    docstring: Optional[str] = None
    is_classmethod: bool = False

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)


class OperationProvider(Protocol):
    """Capability shared by compiler stages that produce generated methods."""

    def build_operations(self) -> List[OperationSpec]:
        ...


def operation_names(operations: Iterable[OperationSpec]) -> List[str]:
    """Names of the given operations, in order."""
    return [operation.name for operation in operations]


__all__ = [
    "OperationKind",
    "CONDITION_KINDS",
    "ParameterSpec",
    "OperationSpec",
    "OperationProvider",
    "operation_names",
]

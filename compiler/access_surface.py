# ============================================================================
# ACCESS-SURFACE COMPILER
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Compiler - Per-table CRUD entry points and database handle
# PURPOSE: Fixed method set bound to (connection, schema) per table
# CREATED: 19 OCT 2026
# EXPORTS: AccessSurfaceCompiler, schema_constant_name
# DEPENDENCIES: none
# ============================================================================
"""
Access-Surface Compiler

Per table (model User, snake name user):

    load_user_from_row(row)           -> User
    create_user(factory)              -> User
    relation_of_user()                -> UserRelation
    select_from_user()                -> UserSelector
    update_user()                     -> UserUpdater
    delete_from_user()                -> UserDeleter
    insert_into_user(model)           -> primary key
    prepare_insert_into_user(on_conflict=OnConflict.NONE, skip_auto_id=False)
                                      -> UserInserter

prepare_insert_into_user is the one place an Inserter is constructed; the
no-argument, policy-only and fully explicit call forms all land there, and
insert_into_user goes through it with the defaults.

Database-wide methods are thin forwards to the connection façade:
connect, get_schemas, get_connection, migrate, close and the four
transaction_* variants.
"""

from typing import List

from core.logging import get_logger, log_context
from core.models import DatabaseDefinition, TableDefinition

from compiler.operations import OperationKind, OperationSpec, ParameterSpec

logger = get_logger(__name__)

TRANSACTION_FORWARDS = (
    ("transaction_sync", "Any", "Run task in an exclusive transaction; blocks."),
    ("transaction_async", "Future", "Submit task to run in an exclusive transaction."),
    ("transaction_non_exclusive_sync", "Any",
     "Run task in a non-exclusive transaction; blocks."),
    ("transaction_non_exclusive_async", "Future",
     "Submit task to run in a non-exclusive transaction."),
)


def schema_constant_name(table: TableDefinition) -> str:
    """
    Module constant holding a table's schema (UserProfile -> USER_PROFILE_SCHEMA).

    Named after the model so that tables whose SQL names differ only in case
    or punctuation ("User" and "user") get separate constants.
    """
    return table.model_snake_name.upper() + "_SCHEMA"


def model_annotation(table: TableDefinition) -> str:
    """Model type used in annotations; Any when the model is not importable."""
    return table.model_class_name if table.model_module else "Any"


def key_annotation(table: TableDefinition) -> str:
    pk = table.primary_key
    if pk is None:
        return "Optional[Any]"
    return f"Optional[{pk.python_type.__name__}]"


class AccessSurfaceCompiler:
    """
    Derive the access surface of a database.

    Implements OperationProvider: build_operations() returns the database
    handle methods, table by table in database order, followed by the
    database-wide forwards.
    """

    def __init__(self, database: DatabaseDefinition):
        self.database = database

    def build_operations(self) -> List[OperationSpec]:
        operations: List[OperationSpec] = []
        with log_context(database=self.database.class_name, operation="compile_access_surface"):
            for table in self.database.tables:
                operations.extend(self.build_table_operations(table))
            operations.extend(self.build_database_operations())
            logger.debug(f"Derived {len(operations)} access-surface operations")
        return operations

    # =========================================================================
    # PER TABLE
    # =========================================================================

    def build_table_operations(self, table: TableDefinition) -> List[OperationSpec]:
        name = table.model_snake_name
        schema = schema_constant_name(table)
        model = model_annotation(table)

        return [
            OperationSpec(
                name=f"load_{name}_from_row",
                kind=OperationKind.LOAD_FROM_ROW,
                returns=model,
                parameters=(ParameterSpec("row", "Dict[str, Any]", nullable=False),),
                statements=(f"return self.connection.new_model_from_row({schema}, row)",),
            ),
            OperationSpec(
                name=f"create_{name}",
                kind=OperationKind.CREATE,
                returns=model,
                parameters=(ParameterSpec("factory", f"Callable[[], {model}]", nullable=False),),
                statements=(f"return self.connection.create_model({schema}, factory)",),
                docstring="Insert the model the factory builds; returns it with its identity.",
            ),
            OperationSpec(
                name=f"relation_of_{name}",
                kind=OperationKind.RELATION,
                returns=table.relation_class_name,
                statements=(f"return {table.relation_class_name}(self.connection, {schema})",),
            ),
            OperationSpec(
                name=f"select_from_{name}",
                kind=OperationKind.SELECT,
                returns=table.selector_class_name,
                statements=(f"return {table.selector_class_name}(self.connection, {schema})",),
            ),
            OperationSpec(
                name=f"update_{name}",
                kind=OperationKind.UPDATE,
                returns=table.updater_class_name,
                statements=(f"return {table.updater_class_name}(self.connection, {schema})",),
            ),
            OperationSpec(
                name=f"delete_from_{name}",
                kind=OperationKind.DELETE,
                returns=table.deleter_class_name,
                statements=(f"return {table.deleter_class_name}(self.connection, {schema})",),
            ),
            OperationSpec(
                name=f"insert_into_{name}",
                kind=OperationKind.INSERT,
                returns=key_annotation(table),
                parameters=(ParameterSpec("model", model, nullable=False),),
                statements=(f"return self.prepare_insert_into_{name}().execute(model)",),
            ),
            self._prepare_insert(table),
        ]

    def _prepare_insert(self, table: TableDefinition) -> OperationSpec:
        schema = schema_constant_name(table)
        return OperationSpec(
            name=f"prepare_insert_into_{table.model_snake_name}",
            kind=OperationKind.PREPARE_INSERT,
            returns=table.inserter_class_name,
            parameters=(
                ParameterSpec("on_conflict", "OnConflict", nullable=False, default="OnConflict.NONE"),
                ParameterSpec("skip_auto_id", "bool", default="False"),
            ),
            statements=(
                f"return {table.inserter_class_name}"
                f"(self.connection, {schema}, on_conflict, skip_auto_id)",
            ),
        )

    # =========================================================================
    # DATABASE WIDE
    # =========================================================================

    def build_database_operations(self) -> List[OperationSpec]:
        class_name = self.database.class_name
        operations = [
            OperationSpec(
                name="connect",
                kind=OperationKind.CONNECTION,
                returns=f'"{class_name}"',
                parameters=(
                    ParameterSpec("conninfo", "str", nullable=True, default="None"),
                    ParameterSpec("**kwargs", "Any"),
                ),
                statements=(
                    "connection = DatabaseConnection.connect(",
                    "    conninfo, schemas=SCHEMAS, schema_hash=SCHEMA_HASH, models=MODELS, **kwargs",
                    ")",
                    "return cls(connection)",
                ),
                docstring="Open a pooled connection (conninfo, else the environment).",
                is_classmethod=True,
            ),
            OperationSpec(
                name="get_schemas",
                kind=OperationKind.SCHEMAS,
                returns="List[TableDefinition]",
                statements=("return list(SCHEMAS)",),
            ),
            OperationSpec(
                name="get_connection",
                kind=OperationKind.CONNECTION,
                returns="DatabaseConnection",
                statements=("return self.connection",),
            ),
            OperationSpec(
                name="migrate",
                kind=OperationKind.MIGRATE,
                returns="MigrationResult",
                statements=("return self.connection.migrate()",),
                docstring="Blocking. Raises SchemaViolation when the schema cannot be reconciled.",
            ),
            OperationSpec(
                name="close",
                kind=OperationKind.CONNECTION,
                returns="None",
                statements=("self.connection.close()",),
            ),
        ]
        for name, returns, doc in TRANSACTION_FORWARDS:
            operations.append(OperationSpec(
                name=name,
                kind=OperationKind.TRANSACTION,
                returns=returns,
                parameters=(ParameterSpec("task", "TransactionTask", nullable=False),),
                statements=(f"return self.connection.{name}(task)",),
                docstring=doc,
            ))
        return operations


__all__ = [
    "AccessSurfaceCompiler",
    "TRANSACTION_FORWARDS",
    "schema_constant_name",
    "model_annotation",
    "key_annotation",
]

# ============================================================================
# ACCESS SURFACE & SOURCE WRITER TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Tests - Generated database handle
# PURPOSE: Verify entry-point names, insert call forms, rendered module
# CREATED: 19 OCT 2026
# ============================================================================
"""
Access Surface & Source Writer Tests

Covers:
1. Per-table entry points and database-wide forwards
2. prepare_insert_into_* call forms route through one constructor
3. Rendered module is deterministic, valid Python and executable
4. Generated condition methods compose on the runtime builders

Run with:
    pytest tests/test_access_surface.py -v
"""

from unittest.mock import MagicMock

import pytest

from core.contracts import OnConflict, StorageKind
from core.models import ColumnDefinition, DatabaseDefinition
from core.schema import SqlGenerator
from compiler import AccessSurfaceCompiler, SchemaCompiler
from compiler.access_surface import schema_constant_name
from compiler.operations import OperationKind, operation_names
from infrastructure.query import Inserter


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def database():
    generator = SqlGenerator()
    user = generator.build_table("user", "User", [
        ColumnDefinition(name="id", storage_kind=StorageKind.LONG, primary_key=True, auto_id=True),
        ColumnDefinition(name="email", storage_kind=StorageKind.STRING, indexed=True, nullable=True),
        ColumnDefinition(name="score", storage_kind=StorageKind.INT, indexed=True),
    ])
    post = generator.build_table("blog_post", "BlogPost", [
        ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True),
        ColumnDefinition(name="title", storage_kind=StorageKind.STRING),
    ])
    return generator.build_database("app.db", "AppDatabase", [user, post])


@pytest.fixture
def generated(database):
    """Execute the rendered module and return its namespace."""
    result = SchemaCompiler(database).compile()
    namespace = {}
    exec(compile(result.source, "<generated>", "exec"), namespace)
    return namespace


# ============================================================================
# OPERATIONS
# ============================================================================

class TestTableOperations:

    def test_entry_point_names(self, database):
        ops = AccessSurfaceCompiler(database).build_table_operations(database.get_table("user"))
        assert operation_names(ops) == [
            "load_user_from_row",
            "create_user",
            "relation_of_user",
            "select_from_user",
            "update_user",
            "delete_from_user",
            "insert_into_user",
            "prepare_insert_into_user",
        ]

    def test_multi_word_model_names(self, database):
        ops = AccessSurfaceCompiler(database).build_table_operations(database.get_table("blog_post"))
        assert "select_from_blog_post" in operation_names(ops)
        assert schema_constant_name(database.get_table("blog_post")) == "BLOG_POST_SCHEMA"

    def test_builder_return_types(self, database):
        ops = {op.name: op for op in AccessSurfaceCompiler(database).build_operations()}
        assert ops["relation_of_user"].returns == "UserRelation"
        assert ops["select_from_user"].returns == "UserSelector"
        assert ops["update_user"].returns == "UserUpdater"
        assert ops["delete_from_user"].returns == "UserDeleter"
        assert ops["prepare_insert_into_user"].returns == "UserInserter"
        assert ops["insert_into_user"].returns == "Optional[int]"

    def test_prepare_insert_defaults(self, database):
        ops = {op.name: op for op in AccessSurfaceCompiler(database).build_operations()}
        prepare = ops["prepare_insert_into_user"]
        assert [p.render() for p in prepare.parameters] == [
            "on_conflict: OnConflict = OnConflict.NONE",
            "skip_auto_id: bool = False",
        ]

    def test_insert_routes_through_prepare(self, database):
        ops = {op.name: op for op in AccessSurfaceCompiler(database).build_operations()}
        assert ops["insert_into_user"].statements == (
            "return self.prepare_insert_into_user().execute(model)",
        )


class TestDatabaseOperations:

    def test_forwards(self, database):
        ops = AccessSurfaceCompiler(database).build_database_operations()
        assert operation_names(ops) == [
            "connect",
            "get_schemas",
            "get_connection",
            "migrate",
            "close",
            "transaction_sync",
            "transaction_async",
            "transaction_non_exclusive_sync",
            "transaction_non_exclusive_async",
        ]

    def test_connect_is_classmethod(self, database):
        connect = AccessSurfaceCompiler(database).build_database_operations()[0]
        assert connect.is_classmethod
        assert connect.returns == '"AppDatabase"'

    def test_transaction_forwards_do_no_work(self, database):
        ops = [op for op in AccessSurfaceCompiler(database).build_database_operations()
               if op.kind == OperationKind.TRANSACTION]
        assert len(ops) == 4
        for op in ops:
            assert op.statements == (f"return self.connection.{op.name}(task)",)


# ============================================================================
# RENDERED MODULE
# ============================================================================

class TestSourceWriter:

    def test_deterministic(self, database):
        first = SchemaCompiler(database).compile().source
        second = SchemaCompiler(database).compile().source
        assert first == second

    def test_embeds_fingerprint(self, database):
        result = SchemaCompiler(database).compile()
        assert f'SCHEMA_HASH = "{result.schema_hash}"' in result.source

    def test_valid_python(self, database):
        compile(SchemaCompiler(database).compile().source, "<generated>", "exec")

    def test_module_constants(self, generated, database):
        assert generated["SCHEMA_HASH"] == SchemaCompiler(database).compile().schema_hash
        assert generated["SCHEMAS"] == database.tables
        assert generated["USER_SCHEMA"] == database.get_table("user")
        assert generated["MODELS"] == {}

    def test_case_distinct_tables_keep_their_own_schema(self):
        generator = SqlGenerator()
        columns = [ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True)]
        database = generator.build_database("app.db", "Db", [
            generator.build_table("User", "Account", columns),
            generator.build_table("user", "Member", columns),
        ])
        namespace = {}
        exec(compile(SchemaCompiler(database).compile().source, "<generated>", "exec"), namespace)

        assert namespace["ACCOUNT_SCHEMA"].table_name == "User"
        assert namespace["MEMBER_SCHEMA"].table_name == "user"
        db = namespace["Db"](MagicMock())
        assert db.select_from_account().to_sql()[0] == 'SELECT "id" FROM "User"'
        assert db.select_from_member().to_sql()[0] == 'SELECT "id" FROM "user"'

    def test_class_layout(self, generated):
        relation = generated["UserRelation"]
        assert relation.selector_class is generated["UserSelector"]
        assert relation.updater_class is generated["UserUpdater"]
        assert relation.deleter_class is generated["UserDeleter"]
        assert relation.inserter_class is generated["UserInserter"]
        assert issubclass(generated["UserInserter"], Inserter)

    def test_condition_methods_attached(self, generated):
        for class_name in ("UserSelector", "UserUpdater", "UserDeleter", "UserRelation"):
            cls = generated[class_name]
            for method in ("find", "email_eq", "email_is_null", "score_lt", "score_not_in"):
                assert hasattr(cls, method), f"{class_name}.{method}"
            assert not hasattr(cls, "email_lt")

    def test_generated_conditions_compose(self, generated):
        db = generated["AppDatabase"](MagicMock())
        selector = db.select_from_user().email_eq("a@b.c").score_in([]).score_gt(3)
        query, params = selector.to_sql()
        assert query.endswith(' WHERE ("email" = %s) AND (1 = 0) AND ("score" > %s)')
        assert params == ["a@b.c", 3]

    def test_generated_find(self, generated):
        db = generated["AppDatabase"](MagicMock())
        query, params = db.delete_from_user().find(5).to_sql()
        assert query == 'DELETE FROM "user" WHERE ("id" = %s)'
        assert params == [5]


class TestInsertCallForms:

    def test_no_argument_form_equals_explicit_defaults(self, generated):
        db = generated["AppDatabase"](MagicMock())
        default = db.prepare_insert_into_user()
        explicit = db.prepare_insert_into_user(OnConflict.NONE, False)

        assert type(default) is type(explicit) is generated["UserInserter"]
        assert default.sql == explicit.sql
        assert default.policy == explicit.policy
        assert default.skip_auto_id == explicit.skip_auto_id is False
        assert default.columns == explicit.columns

    def test_policy_only_form(self, generated):
        db = generated["AppDatabase"](MagicMock())
        assert db.prepare_insert_into_user(OnConflict.IGNORE).sql == \
            db.prepare_insert_into_user(OnConflict.IGNORE, False).sql

    def test_insert_into_executes_default_inserter(self, generated):
        connection = MagicMock()
        connection.insert.return_value = 11
        db = generated["AppDatabase"](connection)
        model = MagicMock(id=None, email="e", score=1)

        assert db.insert_into_user(model) == 11
        connection.insert.assert_called_once_with(
            db.prepare_insert_into_user().sql, ["e", 1]
        )

    def test_database_forwards_reach_connection(self, generated):
        connection = MagicMock()
        db = generated["AppDatabase"](connection)
        task = MagicMock()

        db.transaction_non_exclusive_async(task)
        connection.transaction_non_exclusive_async.assert_called_once_with(task)
        db.migrate()
        connection.migrate.assert_called_once_with()
        assert db.get_connection() is connection
        assert db.get_schemas() == list(generated["SCHEMAS"])


class TestCompilationResult:

    def test_conditions_per_builder_class(self, database):
        result = SchemaCompiler(database).compile()
        user_conditions = result.conditions["user"]
        assert set(user_conditions) == {"UserSelector", "UserUpdater", "UserDeleter", "UserRelation"}
        assert operation_names(result.conditions_for("user")) == operation_names(
            user_conditions["UserRelation"]
        )

    def test_table_without_conditions(self, database):
        result = SchemaCompiler(database).compile()
        assert operation_names(result.conditions_for("blog_post")) == ["find"]

    def test_empty_database(self):
        empty = DatabaseDefinition(package_name="app.db", class_name="EmptyDatabase")
        result = SchemaCompiler(empty).compile()
        namespace = {}
        exec(compile(result.source, "<generated>", "exec"), namespace)
        assert namespace["SCHEMAS"] == ()

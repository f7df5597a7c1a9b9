# ============================================================================
# SCHEMA MODEL & DDL TESTS
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Tests - Schema model, identifier quoting, DDL text
# PURPOSE: Verify immutable model defaults and deterministic DDL rendering
# CREATED: 19 OCT 2026
# ============================================================================
"""
Schema Model & DDL Tests

Covers:
1. ColumnDefinition / TableDefinition / DatabaseDefinition defaults
2. Identifier quoting is injective and reversible
3. PostgreSQL type mapping (including SERIAL identity columns)
4. CREATE TABLE / CREATE INDEX text
5. Index name read-back

Run with:
    pytest tests/test_schema_model.py -v
"""

import re

import pytest
from pydantic import ValidationError

from core.contracts import OnConflict, StorageKind
from core.models import ColumnDefinition, DatabaseDefinition, TableDefinition, snake_case
from core.schema import SqlGenerator
from core.schema.ddl_utils import (
    ColumnBuilder,
    IndexBuilder,
    get_postgres_type,
    index_name_of,
    quote_identifier,
    unquote_identifier,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def user_columns():
    return [
        ColumnDefinition(name="id", storage_kind=StorageKind.LONG, primary_key=True, auto_id=True),
        ColumnDefinition(name="email", storage_kind=StorageKind.STRING, indexed=True, nullable=True),
        ColumnDefinition(name="score", storage_kind=StorageKind.INT, indexed=True),
        ColumnDefinition(name="avatar", storage_kind=StorageKind.BLOB, nullable=True),
    ]


@pytest.fixture
def user_table(user_columns):
    return SqlGenerator().build_table("user", "User", user_columns)


# ============================================================================
# MODEL TESTS
# ============================================================================

class TestColumnDefinition:

    def test_column_name_defaults_to_name(self):
        column = ColumnDefinition(name="email", storage_kind=StorageKind.STRING)
        assert column.column_name == "email"

    def test_explicit_column_name_kept(self):
        column = ColumnDefinition(name="email", column_name="email_address",
                                  storage_kind=StorageKind.STRING)
        assert column.column_name == "email_address"

    def test_defaults(self):
        column = ColumnDefinition(name="x", storage_kind=StorageKind.INT)
        assert not column.nullable
        assert not column.indexed
        assert not column.primary_key
        assert not column.auto_id
        assert column.on_conflict == OnConflict.NONE

    def test_frozen(self):
        column = ColumnDefinition(name="x", storage_kind=StorageKind.INT)
        with pytest.raises(ValidationError):
            column.nullable = True

    def test_nullable_primitive_is_boxed(self):
        assert ColumnDefinition(name="x", storage_kind=StorageKind.INT).is_primitive
        assert not ColumnDefinition(name="x", storage_kind=StorageKind.INT, nullable=True).is_primitive
        assert not ColumnDefinition(name="x", storage_kind=StorageKind.STRING).is_primitive

    def test_python_type(self):
        assert ColumnDefinition(name="x", storage_kind=StorageKind.DOUBLE).python_type is float
        assert ColumnDefinition(name="x", storage_kind=StorageKind.BLOB).python_type is bytes
        assert ColumnDefinition(name="x", storage_kind=StorageKind.BOOLEAN).python_type is bool

    def test_condition_operations_require_index_or_pk(self):
        assert not ColumnDefinition(name="x", storage_kind=StorageKind.INT).has_condition_operations
        assert ColumnDefinition(name="x", storage_kind=StorageKind.INT,
                                indexed=True).has_condition_operations
        assert ColumnDefinition(name="x", storage_kind=StorageKind.INT,
                                primary_key=True).has_condition_operations


class TestTableDefinition:

    def test_generated_class_names_default_from_model(self, user_table):
        assert user_table.relation_class_name == "UserRelation"
        assert user_table.selector_class_name == "UserSelector"
        assert user_table.updater_class_name == "UserUpdater"
        assert user_table.deleter_class_name == "UserDeleter"
        assert user_table.inserter_class_name == "UserInserter"

    def test_class_name_override(self, user_columns):
        table = SqlGenerator().build_table(
            "user", "User", user_columns, selector_class_name="UserQuery"
        )
        assert table.selector_class_name == "UserQuery"
        assert table.relation_class_name == "UserRelation"

    def test_primary_key_and_auto_id(self, user_table):
        assert user_table.primary_key.name == "id"
        assert user_table.auto_id_column.name == "id"

    def test_get_column(self, user_table):
        assert user_table.get_column("score").storage_kind == StorageKind.INT
        with pytest.raises(KeyError):
            user_table.get_column("missing")

    def test_model_snake_name(self):
        assert snake_case("BlogPost") == "blog_post"
        assert snake_case("User") == "user"

    def test_all_statements_order(self, user_table):
        statements = user_table.all_statements()
        assert statements[0] == user_table.create_table_statement
        assert statements[1:] == list(user_table.create_index_statements)

    def test_json_round_trip(self, user_table):
        restored = TableDefinition.model_validate_json(user_table.model_dump_json())
        assert restored == user_table


class TestDatabaseDefinition:

    def test_get_table(self, user_table):
        database = DatabaseDefinition(package_name="app.db", class_name="AppDatabase",
                                      tables=(user_table,))
        assert database.get_table("user") is user_table
        with pytest.raises(KeyError):
            database.get_table("post")

    def test_rejects_duplicate_table(self, user_table):
        with pytest.raises(ValidationError, match="Duplicate table"):
            DatabaseDefinition(package_name="app.db", class_name="AppDatabase",
                               tables=(user_table, user_table))

    def test_rejects_colliding_model_names(self):
        generator = SqlGenerator()
        columns = [ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True)]
        first = generator.build_table("accounts", "UserProfile", columns)
        second = generator.build_table("profiles", "UserProfile", columns)
        with pytest.raises(ValidationError, match="user_profile"):
            generator.build_database("app.db", "AppDatabase", [first, second])

    def test_case_distinct_table_names_allowed(self):
        generator = SqlGenerator()
        columns = [ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True)]
        database = generator.build_database("app.db", "AppDatabase", [
            generator.build_table("User", "Account", columns),
            generator.build_table("user", "Member", columns),
        ])
        assert [t.table_name for t in database.tables] == ["User", "user"]


# ============================================================================
# QUOTING TESTS
# ============================================================================

class TestIdentifierQuoting:

    @pytest.mark.parametrize("name", [
        "user", "User Name", 'we"ird', '"', '""', 'a""b"', "", "select",
    ])
    def test_round_trip(self, name):
        assert unquote_identifier(quote_identifier(name)) == name

    def test_embedded_quote_doubled(self):
        assert quote_identifier('a"b') == '"a""b"'

    def test_injective(self):
        names = ['a"b', 'a""b', 'ab', 'a" "b']
        quoted = {quote_identifier(n) for n in names}
        assert len(quoted) == len(names)

    @pytest.mark.parametrize("text", ["user", '"user', 'user"', '"a"b"', '"'])
    def test_unquote_rejects_invalid(self, text):
        with pytest.raises(ValueError):
            unquote_identifier(text)


# ============================================================================
# DDL TESTS
# ============================================================================

class TestTypeMapping:

    @pytest.mark.parametrize("kind,expected", [
        (StorageKind.BOOLEAN, "BOOLEAN"),
        (StorageKind.BYTE, "SMALLINT"),
        (StorageKind.SHORT, "SMALLINT"),
        (StorageKind.INT, "INTEGER"),
        (StorageKind.LONG, "BIGINT"),
        (StorageKind.FLOAT, "REAL"),
        (StorageKind.DOUBLE, "DOUBLE PRECISION"),
        (StorageKind.STRING, "TEXT"),
        (StorageKind.BLOB, "BYTEA"),
    ])
    def test_plain_types(self, kind, expected):
        assert get_postgres_type(kind) == expected

    def test_auto_id_uses_serial(self):
        assert get_postgres_type(StorageKind.SHORT, auto_id=True) == "SMALLSERIAL"
        assert get_postgres_type(StorageKind.INT, auto_id=True) == "SERIAL"
        assert get_postgres_type(StorageKind.LONG, auto_id=True) == "BIGSERIAL"

    def test_auto_id_on_non_integral_kind_keeps_type(self):
        assert get_postgres_type(StorageKind.STRING, auto_id=True) == "TEXT"


class TestSqlGenerator:

    def test_create_table_statement(self, user_table):
        assert user_table.create_table_statement == (
            'CREATE TABLE IF NOT EXISTS "user" ('
            '"id" BIGSERIAL PRIMARY KEY, '
            '"email" TEXT, '
            '"score" INTEGER NOT NULL, '
            '"avatar" BYTEA)'
        )

    def test_index_statements_for_indexed_non_pk_columns(self, user_table):
        assert user_table.create_index_statements == (
            f'CREATE INDEX IF NOT EXISTS "{IndexBuilder.index_name("user", ["email"])}" ON "user" ("email")',
            f'CREATE INDEX IF NOT EXISTS "{IndexBuilder.index_name("user", ["score"])}" ON "user" ("score")',
        )

    def test_primary_key_never_indexed_separately(self):
        columns = [ColumnDefinition(name="id", storage_kind=StorageKind.INT,
                                    primary_key=True, indexed=True)]
        assert SqlGenerator().create_index_statements("t", columns) == []

    def test_column_definition_tokens(self):
        column = ColumnDefinition(name="n", storage_kind=StorageKind.DOUBLE)
        assert ColumnBuilder.definition(column) == '"n" DOUBLE PRECISION NOT NULL'

    def test_rendering_is_deterministic(self, user_columns):
        generator = SqlGenerator()
        first = generator.build_table("user", "User", user_columns)
        second = generator.build_table("user", "User", list(user_columns))
        assert first.all_statements() == second.all_statements()

    def test_generate_all_filters_by_table(self, user_table):
        post = SqlGenerator().build_table("post", "Post", [
            ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True),
        ])
        database = SqlGenerator().build_database("app.db", "AppDatabase", [user_table, post])
        assert SqlGenerator().generate_all(database) == user_table.all_statements() + post.all_statements()
        assert SqlGenerator().generate_all(database, table_name="post") == post.all_statements()


class TestIndexName:

    def test_reads_back_generated_name(self):
        statement = IndexBuilder.btree("user", "email")
        assert index_name_of(statement) == IndexBuilder.index_name("user", ["email"])

    def test_readable_prefix_and_digest(self):
        name = IndexBuilder.index_name("user", ["email"])
        assert re.fullmatch(r"idx_user_email_[0-9a-f]{8}", name)
        assert name == IndexBuilder.index_name("user", ["email"])

    def test_reads_back_name_with_quote(self):
        statement = IndexBuilder.btree('we"ird', "col")
        name = index_name_of(statement)
        assert name.startswith('idx_we"ird_col_')
        assert name == IndexBuilder.index_name('we"ird', ["col"])

    def test_underscore_split_does_not_collide(self):
        assert IndexBuilder.index_name("a_b", ["c"]) != IndexBuilder.index_name("a", ["b_c"])

    def test_long_names_stay_unique_within_identifier_limit(self):
        table = "t" * 80
        first = IndexBuilder.index_name(table, ["column_one"])
        second = IndexBuilder.index_name(table, ["column_two"])
        assert first != second
        assert len(first.encode("utf-8")) <= 63
        assert len(IndexBuilder.index_name("ü" * 40, ["c"]).encode("utf-8")) <= 63

    def test_tables_with_ambiguous_names_get_distinct_indexes(self):
        generator = SqlGenerator()
        first = generator.build_table("a_b", "AB", [
            ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True),
            ColumnDefinition(name="c", storage_kind=StorageKind.INT, indexed=True),
        ])
        second = generator.build_table("a", "A", [
            ColumnDefinition(name="id", storage_kind=StorageKind.INT, primary_key=True),
            ColumnDefinition(name="b_c", storage_kind=StorageKind.INT, indexed=True),
        ])
        names = {index_name_of(s) for s in first.create_index_statements + second.create_index_statements}
        assert len(names) == 2

    def test_rejects_non_index_statement(self):
        with pytest.raises(ValueError):
            index_name_of('CREATE TABLE "t" ("a" TEXT)')

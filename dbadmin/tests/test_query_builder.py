"""
通用 SQL 构造测试：过滤、排序、分页以及增删改语句
"""
import pytest

from dbadmin.errors import (
    EmptyPayloadError,
    InvalidIdentifierError,
    InvalidSortColumnError,
    MissingKeyError,
    ValidationError,
)
from dbadmin.repository import query_builder as qb
from dbadmin.repository.schema_repo import ColumnDescriptor

SCHEMA = [
    ColumnDescriptor("id", "INTEGER", True, False),
    ColumnDescriptor("name", "TEXT", False, True),
    ColumnDescriptor("status", "TEXT", False, False),
]


def test_null_filter_has_no_bound_parameter():
    where, params = qb.build_where({"status": None}, SCHEMA)
    assert where == ' WHERE "status" IS NULL'
    assert params == []

    where, params = qb.build_where({"status": "NULL"}, SCHEMA)
    assert where == ' WHERE "status" IS NULL'
    assert params == []


def test_like_filter_binds_raw_value():
    where, params = qb.build_where({"name": "%abc%"}, SCHEMA)
    assert where == ' WHERE "name" LIKE ?'
    assert params == ["%abc%"]

    where, params = qb.build_where({"name": "abc%"}, SCHEMA)
    assert "LIKE ?" in where and params == ["abc%"]


def test_filters_joined_in_iteration_order():
    where, params = qb.build_where({"status": "active", "name": "%a", "id": None}, SCHEMA)
    assert where == ' WHERE "status" = ? AND "name" LIKE ? AND "id" IS NULL'
    assert params == ["active", "%a"]


def test_filter_on_unknown_or_unsafe_column_rejected():
    with pytest.raises(InvalidIdentifierError):
        qb.build_where({"missing": 1}, SCHEMA)
    with pytest.raises(InvalidIdentifierError):
        qb.build_where({"name; --": 1}, SCHEMA)


def test_select_pagination_and_count():
    plan = qb.build_select("users", SCHEMA, qb.QueryOptions(page=3, limit=10, filters={"status": "active"}))
    assert plan.sql == 'SELECT * FROM "users" WHERE "status" = ? LIMIT ? OFFSET ?'
    assert plan.params == ["active", 10, 20]
    assert plan.count_sql == 'SELECT COUNT(*) AS count FROM "users" WHERE "status" = ?'
    assert plan.count_params == ["active"]


def test_select_sort_direction_defaults_to_asc():
    plan = qb.build_select("users", SCHEMA, qb.QueryOptions(sort_column="name", sort_direction="sideways"))
    assert 'ORDER BY "name" ASC' in plan.sql
    plan = qb.build_select("users", SCHEMA, qb.QueryOptions(sort_column="name", sort_direction="desc"))
    assert 'ORDER BY "name" DESC' in plan.sql
    assert "ORDER BY" not in plan.count_sql


def test_select_rejects_sort_column_not_in_schema():
    with pytest.raises(InvalidSortColumnError):
        qb.build_select("users", SCHEMA, qb.QueryOptions(sort_column="email"))


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 5), ("1", 10), (True, 10)])
def test_query_options_must_be_positive_ints(page, limit):
    with pytest.raises(ValidationError):
        qb.QueryOptions(page=page, limit=limit).validate()


def test_insert_statement():
    sql, params = qb.build_insert("users", {"name": "Alice", "status": None})
    assert sql == 'INSERT INTO "users" ("name", "status") VALUES (?, ?)'
    assert params == ["Alice", None]


def test_insert_rejects_empty_payload():
    with pytest.raises(EmptyPayloadError):
        qb.build_insert("users", {})


def test_update_drops_primary_key_from_set_clause():
    sql, params = qb.build_update("users", "id", 7, {"id": 99, "name": "Zed"})
    assert sql == 'UPDATE "users" SET "name" = ? WHERE "id" = ?'
    assert '"id" = ?,' not in sql
    assert params == ["Zed", 7]


def test_update_with_only_primary_key_is_empty():
    with pytest.raises(EmptyPayloadError):
        qb.build_update("users", "id", 7, {"id": 99})


def test_update_rejects_empty_and_missing_key():
    with pytest.raises(EmptyPayloadError):
        qb.build_update("users", "id", 1, {})
    with pytest.raises(MissingKeyError):
        qb.build_update("users", None, 1, {"name": "x"})
    with pytest.raises(MissingKeyError):
        qb.build_update("users", "id", None, {"name": "x"})


def test_delete_statement():
    sql, params = qb.build_delete("users", "id", "3")
    assert sql == 'DELETE FROM "users" WHERE "id" = ?'
    assert params == ["3"]
    with pytest.raises(MissingKeyError):
        qb.build_delete("users", "id", "")


def test_select_by_key_statement():
    sql, params = qb.build_select_by_key("codes", "id", "a%41")
    assert sql == 'SELECT * FROM "codes" WHERE "id" = ? LIMIT 1'
    assert params == ["a%41"]
    with pytest.raises(MissingKeyError):
        qb.build_select_by_key("codes", None, "x")


def test_injection_in_table_name_rejected():
    with pytest.raises(InvalidIdentifierError):
        qb.build_insert("users; DROP TABLE x", {"name": "a"})
    with pytest.raises(InvalidIdentifierError):
        qb.build_select("users; DROP TABLE x", SCHEMA, qb.QueryOptions())


def test_create_table_single_primary_key_inline():
    sql = qb.build_create_table("items", [
        qb.ColumnDef("id", "integer", primary_key=True),
        qb.ColumnDef("title", "text", not_null=True),
        qb.ColumnDef("price", "decimal(10, 2)"),
    ])
    assert sql == 'CREATE TABLE "items" ("id" INTEGER PRIMARY KEY, "title" TEXT NOT NULL, "price" DECIMAL(10, 2))'


def test_create_table_composite_primary_key_implies_not_null():
    sql = qb.build_create_table("links", [
        qb.ColumnDef("a", "INTEGER", primary_key=True),
        qb.ColumnDef("b", "TEXT", primary_key=True),
        qb.ColumnDef("c", "TEXT"),
    ])
    assert sql == (
        'CREATE TABLE "links" ("a" INTEGER NOT NULL, "b" TEXT NOT NULL, "c" TEXT, '
        'PRIMARY KEY ("a", "b"))'
    )


def test_create_table_validation():
    with pytest.raises(InvalidIdentifierError):
        qb.build_create_table("", [qb.ColumnDef("a")])
    with pytest.raises(EmptyPayloadError):
        qb.build_create_table("t", [])
    with pytest.raises(InvalidIdentifierError):
        qb.build_create_table("1t", [qb.ColumnDef("a")])
    with pytest.raises(InvalidIdentifierError):
        qb.build_create_table("t", [qb.ColumnDef("a", "TEXT); DROP TABLE x; --")])
    with pytest.raises(ValidationError):
        qb.build_create_table("t", [qb.ColumnDef("a"), qb.ColumnDef("A")])


def test_drop_table_is_if_exists():
    assert qb.build_drop_table("users") == 'DROP TABLE IF EXISTS "users"'


def test_count_all_quotes_engine_names_verbatim():
    assert qb.build_count_all('odd "name"') == 'SELECT COUNT(*) AS count FROM "odd ""name"""'

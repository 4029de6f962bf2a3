import sqlite3
from unittest.mock import MagicMock

import pytest

from dbadmin.db import get_conn
from dbadmin.errors import EngineError, NotFoundError
from dbadmin.repository import schema_repo
from dbadmin.repository.schema_repo import ColumnDescriptor


def _col(name, pk=False):
    return ColumnDescriptor(name, "TEXT", pk, False)


def test_describe_table(sample_db):
    with get_conn(sample_db) as conn:
        schema = schema_repo.describe_table(conn, "users")
    assert [c.name for c in schema] == ["id", "name", "email", "status", "note"]
    assert schema[0] == ColumnDescriptor("id", "INTEGER", True, False)
    assert schema[1].is_not_null is True
    assert schema[2].type == "TEXT"


def test_describe_missing_table_returns_empty(sample_db):
    with get_conn(sample_db) as conn:
        assert schema_repo.describe_table(conn, "nope") == []
        assert schema_repo.table_exists(conn, "nope") is False
        assert schema_repo.table_exists(conn, "users") is True


def test_list_tables_excludes_internal(sample_db):
    with get_conn(sample_db) as conn:
        tables = schema_repo.list_tables(conn)
    # users 使用 AUTOINCREMENT，会产生 sqlite_sequence
    assert "sqlite_sequence" not in tables
    assert tables == sorted(tables)
    assert {"users", "memberships", "event_log", "attachments", "people"} <= set(tables)


def test_composite_key_flags_every_member(sample_db):
    with get_conn(sample_db) as conn:
        schema = schema_repo.describe_table(conn, "memberships")
    assert schema_repo.primary_key_columns(schema) == ["user_id", "group_id"]
    assert schema_repo.resolve_primary_key(schema) is None


@pytest.mark.parametrize(
    "schema,expected",
    [
        ([_col("id", True), _col("name")], "id"),
        ([_col("name"), _col("code", True)], "code"),
        ([_col("a"), _col("b")], None),
        ([_col("a", True), _col("b", True)], None),
        ([], None),
    ],
)
def test_resolve_primary_key(schema, expected):
    pk = schema_repo.resolve_primary_key(schema)
    assert (pk.name if pk else None) == expected


@pytest.mark.parametrize(
    "call",
    [
        lambda conn: schema_repo.list_tables(conn),
        lambda conn: schema_repo.table_exists(conn, "users"),
        lambda conn: schema_repo.describe_table(conn, "users"),
    ],
)
def test_engine_errors_are_classified(call):
    conn = MagicMock()
    conn.execute.side_effect = sqlite3.DatabaseError("file is not a database")
    with pytest.raises(EngineError, match="file is not a database"):
        call(conn)

    conn.execute.side_effect = sqlite3.OperationalError("no such table: users")
    with pytest.raises(NotFoundError):
        call(conn)

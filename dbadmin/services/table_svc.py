"""
通用表访问服务

对外契约：每个函数返回 {"success": bool, ...}，失败时附带 error/code，不向上抛异常。
每次调用只打开一个连接，并在所有退出路径上关闭。
"""
from __future__ import annotations

import logging
from sqlite3 import Connection
from typing import Any, Iterable

from ..db import get_conn
from ..errors import (
    EmptyPayloadError,
    InvalidIdentifierError,
    MissingKeyError,
    NoUsablePrimaryKeyError,
    NotFoundError,
)
from ..repository import query_builder as qb
from ..repository import schema_repo, table_repo
from ..repository.identifiers import check_identifier
from ..repository.schema_repo import ColumnDescriptor
from .utils import as_result

logger = logging.getLogger(__name__)


def _load_schema(conn: Connection, table: str) -> list[ColumnDescriptor]:
    check_identifier(table, "table")
    schema = schema_repo.describe_table(conn, table)
    if not schema and not schema_repo.table_exists(conn, table):
        raise NotFoundError(f"Table '{table}' not found.")
    return schema


def _key_column_for(schema: list[ColumnDescriptor], table: str, key_column: str | None, action: str) -> str:
    pk = schema_repo.resolve_primary_key(schema)
    if pk is None:
        raise NoUsablePrimaryKeyError(
            f"Primary key not found or is composite for table {table}. "
            f"{action} by arbitrary ID not supported."
        )
    if key_column and key_column != pk.name:
        raise InvalidIdentifierError(f"Column '{key_column}' is not the primary key of table {table}.")
    return pk.name


def _require_key_value(key_value: Any, action: str):
    if key_value is None or (isinstance(key_value, str) and key_value == ""):
        raise MissingKeyError(f"Primary key criteria missing for {action}.")


@as_result
def list_tables(db_name: str) -> dict:
    with get_conn(db_name) as conn:
        return {"tables": schema_repo.list_tables(conn)}


@as_result
def describe_table(db_name: str, table: str) -> dict:
    with get_conn(db_name) as conn:
        schema = _load_schema(conn, table)
    pk = schema_repo.resolve_primary_key(schema)
    return {
        "schema": [c.to_dict() for c in schema],
        "primary_key_columns": schema_repo.primary_key_columns(schema),
        "primary_key": pk.name if pk else None,
    }


@as_result
def fetch_page(db_name: str, table: str, page: int = 1, limit: int = 10,
               sort_column: str | None = None, sort_direction: str | None = None,
               filters: dict[str, Any] | None = None) -> dict:
    options = qb.QueryOptions(
        page=page,
        limit=limit,
        sort_column=sort_column or None,
        sort_direction=qb.normalize_direction(sort_direction),
        filters=dict(filters or {}),
    ).validate()
    with get_conn(db_name) as conn:
        schema = _load_schema(conn, table)
        rows, total = table_repo.fetch_page(conn, table, schema, options)
    return {
        "rows": rows,
        "total_row_count": total,
        "page": options.page,
        "limit": options.limit,
        "primary_key_columns": schema_repo.primary_key_columns(schema),
    }


@as_result
def insert_row(db_name: str, table: str, values: dict[str, Any]) -> dict:
    if not values:
        raise EmptyPayloadError("No data provided for new row.")
    qb.build_insert(table, values)
    with get_conn(db_name) as conn:
        row_id = table_repo.insert(conn, table, values)
    return {"id": row_id}


@as_result
def update_row(db_name: str, table: str, key_column: str | None, key_value: Any,
               values: dict[str, Any]) -> dict:
    if not values:
        raise EmptyPayloadError("No values provided for update.")
    _require_key_value(key_value, "update")
    with get_conn(db_name) as conn:
        schema = _load_schema(conn, table)
        key = _key_column_for(schema, table, key_column, "Updates")
        before = table_repo.get_by_key(conn, table, key, key_value)
        changes = table_repo.update_by_key(conn, table, key, key_value, values)
        # 主键不参与 SET，按原键值即可读回更新后的行
        after = table_repo.get_by_key(conn, table, key, key_value) if changes else None
    if changes == 0:
        logger.warning(f"Update on {table} where {key}={key_value!r} changed 0 rows.")
    return {"changed_row_count": changes, "key_column": key, "before": before, "after": after}


@as_result
def delete_row(db_name: str, table: str, key_column: str | None, key_value: Any) -> dict:
    _require_key_value(key_value, "deletion")
    with get_conn(db_name) as conn:
        schema = _load_schema(conn, table)
        key = _key_column_for(schema, table, key_column, "Deletes")
        before = table_repo.get_by_key(conn, table, key, key_value)
        changes = table_repo.delete_by_key(conn, table, key, key_value)
    if changes == 0:
        logger.warning(f"Delete on {table} where {key}={key_value!r} changed 0 rows (row not found).")
    return {"changed_row_count": changes, "key_column": key, "before": before}


def _to_column_defs(columns: Iterable[Any]) -> list[qb.ColumnDef]:
    out = []
    for c in columns or []:
        if isinstance(c, qb.ColumnDef):
            out.append(c)
        else:
            out.append(qb.ColumnDef(
                name=c.get("name"),
                type=c.get("type") or "",
                primary_key=bool(c.get("primary_key", False)),
                not_null=bool(c.get("not_null", False)),
            ))
    return out


@as_result
def create_table(db_name: str, table: str, columns: Iterable[Any]) -> dict:
    defs = _to_column_defs(columns)
    sql = qb.build_create_table(table, defs)
    with get_conn(db_name) as conn:
        table_repo.create_table(conn, table, defs)
    return {"sql": sql}


@as_result
def drop_table(db_name: str, table: str) -> dict:
    qb.build_drop_table(table)
    with get_conn(db_name) as conn:
        table_repo.drop_table(conn, table)
    return {}

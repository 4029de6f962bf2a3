from __future__ import annotations

import logging
from sqlite3 import Connection
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..db import execute as _run
from . import query_builder as qb
from .schema_repo import ColumnDescriptor

logger = logging.getLogger(__name__)


def fetch_page(conn: Connection, table: str, schema: Sequence[ColumnDescriptor],
               options: qb.QueryOptions) -> Tuple[List[Dict[str, Any]], int]:
    plan = qb.build_select(table, schema, options)
    total = _run(conn, plan.count_sql, plan.count_params).fetchone()["count"]
    rows = _run(conn, plan.sql, plan.params).fetchall()
    return [dict(r) for r in rows], int(total)


def insert(conn: Connection, table: str, values: Dict[str, Any]) -> Optional[int]:
    sql, params = qb.build_insert(table, values)
    cur = _run(conn, sql, params)
    conn.commit()
    return cur.lastrowid


def get_by_key(conn: Connection, table: str, key_column: str, key_value: Any) -> Optional[Dict[str, Any]]:
    sql, params = qb.build_select_by_key(table, key_column, key_value)
    row = _run(conn, sql, params).fetchone()
    return dict(row) if row is not None else None


def update_by_key(conn: Connection, table: str, key_column: str, key_value: Any,
                  values: Dict[str, Any]) -> int:
    sql, params = qb.build_update(table, key_column, key_value, values)
    cur = _run(conn, sql, params)
    conn.commit()
    return cur.rowcount


def delete_by_key(conn: Connection, table: str, key_column: str, key_value: Any) -> int:
    sql, params = qb.build_delete(table, key_column, key_value)
    cur = _run(conn, sql, params)
    conn.commit()
    return cur.rowcount


def create_table(conn: Connection, table: str, columns: Sequence[qb.ColumnDef]) -> str:
    sql = qb.build_create_table(table, columns)
    logger.info(f"Executing SQL: {sql}")
    _run(conn, sql)
    conn.commit()
    return sql


def drop_table(conn: Connection, table: str) -> None:
    _run(conn, qb.build_drop_table(table))
    conn.commit()


def count_rows(conn: Connection, table: str) -> int:
    row = _run(conn, qb.build_count_all(table)).fetchone()
    return int(row["count"] or 0) if row else 0

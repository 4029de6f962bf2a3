"""
表结构数据访问层
负责表列表、列元数据读取以及主键解析。元数据每次实时读取，不做缓存。
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from sqlite3 import Connection
from typing import List, Optional, Sequence

from ..db import execute
from .identifiers import quote_identifier


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    type: str
    is_primary_key: bool
    is_not_null: bool

    def to_dict(self) -> dict:
        return asdict(self)


def list_tables(conn: Connection) -> List[str]:
    rows = execute(
        conn,
        "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ).fetchall()
    return [r["name"] for r in rows]


def table_exists(conn: Connection, table: str) -> bool:
    row = execute(
        conn, "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    return row is not None


def describe_table(conn: Connection, table: str) -> List[ColumnDescriptor]:
    """
    读取列元数据。表不存在时 PRAGMA 返回空结果而不是报错，
    调用方需要用 table_exists 区分“无列”和“无此表”。

    Args:
        conn: 数据库连接
        table: 表名（须通过标识符校验）

    Returns:
        按列定义顺序排列的 ColumnDescriptor 列表
    """
    rows = execute(conn, f"PRAGMA table_info({quote_identifier(table, 'table')})").fetchall()
    # pk 为主键内序号（1..n），非主键列为 0
    return [
        ColumnDescriptor(
            name=r["name"],
            type=r["type"] or "",
            is_primary_key=int(r["pk"] or 0) > 0,
            is_not_null=bool(r["notnull"]),
        )
        for r in rows
    ]


def primary_key_columns(schema: Sequence[ColumnDescriptor]) -> List[str]:
    return [c.name for c in schema if c.is_primary_key]


def resolve_primary_key(schema: Sequence[ColumnDescriptor]) -> Optional[ColumnDescriptor]:
    """唯一主键列；无主键或复合主键返回 None。"""
    pks = [c for c in schema if c.is_primary_key]
    if len(pks) == 1:
        return pks[0]
    return None


def column_names(schema: Sequence[ColumnDescriptor]) -> List[str]:
    return [c.name for c in schema]

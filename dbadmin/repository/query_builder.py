"""
通用表 SQL 构造（纯函数，无状态）

标识符经 identifiers 校验后拼入 SQL 文本；所有值一律走 ? 绑定参数。
所有校验都在生成 SQL 之前完成。
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import (
    EmptyPayloadError,
    InvalidIdentifierError,
    InvalidSortColumnError,
    MissingKeyError,
    ValidationError,
)
from .identifiers import check_identifier, check_new_identifier, quote_identifier, quote_verbatim
from .schema_repo import ColumnDescriptor, column_names

SORT_DIRECTIONS = ("ASC", "DESC")

# 列类型也会拼进 DDL：允许 "VARCHAR(20)"、"DECIMAL(10, 2)"、"UNSIGNED BIG INT" 这类写法
_COLUMN_TYPE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+\s*(,\s*\d+\s*)?\))?$")


@dataclass
class QueryOptions:
    page: int = 1
    limit: int = 10
    sort_column: Optional[str] = None
    sort_direction: str = "ASC"
    filters: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> "QueryOptions":
        for name in ("page", "limit"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int) or v < 1:
                raise ValidationError(f"{name} must be a positive integer, got {v!r}")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ColumnDef:
    name: str
    type: str = "TEXT"
    primary_key: bool = False
    not_null: bool = False


@dataclass
class SelectPlan:
    sql: str
    params: List[Any]
    count_sql: str
    count_params: List[Any]


def normalize_direction(direction: Optional[str]) -> str:
    d = (direction or "").strip().upper()
    return d if d in SORT_DIRECTIONS else "ASC"


def is_null_filter(value: Any) -> bool:
    return value is None or value == "NULL"


def is_like_filter(value: Any) -> bool:
    return isinstance(value, str) and (value.startswith("%") or value.endswith("%"))


def build_where(filters: Dict[str, Any], schema: Sequence[ColumnDescriptor]) -> Tuple[str, List[Any]]:
    """
    按 filters 的迭代顺序生成 WHERE 子句：
    None / "NULL" -> IS NULL（无绑定参数）；首或尾为 % 的字符串 -> LIKE ?（原值绑定，不转义）；
    其他 -> = ?。
    """
    if not filters:
        return "", []
    known = set(column_names(schema))
    clauses: List[str] = []
    params: List[Any] = []
    for col, value in filters.items():
        check_identifier(col, "filter column")
        if col not in known:
            raise InvalidIdentifierError(f"Unknown filter column: {col}")
        qcol = quote_verbatim(col)
        if is_null_filter(value):
            clauses.append(f"{qcol} IS NULL")
        elif is_like_filter(value):
            clauses.append(f"{qcol} LIKE ?")
            params.append(value)
        else:
            clauses.append(f"{qcol} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), params


def build_select(table: str, schema: Sequence[ColumnDescriptor], options: QueryOptions) -> SelectPlan:
    options.validate()
    qtable = quote_identifier(table, "table")

    order_by = ""
    if options.sort_column:
        if options.sort_column not in column_names(schema):
            raise InvalidSortColumnError(f"Invalid sort column: {options.sort_column}")
        order_by = f" ORDER BY {quote_verbatim(options.sort_column)} {normalize_direction(options.sort_direction)}"

    where, where_params = build_where(options.filters, schema)

    sql = f"SELECT * FROM {qtable}{where}{order_by} LIMIT ? OFFSET ?"
    count_sql = f"SELECT COUNT(*) AS count FROM {qtable}{where}"
    return SelectPlan(
        sql=sql,
        params=[*where_params, options.limit, options.offset],
        count_sql=count_sql,
        count_params=list(where_params),
    )


def build_insert(table: str, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
    if not values:
        raise EmptyPayloadError("No data provided for new row.")
    qtable = quote_identifier(table, "table")
    cols = [quote_identifier(k, "column") for k in values]
    placeholders = ", ".join(["?"] * len(cols))
    sql = f"INSERT INTO {qtable} ({', '.join(cols)}) VALUES ({placeholders})"
    return sql, list(values.values())


def _check_key(key_column: Optional[str], key_value: Any, action: str) -> str:
    if not key_column:
        raise MissingKeyError(f"Primary key criteria missing for {action}.")
    if key_value is None or (isinstance(key_value, str) and key_value == ""):
        raise MissingKeyError(f"Primary key value missing for {action}.")
    return quote_identifier(key_column, "key column")


def build_update(table: str, key_column: Optional[str], key_value: Any,
                 values: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """主键列若出现在 values 中会被丢弃（主键不可经此路径修改）。"""
    if not values:
        raise EmptyPayloadError("No values provided for update.")
    qkey = _check_key(key_column, key_value, "update")
    qtable = quote_identifier(table, "table")

    set_values = {k: v for k, v in values.items() if k != key_column}
    if not set_values:
        raise EmptyPayloadError("No valid fields to update after primary key column removal.")

    set_clause = ", ".join(f"{quote_identifier(k, 'column')} = ?" for k in set_values)
    sql = f"UPDATE {qtable} SET {set_clause} WHERE {qkey} = ?"
    return sql, [*set_values.values(), key_value]


def build_delete(table: str, key_column: Optional[str], key_value: Any) -> Tuple[str, List[Any]]:
    qkey = _check_key(key_column, key_value, "deletion")
    qtable = quote_identifier(table, "table")
    return f"DELETE FROM {qtable} WHERE {qkey} = ?", [key_value]


def build_select_by_key(table: str, key_column: Optional[str], key_value: Any) -> Tuple[str, List[Any]]:
    qkey = _check_key(key_column, key_value, "lookup")
    qtable = quote_identifier(table, "table")
    return f"SELECT * FROM {qtable} WHERE {qkey} = ? LIMIT 1", [key_value]


def _column_type(col: ColumnDef) -> str:
    t = (col.type or "").strip()
    if t and not _COLUMN_TYPE.match(t):
        raise InvalidIdentifierError(f"Invalid column type for {col.name}: {col.type!r}")
    return t.upper()


def build_create_table(table: str, columns: Sequence[ColumnDef]) -> str:
    """
    单主键列：列内联 PRIMARY KEY；多主键列：末尾 PRIMARY KEY (a, b, ...)，
    且复合主键列一律 NOT NULL。
    """
    if not table or not str(table).strip():
        raise InvalidIdentifierError("Table name cannot be empty.")
    check_new_identifier(table, "table")
    if not columns:
        raise EmptyPayloadError("Table must have at least one column.")

    seen = set()
    for col in columns:
        check_new_identifier(col.name, "column")
        if col.name.lower() in seen:
            raise ValidationError(f"Duplicate column name: {col.name}")
        seen.add(col.name.lower())

    pk_cols = [c for c in columns if c.primary_key]
    composite = len(pk_cols) > 1

    defs = []
    for col in columns:
        parts = [quote_verbatim(col.name)]
        t = _column_type(col)
        if t:
            parts.append(t)
        if col.primary_key and not composite:
            parts.append("PRIMARY KEY")
        if col.not_null or (composite and col.primary_key):
            parts.append("NOT NULL")
        defs.append(" ".join(parts))

    if composite:
        defs.append("PRIMARY KEY ({})".format(", ".join(quote_verbatim(c.name) for c in pk_cols)))
    return f"CREATE TABLE {quote_verbatim(table)} ({', '.join(defs)})"


def build_drop_table(table: str) -> str:
    return f"DROP TABLE IF EXISTS {quote_identifier(table, 'table')}"


def build_count_all(table: str) -> str:
    # 表名来自 sqlite_master，原样加引号即可
    return f"SELECT COUNT(*) AS count FROM {quote_verbatim(table)}"

from __future__ import annotations

# dbadmin/services/utils.py
import base64
import functools
import logging
import re
from typing import Any

from ..errors import DbAdminError, EngineError, InvalidIdentifierError

logger = logging.getLogger(__name__)

# 一个词：连续的非空白字符，或成对双引号括起的片段（可含空白）；落单的引号按普通字符处理
_SEARCH_TOKEN = re.compile(r'(?:[^\s"]+|"[^"]*"|")+')


def as_result(fn):
    """服务边界：DbAdminError 转为 {"success": False, ...}，成功结果补 success=True。"""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> dict:
        try:
            out = fn(*args, **kwargs)
        except DbAdminError as e:
            logger.warning(f"{fn.__name__} failed [{e.code}]: {e.message}")
            return e.to_result()
        except Exception as e:
            logger.exception(f"{fn.__name__} failed unexpectedly")
            return EngineError(str(e)).to_result()
        return {"success": True, **out}
    return wrapper


def parse_search_filters(q: str | None) -> dict[str, Any]:
    """
    解析搜索框里的 `column:value` 过滤条件，多个条件以空白分隔，
    值可用双引号包含空格，反斜杠等字符原样保留：`status:active name:"%bob smith%"`。
    不含冒号的词忽略；值为 NULL 时按 SQL NULL 处理。
    """
    if not q or not q.strip():
        return {}
    out: dict[str, Any] = {}
    for tok in _SEARCH_TOKEN.findall(q):
        col, sep, value = tok.partition(":")
        col = col.strip()
        if not sep or not col:
            continue
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        out[col] = None if value == "NULL" else value
    return out


def check_row_id(raw: str) -> str:
    """路径中的行标识（框架已完成 URL 解码，此处不再解码）：不得为空，不得包含 '/' 或 '..'。"""
    row_id = raw or ""
    if not row_id:
        raise InvalidIdentifierError("Row id cannot be empty.")
    if "/" in row_id or ".." in row_id:
        raise InvalidIdentifierError(f"Invalid row id: {raw!r}")
    return row_id


def encode_value(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return {"$blob": base64.b64encode(bytes(v)).decode("ascii")}
    return v


def decode_value(v: Any) -> Any:
    if isinstance(v, dict) and set(v.keys()) == {"$blob"}:
        return base64.b64decode(v["$blob"], validate=True)
    return v


def encode_row(row: dict[str, Any]) -> dict[str, Any]:
    return {k: encode_value(v) for k, v in row.items()}


def decode_row(row: dict[str, Any]) -> dict[str, Any]:
    return {k: decode_value(v) for k, v in row.items()}


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return (total + limit - 1) // limit

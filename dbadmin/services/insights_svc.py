from __future__ import annotations

import logging
from typing import Any

from ..db import get_conn
from ..errors import DbAdminError, ValidationError
from ..repository import schema_repo, table_repo
from .utils import as_result

logger = logging.getLogger(__name__)


def _database_insight(name: str) -> dict[str, Any]:
    it: dict[str, Any] = {
        "file_name": name,
        "table_count": 0,
        "total_rows": 0,
        "tables": [],
        "error": None,
    }
    if not name or not name.strip():
        it["error"] = "File name is empty."
        return it
    try:
        with get_conn(name) as conn:
            names = schema_repo.list_tables(conn)
            it["table_count"] = len(names)
            for t in names:
                n = table_repo.count_rows(conn, t)
                it["tables"].append({"name": t, "row_count": n})
                it["total_rows"] += n
    except DbAdminError as e:
        logger.warning(f"Error processing database {name}: {e.message}")
        it["error"] = e.message
    return it


@as_result
def get_overall_stats(database_names: list[str]) -> dict:
    """
    多库汇总：每个库的表数量与各表行数。单个库失败只记录在该库的 error 字段，
    汇总值仅累计成功处理的库。
    """
    if not database_names:
        raise ValidationError("No database file names provided.")

    stats: dict[str, Any] = {
        "total_databases_processed": len(database_names),
        "total_databases_successfully_processed": 0,
        "total_tables": 0,
        "grand_total_rows": 0,
        "databases": [],
    }
    for name in database_names:
        it = _database_insight(name)
        if it["error"] is None:
            stats["total_databases_successfully_processed"] += 1
            stats["total_tables"] += it["table_count"]
            stats["grand_total_rows"] += it["total_rows"]
        stats["databases"].append(it)
    return {"stats": stats}

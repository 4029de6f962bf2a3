from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ..db import get_settings
from ..errors import DbAdminError
from ..logs import LogContext
from ..services.table_svc import delete_row, describe_table, fetch_page, insert_row, update_row
from ..services.utils import check_row_id, decode_row, encode_row, parse_search_filters, total_pages
from .base import check, status_for

router = APIRouter()

FILTER_PREFIX = "filter_"


def _collect_filters(request: Request, q: Optional[str]) -> dict[str, Any]:
    filters = parse_search_filters(q)
    for key, value in request.query_params.items():
        if key.startswith(FILTER_PREFIX):
            filters[key[len(FILTER_PREFIX):]] = None if value == "NULL" else value
    return filters


def _decode_body(body: dict[str, Any]) -> dict[str, Any]:
    try:
        return decode_row(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid blob value: {e}")


@router.get("/api/db/{db_name}/{table}/schema")
def api_table_schema(db_name: str, table: str):
    res = check(describe_table(db_name, table))
    return {
        "schema": res["schema"],
        "primary_key_columns": res["primary_key_columns"],
        "primary_key": res["primary_key"],
    }


@router.get("/api/db/{db_name}/{table}/data")
def api_table_data(
    request: Request,
    db_name: str,
    table: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    q: Optional[str] = Query(None, description="搜索框：column:value，多个以空格分隔；%abc% 表示模糊匹配"),
):
    settings = get_settings()
    limit = limit or settings["page_size_default"]
    if limit > settings["page_size_max"]:
        raise HTTPException(status_code=400, detail=f"limit must not exceed {settings['page_size_max']}")

    res = check(fetch_page(db_name, table, page, limit, sort_by, sort_order, _collect_filters(request, q)))
    total = res["total_row_count"]
    return {
        "data": [encode_row(r) for r in res["rows"]],
        "total_rows": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
        "limit": limit,
        "primary_key_columns": res["primary_key_columns"],
    }


@router.post("/api/db/{db_name}/{table}/data", status_code=201)
def api_row_insert(db_name: str, table: str, body: dict[str, Any] = Body(...)):
    log = LogContext("ROW_INSERT")
    log.set_database(db_name)
    log.set_entity(table, None)
    log.set_payload(body)
    res = insert_row(db_name, table, _decode_body(body))
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.set_entity(table, res["id"])
    log.write("OK")
    return {"message": "Row inserted successfully.", "id": res["id"]}


def _row_for_log(row: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    return None if row is None else encode_row(row)


def _resolve_row_id(row_id: str) -> str:
    try:
        return check_row_id(row_id)
    except DbAdminError as e:
        raise HTTPException(status_code=status_for(e.to_result()), detail=e.message)


@router.put("/api/db/{db_name}/{table}/data/{row_id}")
def api_row_update(db_name: str, table: str, row_id: str, body: dict[str, Any] = Body(...)):
    key_value = _resolve_row_id(row_id)
    log = LogContext("ROW_UPDATE")
    log.set_database(db_name)
    log.set_entity(table, key_value)
    log.set_payload(body)
    res = update_row(db_name, table, None, key_value, _decode_body(body))
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.set_before(_row_for_log(res["before"]))
    log.set_after(_row_for_log(res["after"]))
    if res["changed_row_count"] == 0:
        log.write("NOT_FOUND")
        return JSONResponse(
            status_code=404,
            content={
                "message": f"No row found with ID {key_value} in table {table}, or data was the same.",
                "changes": 0,
            },
        )
    log.write("OK")
    return {"message": "Row updated successfully.", "changes": res["changed_row_count"]}


@router.delete("/api/db/{db_name}/{table}/data/{row_id}")
def api_row_delete(db_name: str, table: str, row_id: str):
    key_value = _resolve_row_id(row_id)
    log = LogContext("ROW_DELETE")
    log.set_database(db_name)
    log.set_entity(table, key_value)
    res = delete_row(db_name, table, None, key_value)
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.set_before(_row_for_log(res["before"]))
    if res["changed_row_count"] == 0:
        log.write("NOT_FOUND")
        return JSONResponse(
            status_code=404,
            content={"message": f"No row found with ID {key_value} in table {table}.", "changes": 0},
        )
    log.write("OK")
    return {"message": "Row deleted successfully.", "changes": res["changed_row_count"]}

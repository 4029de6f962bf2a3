from __future__ import annotations

from fastapi import APIRouter, File, UploadFile
from pydantic import BaseModel

from ..logs import LogContext
from ..services.storage_svc import create_database, list_databases, store_uploaded_db
from ..services.table_svc import create_table, drop_table, list_tables
from .base import check

router = APIRouter()


class DatabaseCreate(BaseModel):
    file_name: str


class ColumnDefBody(BaseModel):
    name: str
    type: str = "TEXT"
    primary_key: bool = False
    not_null: bool = False


class TableCreate(BaseModel):
    table: str
    columns: list[ColumnDefBody]


@router.get("/api/databases")
def api_databases():
    return {"databases": check(list_databases())["databases"]}


@router.post("/api/databases/upload")
async def api_database_upload(dbfile: UploadFile = File(...)):
    log = LogContext("DB_UPLOAD")
    log.set_database(dbfile.filename)
    content = await dbfile.read()
    res = store_uploaded_db(content, dbfile.filename or "")
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.write("OK")
    return {"message": "File uploaded successfully.", "path": res["path"], "file_name": res["file_name"]}


@router.post("/api/databases", status_code=201)
def api_database_create(body: DatabaseCreate):
    log = LogContext("DB_CREATE")
    log.set_database(body.file_name)
    res = create_database(body.file_name)
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.write("OK")
    return {"message": "ok", "file_name": res["file_name"], "created": res["created"]}


@router.get("/api/db/{db_name}/tables")
def api_tables(db_name: str):
    return {"tables": check(list_tables(db_name))["tables"]}


@router.post("/api/db/{db_name}/tables", status_code=201)
def api_table_create(db_name: str, body: TableCreate):
    log = LogContext("TABLE_CREATE")
    log.set_database(db_name)
    log.set_entity("table", body.table)
    log.set_payload(body.model_dump())
    res = create_table(db_name, body.table, [c.model_dump() for c in body.columns])
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.write("OK")
    return {"message": "ok", "sql": res["sql"]}


@router.delete("/api/db/{db_name}/tables/{table}")
def api_table_drop(db_name: str, table: str):
    log = LogContext("TABLE_DROP")
    log.set_database(db_name)
    log.set_entity("table", table)
    res = drop_table(db_name, table)
    if not res["success"]:
        log.write("ERROR", res["error"])
    check(res)
    log.write("OK")
    return {"message": "ok"}

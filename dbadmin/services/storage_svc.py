from __future__ import annotations

import logging
import os
import sqlite3

from ..db import ALLOWED_EXTENSIONS, close_conn, ensure_data_dir, get_data_dir, resolve_db_path
from ..errors import ValidationError, classify_engine_error
from .utils import as_result

logger = logging.getLogger(__name__)

SQLITE_HEADER = b"SQLite format 3\x00"


def _check_file_name(filename: str) -> str:
    name = os.path.basename((filename or "").strip())
    ext = os.path.splitext(name)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError("Invalid file type. Please upload an SQLite database file.")
    return name


@as_result
def store_uploaded_db(content: bytes, filename: str) -> dict:
    """
    保存上传的数据库文件（同名覆盖）。空文件视为空库；非空文件须带 SQLite 文件头。
    """
    name = _check_file_name(filename)
    path = resolve_db_path(name)
    if content and not content.startswith(SQLITE_HEADER):
        raise ValidationError(f"{name} is not an SQLite database file.")
    ensure_data_dir()
    with open(path, "wb") as f:
        f.write(content or b"")
    logger.info(f"Stored database file {name} ({len(content or b'')} bytes)")
    return {"path": path, "file_name": name}


@as_result
def create_database(filename: str) -> dict:
    """新建空数据库文件；已存在时不做任何修改。"""
    name = _check_file_name(filename)
    path = resolve_db_path(name)
    ensure_data_dir()
    created = not os.path.exists(path)
    conn = None
    try:
        # 建库路径允许 create-on-first-write
        conn = sqlite3.connect(path)
        conn.execute("PRAGMA journal_mode = WAL;")
    except sqlite3.Error as e:
        raise classify_engine_error(e) from e
    finally:
        close_conn(conn)
    return {"path": path, "file_name": name, "created": created}


@as_result
def list_databases() -> dict:
    data_dir = get_data_dir()
    if not os.path.isdir(data_dir):
        return {"databases": []}
    names = sorted(
        n for n in os.listdir(data_dir)
        if os.path.splitext(n)[1].lower() in ALLOWED_EXTENSIONS
        and os.path.isfile(os.path.join(data_dir, n))
    )
    return {"databases": names}

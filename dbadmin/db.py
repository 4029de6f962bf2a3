from __future__ import annotations

# dbadmin/db.py
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import yaml

from .errors import InvalidIdentifierError, NotFoundError, classify_engine_error

logger = logging.getLogger(__name__)

# 数据目录解析顺序：
# 1) 环境变量 DBADMIN_DATA_DIR（最高优先级）
# 2) config.yaml 的 data_dir
# 3) 兜底：项目根 data/
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_DATA_DIR = os.path.join(_PROJECT_ROOT, "data")

ALLOWED_EXTENSIONS = (".db", ".sqlite", ".sqlite3")

DEFAULTS = {
    "page_size_default": 10,
    "page_size_max": 500,
}


def _read_config_yaml() -> dict:
    cfg_path = os.environ.get("DBADMIN_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"config.yaml unreadable, using defaults: {e}")
        return {}
    out = {}
    v = cfg.get("data_dir")
    if isinstance(v, str) and v.strip():
        out["data_dir"] = v.strip()
    for k in ("page_size_default", "page_size_max"):
        try:
            if cfg.get(k) is not None:
                out[k] = int(cfg[k])
        except (TypeError, ValueError):
            logger.warning(f"config.yaml: ignoring non-integer {k}={cfg.get(k)!r}")
    return out


def get_settings() -> dict:
    cfg = _read_config_yaml()
    return {
        "data_dir": get_data_dir(),
        "page_size_default": cfg.get("page_size_default", DEFAULTS["page_size_default"]),
        "page_size_max": cfg.get("page_size_max", DEFAULTS["page_size_max"]),
    }


def get_data_dir() -> str:
    env_dir = os.environ.get("DBADMIN_DATA_DIR")
    if env_dir:
        return env_dir
    return _read_config_yaml().get("data_dir") or _DEFAULT_DATA_DIR


def ensure_data_dir() -> str:
    """Create the data directory if missing. Safe to call repeatedly."""
    path = get_data_dir()
    if not os.path.isdir(path):
        os.makedirs(path, exist_ok=True)
        logger.info(f"Created database directory: {path}")
    return path


def resolve_db_path(db_name: str) -> str:
    """
    将用户提供的数据库名解析为数据目录下的绝对路径。
    名称按原样使用（路由层已完成 URL 解码）；禁止目录分隔符与 '..'，防止路径穿越。
    """
    name = (db_name or "").strip()
    if not name:
        raise InvalidIdentifierError("Database file name cannot be empty.")
    if "/" in name or "\\" in name or ".." in name:
        raise InvalidIdentifierError("Invalid database file name. Must not contain path separators.")
    return os.path.join(get_data_dir(), name)


def open_conn(path: str) -> sqlite3.Connection:
    """
    打开已存在的数据库文件。浏览类操作不隐式创建文件。
    设置 WAL 日志模式，row_factory 为 Row。
    """
    if not os.path.isfile(path):
        raise NotFoundError(f"Database file not found: {os.path.basename(path)}")
    try:
        conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    except sqlite3.Error as e:
        raise classify_engine_error(e) from e
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode = WAL;")
    except sqlite3.Error as e:
        conn.close()
        raise classify_engine_error(e) from e
    return conn


def close_conn(conn: sqlite3.Connection | None) -> None:
    # close 失败只记录日志，不能覆盖业务操作中更具体的异常
    if conn is None:
        return
    try:
        conn.close()
    except sqlite3.Error as e:
        logger.error(f"Error closing database connection: {e}")


@contextmanager
def get_conn(db_name: str) -> Iterator[sqlite3.Connection]:
    """
    获取 SQLite 连接：一次逻辑操作一个连接，任何退出路径都会关闭。
    db_name 为数据目录下的文件名。
    """
    conn = open_conn(resolve_db_path(db_name))
    try:
        yield conn
    finally:
        close_conn(conn)


def execute(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
    """执行单条语句；sqlite3.Error 统一经 classify_engine_error 转为 DbAdminError。"""
    try:
        return conn.execute(sql, tuple(params))
    except sqlite3.Error as e:
        logger.warning(f"Statement failed: {sql} | error: {e}")
        raise classify_engine_error(e) from e

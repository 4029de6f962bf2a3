import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


SAMPLE_SCHEMA = """
CREATE TABLE users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT UNIQUE,
  status TEXT,
  note TEXT
);
CREATE TABLE memberships (
  user_id INTEGER NOT NULL,
  group_id INTEGER NOT NULL,
  role TEXT,
  PRIMARY KEY (user_id, group_id)
);
CREATE TABLE event_log (
  msg TEXT,
  level TEXT
);
CREATE TABLE attachments (
  id INTEGER PRIMARY KEY,
  data BLOB
);
CREATE TABLE people (
  id INTEGER PRIMARY KEY,
  name TEXT,
  email TEXT
);
"""


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    # 每个测试独立的数据目录；屏蔽项目根 config.yaml
    path = tmp_path / "data"
    path.mkdir()
    monkeypatch.setenv("DBADMIN_DATA_DIR", str(path))
    monkeypatch.setenv("DBADMIN_CONFIG", str(tmp_path / "missing-config.yaml"))
    return path


def make_db(data_dir: Path, name: str, script: str) -> str:
    conn = sqlite3.connect(str(data_dir / name))
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return name


@pytest.fixture()
def sample_db(data_dir):
    name = make_db(data_dir, "sample.db", SAMPLE_SCHEMA)
    conn = sqlite3.connect(str(data_dir / name))
    try:
        conn.executemany(
            "INSERT INTO users(name, email, status) VALUES(?, ?, ?)",
            [
                ("Alice", "alice@x.com", "active"),
                ("Bob", "bob@x.com", "inactive"),
                ("Carol", "carol@x.com", "active"),
                ("Dave", None, "active"),
                ("Erin", "erin@x.com", None),
            ],
        )
        conn.execute("INSERT INTO memberships(user_id, group_id, role) VALUES(1, 1, 'owner')")
        conn.execute("INSERT INTO event_log(msg, level) VALUES('boot', 'INFO')")
        conn.commit()
    finally:
        conn.close()
    return name


@pytest.fixture()
def client(data_dir):
    from dbadmin.api import app
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c

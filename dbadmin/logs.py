import json, time, uuid, datetime as dt
import logging
from typing import Optional

# 操作日志不落库：每个数据库文件只保存自身数据，不附带任何旁路表/文件
oplog = logging.getLogger("dbadmin.oplog")


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class LogContext:
    def __init__(self, action: str, user: str = "owner"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.database = None
        self.entity_type = None
        self.entity_id = None

    def set_database(self, name: str): self.database = name

    def set_entity(self, etype: str, eid):
        self.entity_type = etype
        self.entity_id = None if eid is None else str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def to_record(self, result: str = "OK", err: Optional[str] = None) -> dict:
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "database": self.database,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before": self.before,
            "after": self.after,
            "payload": self.payload,
            "result": result,
            "err_msg": err,
            "latency_ms": elapsed_ms,
        }

    def write(self, result: str = "OK", err: Optional[str] = None) -> dict:
        rec = self.to_record(result, err)
        line = json.dumps(rec, ensure_ascii=False, default=str)
        if result == "OK":
            oplog.info(line)
        else:
            oplog.warning(line)
        return rec

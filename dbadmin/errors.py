"""
数据访问层错误分类

校验类错误在执行任何 SQL 之前抛出；引擎错误在语句边界由
classify_engine_error 统一按错误文本归类（仅此一处依赖 SQLite 的报错措辞）。
"""
from __future__ import annotations

import sqlite3


class DbAdminError(Exception):
    code = "ENGINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_result(self) -> dict:
        return {"success": False, "error": self.message, "code": self.code}


class NotFoundError(DbAdminError):
    code = "NOT_FOUND"


class InvalidIdentifierError(DbAdminError):
    code = "INVALID_IDENTIFIER"


class InvalidSortColumnError(DbAdminError):
    code = "INVALID_SORT_COLUMN"


class EmptyPayloadError(DbAdminError):
    code = "EMPTY_PAYLOAD"


class MissingKeyError(DbAdminError):
    code = "MISSING_KEY"


class NoUsablePrimaryKeyError(DbAdminError):
    code = "NO_USABLE_PRIMARY_KEY"


class ValidationError(DbAdminError):
    code = "VALIDATION_ERROR"


class ConstraintViolationError(DbAdminError):
    code = "CONSTRAINT_VIOLATION"

    def __init__(self, message: str, constraint: str):
        super().__init__(message)
        self.constraint = constraint

    def to_result(self) -> dict:
        return {**super().to_result(), "constraint": self.constraint}


class EngineError(DbAdminError):
    code = "ENGINE_ERROR"


VALIDATION_CODES = frozenset({
    InvalidIdentifierError.code,
    InvalidSortColumnError.code,
    EmptyPayloadError.code,
    MissingKeyError.code,
    NoUsablePrimaryKeyError.code,
    ValidationError.code,
})

_CONSTRAINT_PATTERNS = (
    ("UNIQUE constraint failed", "UNIQUE"),
    ("NOT NULL constraint failed", "NOT NULL"),
    ("CHECK constraint failed", "CHECK"),
    ("FOREIGN KEY constraint failed", "FOREIGN KEY"),
)


def classify_engine_error(exc: sqlite3.Error) -> DbAdminError:
    msg = str(exc)
    for pattern, kind in _CONSTRAINT_PATTERNS:
        if pattern in msg:
            return ConstraintViolationError(msg, kind)
    lowered = msg.lower()
    if "no such table" in lowered:
        return NotFoundError(msg)
    if "no such column" in lowered or "has no column named" in lowered:
        return InvalidIdentifierError(msg)
    return EngineError(msg)

from __future__ import annotations

import re

from ..errors import InvalidIdentifierError

_SAFE_IDENT = re.compile(r"^[A-Za-z0-9_]+$")
# 建表时更严格：必须以字母或下划线开头
_NEW_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_safe_identifier(name) -> bool:
    return isinstance(name, str) and _SAFE_IDENT.match(name) is not None


def check_identifier(name, kind: str = "identifier") -> str:
    if not is_safe_identifier(name):
        raise InvalidIdentifierError(f"Invalid {kind} name: {name!r}")
    return name


def check_new_identifier(name, kind: str = "identifier") -> str:
    if not isinstance(name, str) or _NEW_IDENT.match(name) is None:
        raise InvalidIdentifierError(
            f"Invalid {kind} name: {name!r}. Use letters, numbers, and underscores, "
            "starting with a letter or underscore."
        )
    return name


def quote_verbatim(name: str) -> str:
    """双引号包裹并转义内部引号。仅用于来自引擎元数据的名称。"""
    return '"' + name.replace('"', '""') + '"'


def quote_identifier(name, kind: str = "identifier") -> str:
    return quote_verbatim(check_identifier(name, kind))

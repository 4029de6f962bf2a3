from fastapi import APIRouter, HTTPException

from ..errors import VALIDATION_CODES

router = APIRouter()

APP_NAME = "sqlite-admin-api"
APP_VERSION = "0.1.0"


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/version")
def version():
    return {"app": APP_NAME, "version": APP_VERSION}


def status_for(res: dict) -> int:
    code = res.get("code")
    if code == "NOT_FOUND":
        return 404
    if code == "CONSTRAINT_VIOLATION":
        return 409 if res.get("constraint") == "UNIQUE" else 400
    if code in VALIDATION_CODES:
        return 400
    return 500


def check(res: dict) -> dict:
    """服务层失败结果转 HTTPException；成功原样返回。"""
    if not res.get("success"):
        raise HTTPException(status_code=status_for(res), detail=res.get("error") or "internal error")
    return res

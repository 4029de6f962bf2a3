from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from ..services.insights_svc import get_overall_stats
from .base import check

router = APIRouter()


class InsightsBody(BaseModel):
    databases: list[str]


@router.post("/api/insights")
def api_insights(body: InsightsBody):
    return check(get_overall_stats(body.databases))["stats"]

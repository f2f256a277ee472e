"""
Statistics and dashboard endpoints.

GET /api/v1/statistics - Status, priority and tag breakdowns plus a daily
                         completion-rate series for a scope (default: owned)
GET /api/v1/dashboard  - Recent tasks, totals and the caller's organizations
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.config import get_settings
from crewtodo.core.database import get_session
from crewtodo.services import statistics as stats_service
from crewtodo.services import tasks as task_service
from crewtodo.services.dashboard import build_dashboard
from crewtodo_shared.schemas.common import OWNED_SCOPE
from crewtodo_shared.schemas.statistics import DashboardResponse, StatisticsResponse

settings = get_settings()
router = APIRouter()


@router.get("/statistics", response_model=StatisticsResponse)
async def statistics(
    scope: str = Query(OWNED_SCOPE, description="personal, owned or an organization id"),
    window_days: int = Query(
        settings.statistics_default_window_days,
        ge=stats_service.MIN_WINDOW_DAYS,
        le=stats_service.MAX_WINDOW_DAYS,
    ),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    tasks = await task_service.list_tasks(
        session, identity.user_id, task_service.parse_scope(scope)
    )
    return stats_service.summarize(tasks, window_days)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await build_dashboard(session, identity.user_id)

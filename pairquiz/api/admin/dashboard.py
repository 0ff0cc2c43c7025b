"""
PairQuiz — Admin Dashboard API
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from pairquiz.api.deps import get_admin_service
from pairquiz.schemas.admin import AnalyticsResponse
from pairquiz.services.admin_service import AdminService

logger = structlog.get_logger("pairquiz.api.admin.dashboard")

router = APIRouter()


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Participant, match and voucher counters",
)
async def get_analytics(
    service: AdminService = Depends(get_admin_service),
) -> AnalyticsResponse:
    analytics = await service.analytics()
    logger.info(
        "analytics_served",
        total_participants=analytics["total_participants"],
        completed_matches=analytics["completed_matches"],
    )
    return AnalyticsResponse(**analytics)

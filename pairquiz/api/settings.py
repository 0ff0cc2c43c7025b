"""
PairQuiz — Public settings API

Read-only branding for the participant-facing client.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pairquiz.api.deps import get_admin_service
from pairquiz.models import BrandingSettings
from pairquiz.schemas.branding import BrandingResponse
from pairquiz.services.admin_service import AdminService

router = APIRouter()


@router.get("", response_model=BrandingResponse, summary="Get branding settings")
async def get_branding(
    service: AdminService = Depends(get_admin_service),
) -> BrandingSettings:
    return await service.get_branding()

"""
PairQuiz — Admin Settings API
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pairquiz.api.deps import get_admin_service
from pairquiz.models import BrandingSettings
from pairquiz.schemas.branding import BrandingResponse, BrandingUpdate
from pairquiz.services.admin_service import AdminService

router = APIRouter()


@router.get("", response_model=BrandingResponse, summary="Get branding settings")
async def get_branding(
    service: AdminService = Depends(get_admin_service),
) -> BrandingSettings:
    return await service.get_branding()


@router.put("", response_model=BrandingResponse, summary="Update branding settings")
async def update_branding(
    payload: BrandingUpdate,
    service: AdminService = Depends(get_admin_service),
) -> BrandingSettings:
    """Apply the supplied fields; omitted fields keep their stored value."""
    fields = payload.model_dump(mode="json", exclude_unset=True)
    return await service.update_branding(**fields)

"""
PairQuiz — Admin Coupon Templates API

Templates drive voucher discounts: the active template with the highest
threshold not above the match percentage is used when a voucher is issued.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from pairquiz.api.deps import get_admin_service
from pairquiz.models import CouponTemplate
from pairquiz.schemas.admin import CouponTemplatePage, Pagination
from pairquiz.schemas.voucher import (
    CouponTemplateCreate,
    CouponTemplateResponse,
    CouponTemplateStatusUpdate,
)
from pairquiz.services.admin_service import AdminService, total_pages

router = APIRouter()


@router.get("", response_model=CouponTemplatePage, summary="List coupon templates")
async def list_coupon_templates(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query("", description="Substring of the template name"),
    service: AdminService = Depends(get_admin_service),
) -> CouponTemplatePage:
    templates, total = await service.list_coupon_templates(
        page=page, limit=limit, search=search
    )
    return CouponTemplatePage(
        templates=[CouponTemplateResponse.model_validate(t) for t in templates],
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages(total, limit),
            total_items=total,
        ),
    )


@router.get(
    "/{template_id}",
    response_model=CouponTemplateResponse,
    summary="Get a coupon template",
)
async def get_coupon_template(
    template_id: int,
    service: AdminService = Depends(get_admin_service),
) -> CouponTemplate:
    return await service.get_coupon_template(template_id)


@router.post(
    "",
    response_model=CouponTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a coupon template",
)
async def create_coupon_template(
    payload: CouponTemplateCreate,
    service: AdminService = Depends(get_admin_service),
) -> CouponTemplate:
    return await service.create_coupon_template(**payload.model_dump())


@router.put(
    "/{template_id}",
    response_model=CouponTemplateResponse,
    summary="Replace a coupon template",
)
async def update_coupon_template(
    template_id: int,
    payload: CouponTemplateCreate,
    service: AdminService = Depends(get_admin_service),
) -> CouponTemplate:
    return await service.update_coupon_template(template_id, **payload.model_dump())


@router.patch(
    "/{template_id}/status",
    response_model=CouponTemplateResponse,
    summary="Activate or deactivate a coupon template",
)
async def set_coupon_template_status(
    template_id: int,
    payload: CouponTemplateStatusUpdate,
    service: AdminService = Depends(get_admin_service),
) -> CouponTemplate:
    return await service.set_coupon_template_active(template_id, payload.is_active)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a coupon template",
)
async def delete_coupon_template(
    template_id: int,
    service: AdminService = Depends(get_admin_service),
) -> None:
    await service.delete_coupon_template(template_id)

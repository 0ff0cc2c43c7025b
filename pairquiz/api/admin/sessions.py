"""
PairQuiz — Admin Sessions API
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pairquiz.api.deps import get_admin_service
from pairquiz.schemas.admin import Pagination, SessionListItem, SessionMember, SessionPage
from pairquiz.schemas.voucher import VoucherResponse
from pairquiz.services.admin_service import AdminService, total_pages

router = APIRouter()


@router.get("", response_model=SessionPage, summary="List game sessions")
async def list_sessions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query("", description="Substring of the session code"),
    service: AdminService = Depends(get_admin_service),
) -> SessionPage:
    overviews, total = await service.list_sessions(page=page, limit=limit, search=search)
    items = [
        SessionListItem(
            id=o.session.id,
            session_code=o.session.session_code,
            created_at=o.session.created_at,
            concluded=o.session.concluded,
            match_percentage=o.session.match_percentage,
            members=[SessionMember(id=m.id, name=m.name) for m in o.members],
            voucher=VoucherResponse.model_validate(o.voucher) if o.voucher else None,
        )
        for o in overviews
    ]
    return SessionPage(
        sessions=items,
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages(total, limit),
            total_items=total,
        ),
    )

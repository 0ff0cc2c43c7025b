"""
PairQuiz — Admin Participants API

Paginated participant list with the match status derived from each
participant's most recent session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pairquiz.api.deps import get_admin_service
from pairquiz.schemas.admin import Pagination, ParticipantPage, ParticipantStatusItem
from pairquiz.services.admin_service import AdminService, total_pages

router = APIRouter()


@router.get(
    "",
    response_model=ParticipantPage,
    summary="List participants with their match status",
)
async def list_participants(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query("", description="Substring of name or WhatsApp number"),
    match_status: str = Query("", alias="status", description="Exact match status"),
    service: AdminService = Depends(get_admin_service),
) -> ParticipantPage:
    statuses, total = await service.list_participants(
        page=page, limit=limit, search=search, status=match_status
    )
    items = [
        ParticipantStatusItem(
            id=s.participant.id,
            name=s.participant.name,
            gender=s.participant.gender,
            age=s.participant.age,
            whatsapp_number=s.participant.whatsapp_number,
            created_at=s.participant.created_at,
            match_status=s.match_status,
            session_code=s.session_code,
            voucher_code=s.voucher_code,
        )
        for s in statuses
    ]
    return ParticipantPage(
        participants=items,
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages(total, limit),
            total_items=total,
        ),
    )

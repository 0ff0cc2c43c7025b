"""
PairQuiz — Vouchers API
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pairquiz.api.deps import get_current_participant, get_game_service
from pairquiz.models import Participant
from pairquiz.services.game_service import GameService

router = APIRouter()


@router.post(
    "/{voucher_id}/download",
    summary="Record that a voucher was downloaded",
)
async def mark_downloaded(
    voucher_id: int,
    participant: Participant = Depends(get_current_participant),
    service: GameService = Depends(get_game_service),
) -> dict:
    await service.mark_voucher_downloaded(voucher_id)
    return {"success": True}

"""
PairQuiz — Participants API

Registration and token-based identity lookup.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from pairquiz.api.deps import get_current_participant, get_game_service
from pairquiz.models import Participant
from pairquiz.schemas.participant import (
    ParticipantCreate,
    ParticipantRegistered,
    ParticipantResponse,
)
from pairquiz.services.game_service import GameService

logger = structlog.get_logger("pairquiz.api.participants")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Register a participant
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=ParticipantRegistered,
    status_code=status.HTTP_201_CREATED,
    summary="Register a participant",
)
async def register_participant(
    payload: ParticipantCreate,
    service: GameService = Depends(get_game_service),
) -> ParticipantRegistered:
    """Create a participant and return its access token.

    The token is shown only in this response; send it back in the
    ``X-Participant-Token`` header on every later call.
    """
    participant, token = await service.register(
        name=payload.name,
        gender=payload.gender,
        age=payload.age,
        whatsapp_number=payload.whatsapp_number,
    )
    return ParticipantRegistered(
        **ParticipantResponse.model_validate(participant).model_dump(),
        token=token,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /me — Current participant
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/me",
    response_model=ParticipantResponse,
    summary="Get the calling participant",
)
async def get_me(
    participant: Participant = Depends(get_current_participant),
) -> Participant:
    return participant

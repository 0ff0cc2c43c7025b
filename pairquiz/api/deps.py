"""
PairQuiz — Shared API dependencies

Per-request service construction and caller resolution:

  - ``get_game_service`` / ``get_admin_service`` wrap the request-scoped
    ``AsyncSession`` from ``get_db``
  - ``get_current_participant`` resolves the ``X-Participant-Token`` header
  - ``require_admin`` compares ``X-Admin-Token`` against ``ADMIN_TOKEN``
"""

from __future__ import annotations

import hmac

import structlog
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pairquiz.config import get_settings
from pairquiz.database import get_db
from pairquiz.exceptions import ParticipantNotFoundError
from pairquiz.models import Participant
from pairquiz.services.admin_service import AdminService
from pairquiz.services.game_service import GameService

logger = structlog.get_logger("pairquiz.api.deps")


def get_game_service(db: AsyncSession = Depends(get_db)) -> GameService:
    return GameService(db)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


async def get_current_participant(
    x_participant_token: str | None = Header(None),
    service: GameService = Depends(get_game_service),
) -> Participant:
    """Return the participant owning the presented token, or 401."""
    if not x_participant_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Participant-Token header.",
        )
    try:
        return await service.authenticate(x_participant_token)
    except ParticipantNotFoundError:
        logger.info("participant_token_rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown participant token.",
        )


async def require_admin(x_admin_token: str | None = Header(None)) -> None:
    settings = get_settings()
    if not settings.admin_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin console is disabled.",
        )
    if not x_admin_token or not hmac.compare_digest(
        x_admin_token, settings.ADMIN_TOKEN
    ):
        logger.warning("admin_token_rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token.",
        )

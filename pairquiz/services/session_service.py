"""
PairQuiz — Session Registry

Owns session identity (code generation, lookup) and membership.  A session
holds at most two participants for its whole lifetime; re-joining by an
existing member is a no-op so that client retries are never rejected as
"session full".
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from pairquiz.config import get_settings
from pairquiz.exceptions import (
    ExhaustedRetriesError,
    ParticipantNotFoundError,
    SessionFullError,
    SessionNotFoundError,
)
from pairquiz.models import GameSession, Participant
from pairquiz.services.storage import Storage
from pairquiz.utils.security import generate_code, normalise_code

logger = structlog.get_logger("pairquiz.session_service")

MAX_PARTICIPANTS = 2


class _CodeCollision(Exception):
    """A generated code is already taken; internal retry signal."""


@dataclass(slots=True)
class JoinResult:
    session_id: int
    session_code: str
    participant_id: int
    joined_now: bool
    member_count: int


class SessionService:
    """Session creation, joining, and readiness checks."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        settings = get_settings()
        self.code_length: int = settings.SESSION_CODE_LENGTH
        self.max_attempts: int = settings.SESSION_CODE_MAX_ATTEMPTS

    # ── Public API ────────────────────────────────────────────────────────

    async def create(self) -> GameSession:
        """Create a session under a fresh code.

        Codes are regenerated on collision up to ``SESSION_CODE_MAX_ATTEMPTS``
        times, after which ``ExhaustedRetriesError`` is raised.
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(_CodeCollision),
                stop=stop_after_attempt(self.max_attempts),
            ):
                with attempt:
                    code = generate_code(self.code_length)
                    if await self.storage.get_session_by_code(code) is not None:
                        logger.info(
                            "session_code_collision",
                            attempt_number=attempt.retry_state.attempt_number,
                        )
                        raise _CodeCollision(code)
                    game_session = await self.storage.create_session(code)
        except RetryError:
            logger.error("session_code_retries_exhausted", attempts=self.max_attempts)
            raise ExhaustedRetriesError(self.max_attempts)

        logger.info(
            "session_created",
            session_code=game_session.session_code,
            session_id=game_session.id,
        )
        return game_session

    async def get(self, session_code: str) -> GameSession:
        code = normalise_code(session_code)
        game_session = await self.storage.get_session_by_code(code)
        if game_session is None:
            raise SessionNotFoundError(code)
        return game_session

    async def join(self, session_code: str, participant_id: int) -> JoinResult:
        """Add ``participant_id`` to the session.

        Joining twice is idempotent.  A third distinct participant raises
        ``SessionFullError``.
        """
        code = normalise_code(session_code)
        log = logger.bind(session_code=code, participant_id=participant_id)

        game_session = await self.storage.get_session_by_code(code, for_update=True)
        if game_session is None:
            log.info("join_session_not_found")
            raise SessionNotFoundError(code)

        if await self.storage.get_participant(participant_id) is None:
            raise ParticipantNotFoundError(participant_id)

        if await self.storage.is_member(game_session.id, participant_id):
            member_count = await self.storage.count_members(game_session.id)
            log.info("join_idempotent", member_count=member_count)
            return JoinResult(
                session_id=game_session.id,
                session_code=code,
                participant_id=participant_id,
                joined_now=False,
                member_count=member_count,
            )

        member_count = await self.storage.count_members(game_session.id)
        if member_count >= MAX_PARTICIPANTS:
            log.warning("join_rejected_session_full", member_count=member_count)
            raise SessionFullError(code, participant_id)

        await self.storage.add_member(game_session.id, participant_id)
        log.info("join_complete", member_count=member_count + 1)
        return JoinResult(
            session_id=game_session.id,
            session_code=code,
            participant_id=participant_id,
            joined_now=True,
            member_count=member_count + 1,
        )

    async def get_participants(self, session_code: str) -> list[Participant]:
        """Members sorted by id; index 0 is the reference participant."""
        game_session = await self.get(session_code)
        return await self.storage.get_members(game_session.id)

    async def is_ready(self, session_code: str) -> bool:
        """True once the partner has joined (does not imply answers are in)."""
        game_session = await self.get(session_code)
        return await self.storage.count_members(game_session.id) == MAX_PARTICIPANTS

"""
PairQuiz — Game Service

The only entry point the request handlers call.  Wires the session
registry, question catalog, answer collector, match calculator and reward
issuer around one ``AsyncSession`` and exposes the operations of the
two-player flow:

  register → create_session / join_session → is_session_ready →
  get_questions_for → submit_answers → are_all_answers_submitted →
  compute_results → issue_voucher_if_eligible → mark_voucher_downloaded
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pairquiz.config import get_settings
from pairquiz.exceptions import ParticipantNotFoundError
from pairquiz.models import GameSession, Participant, Voucher
from pairquiz.schemas.match import MatchResult
from pairquiz.services.answer_service import AnswerService
from pairquiz.services.catalog_service import CatalogService, QuestionSet
from pairquiz.services.matching_service import MatchingService
from pairquiz.services.reward_service import RewardService
from pairquiz.services.session_service import JoinResult, SessionService
from pairquiz.services.storage import Storage
from pairquiz.utils.security import generate_token, hash_token

logger = structlog.get_logger("pairquiz.game_service")


@dataclass(slots=True)
class ResultsStatus:
    ready: bool
    partner_joined: bool
    message: str


class GameService:
    """Facade over the session-and-matching engine for one unit of work."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.storage = Storage(db_session)
        self.sessions = SessionService(self.storage)
        self.catalog = CatalogService(self.storage)
        self.answers = AnswerService(self.storage, self.sessions, self.catalog)
        self.matching = MatchingService(self.storage, self.sessions, self.answers)
        self.rewards = RewardService(self.storage)

        settings = get_settings()
        self.token_salt: str = settings.TOKEN_SALT
        self.voucher_min_percentage: int = settings.VOUCHER_MIN_MATCH_PERCENTAGE

    # ── Participants ──────────────────────────────────────────────────────

    async def register(
        self,
        name: str,
        gender: str,
        age: int,
        whatsapp_number: str,
    ) -> tuple[Participant, str]:
        """Create a participant and return it with its one-time raw token."""
        token = generate_token()
        participant = await self.storage.create_participant(
            name=name,
            gender=gender,
            age=age,
            whatsapp_number=whatsapp_number,
            token_hash=hash_token(token, self.token_salt),
        )
        logger.info("participant_registered", participant_id=participant.id)
        return participant, token

    async def authenticate(self, token: str) -> Participant:
        participant = await self.storage.get_participant_by_token_hash(
            hash_token(token, self.token_salt)
        )
        if participant is None:
            raise ParticipantNotFoundError()
        return participant

    # ── Session lifecycle ─────────────────────────────────────────────────

    async def create_session(self) -> GameSession:
        return await self.sessions.create()

    async def join_session(self, session_code: str, participant_id: int) -> JoinResult:
        return await self.sessions.join(session_code, participant_id)

    async def is_session_ready(self, session_code: str) -> bool:
        return await self.sessions.is_ready(session_code)

    async def get_questions_for(self, session_code: str) -> QuestionSet:
        await self.sessions.get(session_code)
        return await self.catalog.get_question_set()

    # ── Answers ───────────────────────────────────────────────────────────

    async def submit_answers(
        self,
        session_code: str,
        participant_id: int,
        answers: list[tuple[int, int]],
    ) -> int:
        return await self.answers.submit(session_code, participant_id, answers)

    async def has_participant_submitted(
        self, session_code: str, participant_id: int
    ) -> bool:
        game_session = await self.sessions.get(session_code)
        return await self.answers.has_submitted(game_session.id, participant_id)

    async def are_all_answers_submitted(self, session_code: str) -> bool:
        game_session = await self.sessions.get(session_code)
        return await self.answers.all_submitted(game_session.id)

    async def results_status(self, session_code: str) -> ResultsStatus:
        game_session = await self.sessions.get(session_code)
        partner_joined = await self.sessions.is_ready(session_code)
        if not partner_joined:
            return ResultsStatus(False, False, "Waiting for partner to join")
        if await self.answers.all_submitted(game_session.id):
            return ResultsStatus(True, True, "Results are ready")
        return ResultsStatus(False, True, "Waiting for answers")

    # ── Results & rewards ─────────────────────────────────────────────────

    async def compute_results(self, session_code: str) -> MatchResult:
        return await self.matching.calculate(session_code)

    async def issue_voucher_if_eligible(
        self, session_id: int, match_percentage: int
    ) -> Voucher | None:
        """Issue (or return the existing) voucher when the percentage clears
        ``VOUCHER_MIN_MATCH_PERCENTAGE``; otherwise return ``None``."""
        if match_percentage < self.voucher_min_percentage:
            logger.info(
                "voucher_not_eligible",
                session_id=session_id,
                match_percentage=match_percentage,
                minimum=self.voucher_min_percentage,
            )
            return None
        return await self.rewards.issue(session_id, match_percentage)

    async def get_results(self, session_code: str) -> tuple[MatchResult, Voucher | None]:
        """Compute the match and attach the session's voucher, if any."""
        result = await self.compute_results(session_code)
        voucher = await self.issue_voucher_if_eligible(
            result.session_id, result.match_percentage
        )
        return result, voucher

    async def mark_voucher_downloaded(self, voucher_id: int) -> None:
        await self.rewards.mark_downloaded(voucher_id)

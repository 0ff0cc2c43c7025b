"""
PairQuiz — Match Calculator

Compares the two persisted answer sets of a session and produces a
deterministic compatibility result:

  shared      = common questions answered by both participants
  match_count = |{q in shared : answer_a(q) == answer_b(q)}|
  percentage  = round_half_up(match_count / |shared| * 100), 0 when shared is empty

Individual questions are stored with the rest but never scored.

The reference participant ("you") is always the member with the lowest id,
and questions are walked in ascending id order, so repeated calls on the
same answers yield identical results.  A successful calculation marks the
session concluded and stores the percentage.
"""

from __future__ import annotations

import structlog

from pairquiz.exceptions import NotReadyError
from pairquiz.models.question import CATEGORY_COMMON
from pairquiz.schemas.match import MatchingAnswer, MatchResult, NonMatchingAnswer
from pairquiz.services.answer_service import AnswerService
from pairquiz.services.session_service import MAX_PARTICIPANTS, SessionService
from pairquiz.services.storage import AnswerRow, Storage

logger = structlog.get_logger("pairquiz.matching_service")


def match_percentage(match_count: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return (200 * match_count + total) // (2 * total)


class MatchingService:
    """Computes and records the compatibility result for a session."""

    def __init__(
        self,
        storage: Storage,
        sessions: SessionService,
        answers: AnswerService,
    ) -> None:
        self.storage = storage
        self.sessions = sessions
        self.answers = answers

    # ── Public API ────────────────────────────────────────────────────────

    async def calculate(self, session_code: str) -> MatchResult:
        """Compute the match for ``session_code``.

        Raises
        ------
        SessionNotFoundError
            No session has this code.
        NotReadyError
            Fewer than two members, or not every member has answered the
            full question set.  The session is left untouched.
        """
        game_session = await self.sessions.get(session_code)
        code = game_session.session_code
        log = logger.bind(session_code=code, session_id=game_session.id)
        log.info("match_calculation_start")

        members = await self.storage.get_members(game_session.id)
        if len(members) != MAX_PARTICIPANTS:
            log.info("match_not_ready", reason="waiting_for_partner", members=len(members))
            raise NotReadyError(code, "waiting for partner to join")

        # Re-verified here: the caller's earlier poll may be stale.  Answers
        # of a concluded session are frozen, so the check is skipped there.
        if not game_session.concluded and not await self.answers.all_submitted(
            game_session.id
        ):
            log.info("match_not_ready", reason="answers_pending")
            raise NotReadyError(code, "not all participants have submitted their answers")

        reference, partner = members
        rows = await self.storage.get_answers_for_session(game_session.id)
        result = self._compare(
            rows,
            reference_id=reference.id,
            partner_id=partner.id,
            session_id=game_session.id,
            session_code=code,
        )

        await self.storage.mark_concluded(game_session.id, result.match_percentage)

        log.info(
            "match_calculated",
            match_percentage=result.match_percentage,
            matching=len(result.matching_answers),
            non_matching=len(result.non_matching_answers),
            reference_participant_id=reference.id,
        )
        return result

    # ── Internal helpers ──────────────────────────────────────────────────

    @staticmethod
    def _compare(
        rows: list[AnswerRow],
        reference_id: int,
        partner_id: int,
        session_id: int,
        session_code: str,
    ) -> MatchResult:
        by_participant: dict[int, dict[int, AnswerRow]] = {
            reference_id: {},
            partner_id: {},
        }
        for row in rows:
            if row.category != CATEGORY_COMMON:
                continue
            if row.participant_id in by_participant:
                by_participant[row.participant_id][row.question_id] = row

        yours = by_participant[reference_id]
        theirs = by_participant[partner_id]
        shared = sorted(yours.keys() & theirs.keys())

        matching: list[MatchingAnswer] = []
        non_matching: list[NonMatchingAnswer] = []
        for question_id in shared:
            mine, other = yours[question_id], theirs[question_id]
            if mine.option_text == other.option_text:
                matching.append(MatchingAnswer(
                    question_id=question_id,
                    question=mine.question_text,
                    answer=mine.option_text,
                ))
            else:
                non_matching.append(NonMatchingAnswer(
                    question_id=question_id,
                    question=mine.question_text,
                    your_answer=mine.option_text,
                    partner_answer=other.option_text,
                ))

        return MatchResult(
            session_id=session_id,
            session_code=session_code,
            match_percentage=match_percentage(len(matching), len(shared)),
            matching_answers=matching,
            non_matching_answers=non_matching,
            reference_participant_id=reference_id,
            partner_participant_id=partner_id,
        )

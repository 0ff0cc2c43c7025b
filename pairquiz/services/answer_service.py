"""
PairQuiz — Answer Collector

Records each participant's selections for a session and answers the
completeness questions that gate result computation.  Answers are keyed
by (participant, session, question); resubmitting replaces the selection.
"""

from __future__ import annotations

import structlog

from pairquiz.exceptions import ConflictError, ParticipantNotFoundError
from pairquiz.services.catalog_service import CatalogService
from pairquiz.services.session_service import MAX_PARTICIPANTS, SessionService
from pairquiz.services.storage import Storage

logger = structlog.get_logger("pairquiz.answer_service")


class AnswerService:
    def __init__(
        self,
        storage: Storage,
        sessions: SessionService,
        catalog: CatalogService,
    ) -> None:
        self.storage = storage
        self.sessions = sessions
        self.catalog = catalog

    async def submit(
        self,
        session_code: str,
        participant_id: int,
        answers: list[tuple[int, int]],
    ) -> int:
        """Validate then persist ``answers`` as (question_id, option_id) pairs.

        Returns the number of answers written.  The whole payload is
        validated before the first write so a rejected submission leaves
        no rows behind.
        """
        game_session = await self.sessions.get(session_code)
        log = logger.bind(
            session_code=game_session.session_code,
            session_id=game_session.id,
            participant_id=participant_id,
        )

        if not await self.storage.is_member(game_session.id, participant_id):
            if await self.storage.get_participant(participant_id) is None:
                raise ParticipantNotFoundError(participant_id)
            log.warning("submit_rejected_not_member")
            raise ConflictError(
                f"Participant {participant_id} has not joined session "
                f"'{game_session.session_code}'"
            )

        if game_session.concluded:
            log.warning("submit_rejected_concluded")
            raise ConflictError(
                f"Session '{game_session.session_code}' is already concluded"
            )

        await self.catalog.validate_answers(answers)

        for question_id, option_id in answers:
            await self.storage.save_answer(
                participant_id=participant_id,
                session_id=game_session.id,
                question_id=question_id,
                option_id=option_id,
            )

        log.info("answers_submitted", count=len(answers))
        return len(answers)

    async def has_submitted(self, session_id: int, participant_id: int) -> bool:
        return await self.storage.has_answered(session_id, participant_id)

    async def all_submitted(self, session_id: int) -> bool:
        """True iff two members exist and each answered the full question set."""
        members = await self.storage.get_members(session_id)
        if len(members) != MAX_PARTICIPANTS:
            return False

        required = (await self.catalog.get_question_set()).question_ids
        if not required:
            return False

        answered = await self.storage.answered_question_ids(session_id)
        return all(required <= answered.get(m.id, set()) for m in members)

"""
PairQuiz — Storage repository

Thin data-access layer over a single ``AsyncSession``.  Every method maps
to one small query or write; no commits are performed here, commit
responsibility stays with the request scope (``pairquiz.database.get_db``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from pairquiz.models import (
    Answer,
    CouponTemplate,
    GameSession,
    Participant,
    Question,
    QuestionOption,
    SessionParticipant,
    Voucher,
)


# Dialect-specific INSERT constructs that support ON CONFLICT.
_UPSERT_INSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True, slots=True)
class AnswerRow:
    """One persisted answer joined with its question and selected option."""

    participant_id: int
    question_id: int
    question_text: str
    category: str
    option_id: int
    option_text: str


class Storage:
    """Repository for sessions, memberships, answers and vouchers."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Participants ──────────────────────────────────────────────────────

    async def create_participant(
        self,
        name: str,
        gender: str,
        age: int,
        whatsapp_number: str,
        token_hash: str,
    ) -> Participant:
        participant = Participant(
            name=name,
            gender=gender,
            age=age,
            whatsapp_number=whatsapp_number,
            token_hash=token_hash,
        )
        self.session.add(participant)
        await self.session.flush()
        # Load server-side defaults (created_at) while still in async context
        await self.session.refresh(participant)
        return participant

    async def get_participant(self, participant_id: int) -> Participant | None:
        return await self.session.get(Participant, participant_id)

    async def get_participant_by_token_hash(self, token_hash: str) -> Participant | None:
        stmt = select(Participant).where(Participant.token_hash == token_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # ── Sessions & membership ─────────────────────────────────────────────

    async def create_session(self, session_code: str) -> GameSession:
        game_session = GameSession(session_code=session_code, concluded=False)
        self.session.add(game_session)
        await self.session.flush()
        return game_session

    async def get_session_by_code(
        self, session_code: str, for_update: bool = False
    ) -> GameSession | None:
        """Look a session up by code.

        ``for_update`` takes a row lock on backends that support it so that
        concurrent joins on the same session serialise.
        """
        stmt = select(GameSession).where(GameSession.session_code == session_code)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_session(self, session_id: int) -> GameSession | None:
        return await self.session.get(GameSession, session_id)

    async def add_member(self, session_id: int, participant_id: int) -> None:
        self.session.add(
            SessionParticipant(session_id=session_id, participant_id=participant_id)
        )
        await self.session.flush()

    async def get_members(self, session_id: int) -> list[Participant]:
        """Return the session's participants sorted by id ascending."""
        stmt = (
            select(Participant)
            .join(SessionParticipant, SessionParticipant.participant_id == Participant.id)
            .where(SessionParticipant.session_id == session_id)
            .order_by(Participant.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_members(self, session_id: int) -> int:
        stmt = select(func.count()).select_from(SessionParticipant).where(
            SessionParticipant.session_id == session_id
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def is_member(self, session_id: int, participant_id: int) -> bool:
        membership = await self.session.get(
            SessionParticipant, (session_id, participant_id)
        )
        return membership is not None

    async def mark_concluded(self, session_id: int, percentage: int) -> None:
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id)
            .values(concluded=True, match_percentage=percentage)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    # ── Question catalog ──────────────────────────────────────────────────

    async def get_questions(self, category: str | None = None) -> list[Question]:
        """Return questions (with options) ordered by id, optionally by category."""
        stmt = select(Question).order_by(Question.id)
        if category is not None:
            stmt = stmt.where(Question.category == category)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_question(self, question_id: int) -> Question | None:
        return await self.session.get(Question, question_id)

    # ── Answers ───────────────────────────────────────────────────────────

    async def save_answer(
        self,
        participant_id: int,
        session_id: int,
        question_id: int,
        option_id: int,
    ) -> None:
        """Upsert the answer keyed by (participant, session, question).

        One ``INSERT .. ON CONFLICT DO UPDATE`` statement, so overlapping
        submissions by the same participant both land on the single row.
        """
        dialect = self.session.get_bind().dialect.name
        stmt = _UPSERT_INSERT[dialect](Answer).values(
            participant_id=participant_id,
            session_id=session_id,
            question_id=question_id,
            selected_option_id=option_id,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Answer.participant_id, Answer.session_id, Answer.question_id],
            set_={"selected_option_id": stmt.excluded.selected_option_id},
        )
        await self.session.execute(stmt)

    async def get_answers_for_session(self, session_id: int) -> list[AnswerRow]:
        stmt = (
            select(
                Answer.participant_id,
                Answer.question_id,
                Question.text,
                Question.category,
                QuestionOption.id,
                QuestionOption.option_text,
            )
            .join(Question, Question.id == Answer.question_id)
            .join(QuestionOption, QuestionOption.id == Answer.selected_option_id)
            .where(Answer.session_id == session_id)
            .order_by(Answer.question_id, Answer.participant_id)
        )
        result = await self.session.execute(stmt)
        return [AnswerRow(*row) for row in result.all()]

    async def has_answered(self, session_id: int, participant_id: int) -> bool:
        stmt = (
            select(Answer.id)
            .where(
                Answer.session_id == session_id,
                Answer.participant_id == participant_id,
            )
            .limit(1)
        )
        return (await self.session.execute(stmt)).first() is not None

    async def answered_question_ids(self, session_id: int) -> dict[int, set[int]]:
        """Map participant id -> ids of the questions they answered."""
        stmt = select(Answer.participant_id, Answer.question_id).where(
            Answer.session_id == session_id
        )
        answered: dict[int, set[int]] = {}
        for participant_id, question_id in (await self.session.execute(stmt)).all():
            answered.setdefault(participant_id, set()).add(question_id)
        return answered

    # ── Vouchers & coupon templates ───────────────────────────────────────

    async def get_voucher_by_session(self, session_id: int) -> Voucher | None:
        stmt = select(Voucher).where(Voucher.session_id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_voucher(self, voucher_id: int) -> Voucher | None:
        return await self.session.get(Voucher, voucher_id)

    async def create_voucher(
        self,
        session_id: int,
        voucher_code: str,
        voucher_type: str,
        discount: str,
        valid_until: datetime,
    ) -> Voucher:
        """Insert a voucher inside a savepoint.

        A unique violation (second voucher for the session, or a taken
        code) raises ``IntegrityError`` and rolls back only the savepoint,
        so the surrounding transaction stays usable.
        """
        voucher = Voucher(
            session_id=session_id,
            voucher_code=voucher_code,
            voucher_type=voucher_type,
            discount=discount,
            valid_until=valid_until,
            downloaded=False,
        )
        async with self.session.begin_nested():
            self.session.add(voucher)
            await self.session.flush()
        return voucher

    async def mark_voucher_downloaded(self, voucher_id: int) -> bool:
        voucher = await self.get_voucher(voucher_id)
        if voucher is None:
            return False
        voucher.downloaded = True
        await self.session.flush()
        return True

    async def get_active_coupon_templates(self) -> list[CouponTemplate]:
        stmt = (
            select(CouponTemplate)
            .where(CouponTemplate.is_active.is_(True))
            .order_by(
                CouponTemplate.match_percentage_threshold.desc(),
                CouponTemplate.id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

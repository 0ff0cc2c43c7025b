"""
PairQuiz — Admin Console Service

Back-office reads and catalog maintenance behind the admin routes:

  - Analytics: participant/session/voucher counters plus gender and
    age-group distributions
  - Participant list with a derived match status per participant
  - Session list with members and voucher
  - Question CRUD (options are replaced wholesale on update)
  - Coupon template CRUD and activation toggle
  - Branding settings (single row, created with defaults on first read)

Search filters are case-insensitive substring matches.  Pagination is
1-based; ``total_pages`` is ``ceil(total_items / limit)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pairquiz.exceptions import (
    ConflictError,
    CouponTemplateNotFoundError,
    QuestionNotFoundError,
)
from pairquiz.models import (
    Answer,
    BrandingSettings,
    CouponTemplate,
    GameSession,
    Participant,
    Question,
    QuestionOption,
    SessionParticipant,
    Voucher,
)
from pairquiz.services.session_service import MAX_PARTICIPANTS

logger = structlog.get_logger("pairquiz.admin_service")

# ── Participant match statuses ────────────────────────────────────────────────

STATUS_NO_MATCH = "No Match"
STATUS_WAITING_FOR_JOIN = "Waiting for Partner to Join"
STATUS_NOT_SUBMITTED = "Not Submitted"
STATUS_WAITING_FOR_PARTNER = "Waiting for Partner"
STATUS_NO_VOUCHER = "No Voucher"
STATUS_VOUCHER_GENERATED = "Voucher Generated"
STATUS_VOUCHER_DOWNLOADED = "Voucher Downloaded"

MATCH_STATUSES = (
    STATUS_NO_MATCH,
    STATUS_WAITING_FOR_JOIN,
    STATUS_NOT_SUBMITTED,
    STATUS_WAITING_FOR_PARTNER,
    STATUS_NO_VOUCHER,
    STATUS_VOUCHER_GENERATED,
    STATUS_VOUCHER_DOWNLOADED,
)


def total_pages(total_items: int, limit: int) -> int:
    return math.ceil(total_items / limit) if limit > 0 else 0


def _contains(column: Any, search: str) -> Any:
    return func.lower(column).like(f"%{search.lower()}%")


@dataclass(slots=True)
class ParticipantStatus:
    participant: Participant
    match_status: str
    session_code: str | None = None
    voucher_code: str | None = None


@dataclass(slots=True)
class SessionOverview:
    session: GameSession
    members: list[Participant]
    voucher: Voucher | None


class AdminService:
    """Queries and mutations for the admin console."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db = db_session

    # ── Analytics ─────────────────────────────────────────────────────────

    async def analytics(self) -> dict[str, Any]:
        total_participants = (
            await self.db.execute(select(func.count()).select_from(Participant))
        ).scalar_one()
        completed_matches = (
            await self.db.execute(
                select(func.count())
                .select_from(GameSession)
                .where(GameSession.concluded.is_(True))
            )
        ).scalar_one()
        voucher_count = (
            await self.db.execute(select(func.count()).select_from(Voucher))
        ).scalar_one()

        gender_rows = await self.db.execute(
            select(Participant.gender, func.count())
            .group_by(Participant.gender)
            .order_by(Participant.gender)
        )

        age_group = case(
            (Participant.age.between(18, 24), "18-24"),
            (Participant.age.between(25, 34), "25-34"),
            (Participant.age.between(35, 44), "35-44"),
            else_="45+",
        ).label("age_group")
        age_rows = await self.db.execute(
            select(age_group, func.count()).group_by(age_group).order_by(age_group)
        )

        return {
            "total_participants": total_participants,
            "completed_matches": completed_matches,
            "voucher_count": voucher_count,
            "gender_distribution": [
                {"label": gender, "count": count} for gender, count in gender_rows.all()
            ],
            "age_distribution": [
                {"label": label, "count": count} for label, count in age_rows.all()
            ],
        }

    # ── Participants ──────────────────────────────────────────────────────

    async def list_participants(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        status: str = "",
    ) -> tuple[list[ParticipantStatus], int]:
        """Return one page of participants (newest first) and the total.

        The status filter is applied before paging, since a participant's
        status is derived from several tables.
        """
        stmt = select(Participant).order_by(
            Participant.created_at.desc(), Participant.id.desc()
        )
        if search:
            stmt = stmt.where(
                or_(
                    _contains(Participant.name, search),
                    _contains(Participant.whatsapp_number, search),
                )
            )

        if status and status != "all":
            participants = list((await self.db.execute(stmt)).scalars().all())
            statuses = [await self.participant_status(p) for p in participants]
            statuses = [s for s in statuses if s.match_status == status]
            offset = (page - 1) * limit
            return statuses[offset: offset + limit], len(statuses)

        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()
        page_stmt = stmt.limit(limit).offset((page - 1) * limit)
        participants = list((await self.db.execute(page_stmt)).scalars().all())
        return [await self.participant_status(p) for p in participants], total

    async def participant_status(self, participant: Participant) -> ParticipantStatus:
        """Derive the participant's status from their most recent session."""
        membership_stmt = (
            select(GameSession)
            .join(SessionParticipant, SessionParticipant.session_id == GameSession.id)
            .where(SessionParticipant.participant_id == participant.id)
            .order_by(SessionParticipant.created_at.desc(), GameSession.id.desc())
            .limit(1)
        )
        game_session = (await self.db.execute(membership_stmt)).scalar_one_or_none()
        if game_session is None:
            return ParticipantStatus(participant, STATUS_NO_MATCH)

        code = game_session.session_code
        if game_session.concluded:
            voucher = (
                await self.db.execute(
                    select(Voucher).where(Voucher.session_id == game_session.id)
                )
            ).scalar_one_or_none()
            if voucher is None:
                return ParticipantStatus(participant, STATUS_NO_VOUCHER, code)
            voucher_status = (
                STATUS_VOUCHER_DOWNLOADED if voucher.downloaded else STATUS_VOUCHER_GENERATED
            )
            return ParticipantStatus(participant, voucher_status, code, voucher.voucher_code)

        member_count = (
            await self.db.execute(
                select(func.count())
                .select_from(SessionParticipant)
                .where(SessionParticipant.session_id == game_session.id)
            )
        ).scalar_one()
        if member_count < MAX_PARTICIPANTS:
            return ParticipantStatus(participant, STATUS_WAITING_FOR_JOIN, code)

        submitted = (
            await self.db.execute(
                select(Answer.id)
                .where(
                    Answer.session_id == game_session.id,
                    Answer.participant_id == participant.id,
                )
                .limit(1)
            )
        ).first() is not None
        if submitted:
            return ParticipantStatus(participant, STATUS_WAITING_FOR_PARTNER, code)
        return ParticipantStatus(participant, STATUS_NOT_SUBMITTED, code)

    # ── Sessions ──────────────────────────────────────────────────────────

    async def list_sessions(
        self, page: int = 1, limit: int = 10, search: str = ""
    ) -> tuple[list[SessionOverview], int]:
        stmt = select(GameSession).order_by(
            GameSession.created_at.desc(), GameSession.id.desc()
        )
        if search:
            stmt = stmt.where(_contains(GameSession.session_code, search))

        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()

        sessions = list(
            (await self.db.execute(stmt.limit(limit).offset((page - 1) * limit)))
            .scalars()
            .all()
        )
        overviews: list[SessionOverview] = []
        for game_session in sessions:
            members = (
                await self.db.execute(
                    select(Participant)
                    .join(
                        SessionParticipant,
                        SessionParticipant.participant_id == Participant.id,
                    )
                    .where(SessionParticipant.session_id == game_session.id)
                    .order_by(Participant.id)
                )
            ).scalars().all()
            voucher = (
                await self.db.execute(
                    select(Voucher).where(Voucher.session_id == game_session.id)
                )
            ).scalar_one_or_none()
            overviews.append(SessionOverview(game_session, list(members), voucher))
        return overviews, total

    # ── Questions ─────────────────────────────────────────────────────────

    async def list_questions(self, category: str | None = None) -> list[Question]:
        stmt = select(Question).order_by(Question.id)
        if category is not None:
            stmt = stmt.where(Question.category == category)
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_question(self, question_id: int) -> Question:
        question = await self.db.get(Question, question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)
        return question

    async def create_question(
        self, text: str, category: str, options: list[str]
    ) -> Question:
        question = Question(
            text=text,
            category=category,
            options=[QuestionOption(option_text=o) for o in options],
        )
        self.db.add(question)
        await self.db.flush()
        logger.info("question_created", question_id=question.id, category=category)
        return question

    async def update_question(
        self, question_id: int, text: str, category: str, options: list[str]
    ) -> Question:
        """Replace text, category and the whole option list.

        Options are referenced by stored answers, so a question that has
        been answered cannot have its options replaced.
        """
        question = await self.get_question(question_id)
        await self._ensure_unanswered(question_id, "update")

        question.text = text
        question.category = category
        question.options.clear()
        await self.db.flush()
        question.options.extend(QuestionOption(option_text=o) for o in options)
        await self.db.flush()
        logger.info("question_updated", question_id=question_id)
        return question

    async def delete_question(self, question_id: int) -> None:
        question = await self.get_question(question_id)
        await self._ensure_unanswered(question_id, "delete")
        await self.db.delete(question)
        await self.db.flush()
        logger.info("question_deleted", question_id=question_id)

    async def _ensure_unanswered(self, question_id: int, action: str) -> None:
        answered = (
            await self.db.execute(
                select(Answer.id).where(Answer.question_id == question_id).limit(1)
            )
        ).first() is not None
        if answered:
            logger.warning(
                "question_change_rejected", question_id=question_id, action=action
            )
            raise ConflictError(
                f"Cannot {action} question {question_id}: it already has answers"
            )

    # ── Coupon templates ──────────────────────────────────────────────────

    async def list_coupon_templates(
        self, page: int = 1, limit: int = 10, search: str = ""
    ) -> tuple[list[CouponTemplate], int]:
        stmt = select(CouponTemplate).order_by(
            CouponTemplate.created_at.desc(), CouponTemplate.id.desc()
        )
        if search:
            stmt = stmt.where(_contains(CouponTemplate.name, search))
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()
        templates = (
            await self.db.execute(stmt.limit(limit).offset((page - 1) * limit))
        ).scalars().all()
        return list(templates), total

    async def get_coupon_template(self, template_id: int) -> CouponTemplate:
        template = await self.db.get(CouponTemplate, template_id)
        if template is None:
            raise CouponTemplateNotFoundError(template_id)
        return template

    async def create_coupon_template(self, **fields: Any) -> CouponTemplate:
        template = CouponTemplate(**fields)
        self.db.add(template)
        await self.db.flush()
        await self.db.refresh(template)
        logger.info("coupon_template_created", template_id=template.id)
        return template

    async def update_coupon_template(
        self, template_id: int, **fields: Any
    ) -> CouponTemplate:
        template = await self.get_coupon_template(template_id)
        for key, value in fields.items():
            setattr(template, key, value)
        await self.db.flush()
        await self.db.refresh(template)
        logger.info("coupon_template_updated", template_id=template_id)
        return template

    async def set_coupon_template_active(
        self, template_id: int, is_active: bool
    ) -> CouponTemplate:
        return await self.update_coupon_template(template_id, is_active=is_active)

    async def delete_coupon_template(self, template_id: int) -> None:
        template = await self.get_coupon_template(template_id)
        await self.db.delete(template)
        await self.db.flush()
        logger.info("coupon_template_deleted", template_id=template_id)

    # ── Branding ──────────────────────────────────────────────────────────

    async def get_branding(self) -> BrandingSettings:
        branding = (
            await self.db.execute(
                select(BrandingSettings).order_by(BrandingSettings.id).limit(1)
            )
        ).scalar_one_or_none()
        if branding is None:
            branding = BrandingSettings()
            self.db.add(branding)
            await self.db.flush()
            await self.db.refresh(branding)
            logger.info("branding_defaults_created")
        return branding

    async def update_branding(self, **fields: Any) -> BrandingSettings:
        branding = await self.get_branding()
        for key, value in fields.items():
            setattr(branding, key, value)
        await self.db.flush()
        await self.db.refresh(branding)
        logger.info("branding_updated", fields=sorted(fields))
        return branding

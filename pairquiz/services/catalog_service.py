"""
PairQuiz — Question Catalog

Read side of the question catalog.  Every session is served the same fixed
set: the first ``COMMON_QUESTION_COUNT`` common questions and the first
``INDIVIDUAL_QUESTION_COUNT`` individual questions, by id.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pairquiz.config import get_settings
from pairquiz.exceptions import ValidationError
from pairquiz.models import Question
from pairquiz.models.question import CATEGORY_COMMON, CATEGORY_INDIVIDUAL
from pairquiz.services.storage import Storage

logger = structlog.get_logger("pairquiz.catalog_service")


@dataclass(slots=True)
class QuestionSet:
    common: list[Question]
    individual: list[Question]

    @property
    def all(self) -> list[Question]:
        return [*self.common, *self.individual]

    @property
    def question_ids(self) -> set[int]:
        return {q.id for q in self.all}


class CatalogService:
    """Serves question sets and validates answer payloads against them."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        settings = get_settings()
        self.common_count: int = settings.COMMON_QUESTION_COUNT
        self.individual_count: int = settings.INDIVIDUAL_QUESTION_COUNT

    async def get_questions(self, category: str | None = None) -> list[Question]:
        return await self.storage.get_questions(category)

    async def get_question_set(self) -> QuestionSet:
        common = await self.storage.get_questions(CATEGORY_COMMON)
        individual = await self.storage.get_questions(CATEGORY_INDIVIDUAL)
        return QuestionSet(
            common=common[: self.common_count],
            individual=individual[: self.individual_count],
        )

    async def validate_answers(
        self, answers: list[tuple[int, int]]
    ) -> QuestionSet:
        """Check every (question_id, option_id) pair against the question set.

        Raises ``ValidationError`` for an empty payload, a repeated question,
        a question outside the set, or an option that belongs to a different
        question.  Nothing is written.
        """
        if not answers:
            raise ValidationError("At least one answer is required")

        question_set = await self.get_question_set()
        by_id = {q.id: q for q in question_set.all}
        seen: set[int] = set()

        for question_id, option_id in answers:
            if question_id in seen:
                raise ValidationError(f"Question {question_id} answered more than once")
            seen.add(question_id)

            question = by_id.get(question_id)
            if question is None:
                logger.info("answer_rejected_unknown_question", question_id=question_id)
                raise ValidationError(
                    f"Question {question_id} is not part of this session's question set"
                )
            if option_id not in {o.id for o in question.options}:
                logger.info(
                    "answer_rejected_foreign_option",
                    question_id=question_id,
                    option_id=option_id,
                )
                raise ValidationError(
                    f"Option {option_id} does not belong to question {question_id}"
                )

        return question_set

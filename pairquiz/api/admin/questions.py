"""
PairQuiz — Admin Questions API

Question catalog maintenance.  Updates replace the option list; answered
questions are locked against update and delete (409).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pairquiz.api.deps import get_admin_service
from pairquiz.models import Question
from pairquiz.schemas.question import Category, QuestionCreate, QuestionOut
from pairquiz.services.admin_service import AdminService

router = APIRouter()


@router.get("", response_model=list[QuestionOut], summary="List questions")
async def list_questions(
    category: Optional[Category] = Query(None),
    service: AdminService = Depends(get_admin_service),
) -> list[Question]:
    return await service.list_questions(category)


@router.get("/{question_id}", response_model=QuestionOut, summary="Get a question")
async def get_question(
    question_id: int,
    service: AdminService = Depends(get_admin_service),
) -> Question:
    return await service.get_question(question_id)


@router.post(
    "",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a question",
)
async def create_question(
    payload: QuestionCreate,
    service: AdminService = Depends(get_admin_service),
) -> Question:
    return await service.create_question(
        text=payload.text, category=payload.category, options=payload.options
    )


@router.put("/{question_id}", response_model=QuestionOut, summary="Replace a question")
async def update_question(
    question_id: int,
    payload: QuestionCreate,
    service: AdminService = Depends(get_admin_service),
) -> Question:
    return await service.update_question(
        question_id,
        text=payload.text,
        category=payload.category,
        options=payload.options,
    )


@router.delete(
    "/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a question",
)
async def delete_question(
    question_id: int,
    service: AdminService = Depends(get_admin_service),
) -> None:
    await service.delete_question(question_id)

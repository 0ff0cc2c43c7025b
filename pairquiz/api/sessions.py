"""
PairQuiz — Sessions API

The two-player flow: create or join a session by code, poll for the
partner, fetch the question set, submit answers, poll for results and
finally fetch the match result with its voucher.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from pairquiz.api.deps import get_current_participant, get_game_service
from pairquiz.models import Participant
from pairquiz.schemas.match import ResultsResponse
from pairquiz.schemas.question import AnswerSubmit, QuestionOut, SessionQuestionSet
from pairquiz.schemas.session import (
    JoinRequest,
    JoinResponse,
    ResultsStatusResponse,
    SessionCreateResponse,
    SessionStatusResponse,
    SubmittedResponse,
)
from pairquiz.schemas.voucher import VoucherResponse
from pairquiz.services.game_service import GameService

logger = structlog.get_logger("pairquiz.api.sessions")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Create a session and join the caller
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SessionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a session",
)
async def create_session(
    participant: Participant = Depends(get_current_participant),
    service: GameService = Depends(get_game_service),
) -> SessionCreateResponse:
    """Create a session under a fresh code and join the caller to it."""
    game_session = await service.create_session()
    await service.join_session(game_session.session_code, participant.id)
    return SessionCreateResponse(
        session_code=game_session.session_code,
        session_id=game_session.id,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /join — Join an existing session
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/join",
    response_model=JoinResponse,
    summary="Join a session by code",
)
async def join_session(
    payload: JoinRequest,
    participant: Participant = Depends(get_current_participant),
    service: GameService = Depends(get_game_service),
) -> JoinResponse:
    """Join the caller to a session.  Repeating the call is harmless."""
    result = await service.join_session(payload.session_code, participant.id)
    return JoinResponse(
        session_code=result.session_code,
        session_id=result.session_id,
        joined_now=result.joined_now,
        member_count=result.member_count,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{code}/status — Has the partner joined?
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_code}/status",
    response_model=SessionStatusResponse,
    summary="Check whether both participants have joined",
)
async def session_status(
    session_code: str,
    service: GameService = Depends(get_game_service),
) -> SessionStatusResponse:
    return SessionStatusResponse(ready=await service.is_session_ready(session_code))


# ──────────────────────────────────────────────────────────────────────────────
# GET /{code}/questions — Question set
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_code}/questions",
    response_model=SessionQuestionSet,
    summary="Get the questions for a session",
)
async def session_questions(
    session_code: str,
    service: GameService = Depends(get_game_service),
) -> SessionQuestionSet:
    question_set = await service.get_questions_for(session_code)
    return SessionQuestionSet(
        common_questions=[QuestionOut.model_validate(q) for q in question_set.common],
        individual_questions=[
            QuestionOut.model_validate(q) for q in question_set.individual
        ],
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /{code}/answers — Submit answers
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{session_code}/answers",
    summary="Submit the caller's answers",
)
async def submit_answers(
    session_code: str,
    payload: AnswerSubmit,
    participant: Participant = Depends(get_current_participant),
    service: GameService = Depends(get_game_service),
) -> dict:
    """Store the caller's selections.  Resubmitting a question replaces
    the previous selection."""
    saved = await service.submit_answers(
        session_code,
        participant.id,
        [(a.question_id, a.option_id) for a in payload.answers],
    )
    return {"success": True, "saved": saved}


# ──────────────────────────────────────────────────────────────────────────────
# GET /{code}/participants/{id}/submitted
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_code}/participants/{participant_id}/submitted",
    response_model=SubmittedResponse,
    summary="Check whether a participant has submitted answers",
)
async def participant_submitted(
    session_code: str,
    participant_id: int,
    service: GameService = Depends(get_game_service),
) -> SubmittedResponse:
    return SubmittedResponse(
        has_submitted=await service.has_participant_submitted(
            session_code, participant_id
        )
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{code}/results-status — Poll for results
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_code}/results-status",
    response_model=ResultsStatusResponse,
    summary="Check whether results can be computed",
)
async def results_status(
    session_code: str,
    service: GameService = Depends(get_game_service),
) -> ResultsStatusResponse:
    state = await service.results_status(session_code)
    return ResultsStatusResponse(
        ready=state.ready,
        partner_joined=state.partner_joined,
        message=state.message,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{code}/results — Match result and voucher
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{session_code}/results",
    response_model=ResultsResponse,
    summary="Get the match result",
)
async def results(
    session_code: str,
    participant: Participant = Depends(get_current_participant),
    service: GameService = Depends(get_game_service),
) -> ResultsResponse:
    """Compute the match (409 while answers are pending) and attach the
    voucher when the percentage qualifies."""
    log = logger.bind(session_code=session_code, participant_id=participant.id)
    result, voucher = await service.get_results(session_code)
    log.info(
        "results_served",
        match_percentage=result.match_percentage,
        has_voucher=voucher is not None,
    )
    return ResultsResponse(
        **result.model_dump(),
        voucher=VoucherResponse.model_validate(voucher) if voucher else None,
    )

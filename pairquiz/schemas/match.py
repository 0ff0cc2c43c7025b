from pydantic import BaseModel, Field
from typing import Optional

from pairquiz.schemas.voucher import VoucherResponse

class MatchingAnswer(BaseModel):
    question_id: int
    question: str
    answer: str

class NonMatchingAnswer(BaseModel):
    question_id: int
    question: str
    your_answer: str
    partner_answer: str

class MatchResult(BaseModel):
    session_id: int
    session_code: str
    match_percentage: int = Field(ge=0, le=100)
    matching_answers: list[MatchingAnswer]
    non_matching_answers: list[NonMatchingAnswer]
    # "your_answer" always belongs to the reference participant (lowest id)
    reference_participant_id: int
    partner_participant_id: int

class ResultsResponse(MatchResult):
    voucher: Optional[VoucherResponse] = None

from pydantic import BaseModel, Field, field_validator
from typing import Literal

Category = Literal["common", "individual"]

class OptionOut(BaseModel):
    id: int
    option_text: str

    model_config = {"from_attributes": True}

class QuestionOut(BaseModel):
    id: int
    text: str
    category: str
    options: list[OptionOut]

    model_config = {"from_attributes": True}

class SessionQuestionSet(BaseModel):
    common_questions: list[QuestionOut]
    individual_questions: list[QuestionOut]

class AnswerIn(BaseModel):
    question_id: int
    option_id: int

class AnswerSubmit(BaseModel):
    answers: list[AnswerIn] = Field(min_length=1)

class QuestionCreate(BaseModel):
    text: str = Field(min_length=1)
    category: Category
    options: list[str] = Field(min_length=2)

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v: list[str]) -> list[str]:
        cleaned = [o.strip() for o in v]
        if any(not o for o in cleaned):
            raise ValueError("Options must not be blank")
        return cleaned

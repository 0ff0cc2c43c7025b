from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal

Gender = Literal["male", "female", "other", "prefer-not-to-say"]

class ParticipantCreate(BaseModel):
    name: str = Field(min_length=2)
    gender: Gender
    age: int = Field(ge=18, le=100)
    whatsapp_number: str = Field(min_length=8)

    @field_validator("name", "whatsapp_number")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

class ParticipantResponse(BaseModel):
    id: int
    name: str
    gender: str
    age: int
    whatsapp_number: str
    created_at: datetime

    model_config = {"from_attributes": True}

class ParticipantRegistered(ParticipantResponse):
    # Returned once; only the hash is stored
    token: str

from pydantic import BaseModel, Field, field_validator

class SessionCreateResponse(BaseModel):
    session_code: str
    session_id: int

class JoinRequest(BaseModel):
    session_code: str = Field(min_length=1)

    @field_validator("session_code")
    @classmethod
    def normalise(cls, v: str) -> str:
        return v.strip().upper()

class JoinResponse(BaseModel):
    success: bool = True
    session_code: str
    session_id: int
    joined_now: bool
    member_count: int

class SessionStatusResponse(BaseModel):
    ready: bool

class ResultsStatusResponse(BaseModel):
    ready: bool
    partner_joined: bool
    message: str

class SubmittedResponse(BaseModel):
    has_submitted: bool

from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from pairquiz.schemas.voucher import CouponTemplateResponse, VoucherResponse

class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int

class CountBucket(BaseModel):
    label: str
    count: int

class AnalyticsResponse(BaseModel):
    total_participants: int
    completed_matches: int
    voucher_count: int
    gender_distribution: list[CountBucket]
    age_distribution: list[CountBucket]

class ParticipantStatusItem(BaseModel):
    id: int
    name: str
    gender: str
    age: int
    whatsapp_number: str
    created_at: datetime
    match_status: str
    session_code: Optional[str] = None
    voucher_code: Optional[str] = None

class ParticipantPage(BaseModel):
    participants: list[ParticipantStatusItem]
    pagination: Pagination

class SessionMember(BaseModel):
    id: int
    name: str

class SessionListItem(BaseModel):
    id: int
    session_code: str
    created_at: datetime
    concluded: bool
    match_percentage: Optional[int] = None
    members: list[SessionMember]
    voucher: Optional[VoucherResponse] = None

class SessionPage(BaseModel):
    sessions: list[SessionListItem]
    pagination: Pagination

class CouponTemplatePage(BaseModel):
    templates: list[CouponTemplateResponse]
    pagination: Pagination

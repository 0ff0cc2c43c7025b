from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional

class VoucherResponse(BaseModel):
    id: int
    session_id: int
    voucher_code: str
    voucher_type: str
    discount: str
    valid_until: datetime
    downloaded: bool

    model_config = {"from_attributes": True}

class CouponTemplateCreate(BaseModel):
    name: str = Field(min_length=2)
    discount_type: Literal["percentage", "fixed"]
    discount_value: str = Field(min_length=1)
    currency: str = "AED"
    validity_days: int = Field(ge=1)
    match_percentage_threshold: int = Field(40, ge=0, le=100)
    is_active: bool = True

class CouponTemplateResponse(BaseModel):
    id: int
    name: str
    discount_type: str
    discount_value: str
    currency: str
    validity_days: int
    match_percentage_threshold: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class CouponTemplateStatusUpdate(BaseModel):
    is_active: bool

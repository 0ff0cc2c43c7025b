from pydantic import BaseModel, Field, HttpUrl
from datetime import datetime
from typing import Optional

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

class BrandingResponse(BaseModel):
    privacy_policy_url: Optional[str] = None
    terms_and_conditions_url: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: str
    secondary_color: str
    updated_at: datetime

    model_config = {"from_attributes": True}

class BrandingUpdate(BaseModel):
    privacy_policy_url: Optional[HttpUrl] = None
    terms_and_conditions_url: Optional[HttpUrl] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern=HEX_COLOR)
    secondary_color: Optional[str] = Field(None, pattern=HEX_COLOR)

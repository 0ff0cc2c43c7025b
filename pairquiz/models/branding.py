"""
PairQuiz — Branding settings (single-row table edited from the admin console).
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from pairquiz.database import Base

DEFAULT_PRIMARY_COLOR = "#8e2c8e"
DEFAULT_SECONDARY_COLOR = "#d4a5d4"


class BrandingSettings(Base):
    __tablename__ = "branding_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    privacy_policy_url: Mapped[str | None] = mapped_column(String, nullable=True)
    terms_and_conditions_url: Mapped[str | None] = mapped_column(String, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    primary_color: Mapped[str] = mapped_column(
        String, default=DEFAULT_PRIMARY_COLOR, nullable=False
    )
    secondary_color: Mapped[str] = mapped_column(
        String, default=DEFAULT_SECONDARY_COLOR, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BrandingSettings primary={self.primary_color!r}>"

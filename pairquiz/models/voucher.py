"""
PairQuiz — Voucher and coupon template models.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from pairquiz.database import Base

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_FIXED)


class Voucher(Base):
    __tablename__ = "vouchers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        comment="At most one voucher per session",
    )
    voucher_code: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    voucher_type: Mapped[str] = mapped_column(String, nullable=False)
    discount: Mapped[str] = mapped_column(String, nullable=False)
    valid_until: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    downloaded: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Voucher {self.voucher_code!r} session={self.session_id}>"


class CouponTemplate(Base):
    __tablename__ = "coupon_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    discount_type: Mapped[str] = mapped_column(
        String, nullable=False, comment="percentage / fixed"
    )
    discount_value: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(
        String, default="AED", server_default="AED", nullable=False
    )
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)
    match_percentage_threshold: Mapped[int] = mapped_column(
        Integer, default=40, server_default="40", nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<CouponTemplate {self.name!r} threshold={self.match_percentage_threshold} "
            f"active={self.is_active}>"
        )

"""
PairQuiz — Participant model.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pairquiz.database import Base


class Participant(Base):
    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    gender: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    whatsapp_number: Mapped[str] = mapped_column(String, nullable=False)
    token_hash: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False,
        comment="sha256(token + salt); the raw token is never stored",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    memberships: Mapped[list["SessionParticipant"]] = relationship(
        "SessionParticipant", back_populates="participant"
    )

    def __repr__(self) -> str:
        return f"<Participant {self.name!r} id={self.id}>"

"""
PairQuiz — Game session and membership models.
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
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pairquiz.database import Base


class GameSession(Base):
    __tablename__ = "game_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_code: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    concluded: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    match_percentage: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="0-100, set when concluded"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    members: Mapped[list["SessionParticipant"]] = relationship(
        "SessionParticipant",
        back_populates="session",
        order_by="SessionParticipant.participant_id",
    )

    def __repr__(self) -> str:
        return (
            f"<GameSession {self.session_code!r} id={self.id} "
            f"concluded={self.concluded}>"
        )


class SessionParticipant(Base):
    __tablename__ = "session_participants"

    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("game_sessions.id", ondelete="CASCADE"), primary_key=True
    )
    participant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    session: Mapped["GameSession"] = relationship(
        "GameSession", back_populates="members", lazy="selectin"
    )
    participant: Mapped["Participant"] = relationship(
        "Participant", back_populates="memberships", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<SessionParticipant s={self.session_id} p={self.participant_id}>"

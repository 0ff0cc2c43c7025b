"""
PairQuiz — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from pairquiz.models.participant import Participant
from pairquiz.models.session import GameSession, SessionParticipant
from pairquiz.models.question import Question, QuestionOption
from pairquiz.models.answer import Answer
from pairquiz.models.voucher import CouponTemplate, Voucher
from pairquiz.models.branding import BrandingSettings

__all__ = [
    "Participant",
    "GameSession",
    "SessionParticipant",
    "Question",
    "QuestionOption",
    "Answer",
    "CouponTemplate",
    "Voucher",
    "BrandingSettings",
]

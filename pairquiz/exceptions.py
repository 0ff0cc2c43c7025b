"""Domain exceptions raised by the PairQuiz services.

Every error is recoverable by the caller except ``DuplicateVoucherError``,
which signals that the voucher idempotence guard was bypassed.  The API
layer maps the families below onto HTTP status codes in ``pairquiz.main``.
"""

from __future__ import annotations


class PairQuizError(Exception):
    """Base exception for all PairQuiz errors."""

    kind = "error"


# ── Lookup misses ──────────────────────────────────────────────────────────


class NotFoundError(PairQuizError):
    """Base for a lookup that found nothing."""

    kind = "not_found"


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_code: str) -> None:
        self.session_code = session_code
        super().__init__(f"Session '{session_code}' not found")


class ParticipantNotFoundError(NotFoundError):
    def __init__(self, participant_id: int | None = None) -> None:
        self.participant_id = participant_id
        if participant_id is None:
            message = "Participant not found"
        else:
            message = f"Participant {participant_id} not found"
        super().__init__(message)


class QuestionNotFoundError(NotFoundError):
    def __init__(self, question_id: int) -> None:
        self.question_id = question_id
        super().__init__(f"Question {question_id} not found")


class VoucherNotFoundError(NotFoundError):
    def __init__(self, voucher_id: int) -> None:
        self.voucher_id = voucher_id
        super().__init__(f"Voucher {voucher_id} not found")


class CouponTemplateNotFoundError(NotFoundError):
    def __init__(self, template_id: int) -> None:
        self.template_id = template_id
        super().__init__(f"Coupon template {template_id} not found")


# ── Cardinality / state conflicts ──────────────────────────────────────────


class ConflictError(PairQuizError):
    """Raised when an operation would violate a cardinality invariant."""

    kind = "conflict"


class SessionFullError(ConflictError):
    def __init__(self, session_code: str, participant_id: int) -> None:
        self.session_code = session_code
        self.participant_id = participant_id
        super().__init__(
            f"Session '{session_code}' already has two participants"
        )


class NotReadyError(PairQuizError):
    """Raised when results are requested before both answer sets are in."""

    kind = "not_ready"

    def __init__(self, session_code: str, reason: str) -> None:
        self.session_code = session_code
        self.reason = reason
        super().__init__(f"Session '{session_code}' is not ready: {reason}")


class ValidationError(PairQuizError):
    """Raised for a malformed answer payload or catalog edit."""

    kind = "validation_error"


class ExhaustedRetriesError(PairQuizError):
    """Raised when no unused session or voucher code could be generated."""

    kind = "exhausted_retries"

    def __init__(self, attempts: int, what: str = "session code") -> None:
        self.attempts = attempts
        self.what = what
        super().__init__(f"No unused {what} found after {attempts} attempts")


class DuplicateVoucherError(PairQuizError):
    """Raised when a second voucher insert reaches the database for a session."""

    kind = "duplicate_voucher"

    def __init__(self, session_id: int) -> None:
        self.session_id = session_id
        super().__init__(f"A voucher already exists for session {session_id}")

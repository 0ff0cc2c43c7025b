"""
PairQuiz — Reward Issuer

Mints at most one voucher per concluded session.

Template selection: among active templates whose threshold is at or below
the match percentage, the highest threshold wins (lowest id on ties).
Without a qualifying template the built-in tiers apply:

  >= 80%  ->  30% OFF
  >= 60%  ->  20% OFF
  else    ->  10% OFF      (validity: DEFAULT_VOUCHER_VALIDITY_MONTHS)

Whether to issue at all is the caller's decision; the issuer never refuses
a low percentage.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
)

from pairquiz.config import get_settings
from pairquiz.exceptions import (
    DuplicateVoucherError,
    ExhaustedRetriesError,
    NotReadyError,
    SessionNotFoundError,
    VoucherNotFoundError,
)
from pairquiz.models import CouponTemplate, Voucher
from pairquiz.models.voucher import DISCOUNT_PERCENTAGE
from pairquiz.services.storage import Storage
from pairquiz.utils.security import generate_voucher_code

logger = structlog.get_logger("pairquiz.reward_service")

# (minimum percentage, discount) — checked top-down
_DEFAULT_TIERS: list[tuple[int, str]] = [
    (80, "30% OFF"),
    (60, "20% OFF"),
    (0, "10% OFF"),
]


class _VoucherCodeCollision(Exception):
    """A generated voucher code is already taken; internal retry signal."""


def add_months(moment: datetime, months: int) -> datetime:
    """Shift ``moment`` by calendar months, clamping the day to month end."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def select_template(
    templates: list[CouponTemplate], match_percentage: int
) -> CouponTemplate | None:
    """Closest-fit-from-below among active templates."""
    candidates = [
        t for t in templates
        if t.is_active and t.match_percentage_threshold <= match_percentage
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda t: (-t.match_percentage_threshold, t.id))


def format_discount(template: CouponTemplate) -> str:
    if template.discount_type == DISCOUNT_PERCENTAGE:
        return f"{template.discount_value}% OFF"
    return f"{template.discount_value} {template.currency} OFF"


def default_discount(match_percentage: int) -> str:
    for minimum, discount in _DEFAULT_TIERS:
        if match_percentage >= minimum:
            return discount
    return _DEFAULT_TIERS[-1][1]


class RewardService:
    """Voucher issuing and download tracking."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        settings = get_settings()
        self.code_prefix: str = settings.VOUCHER_CODE_PREFIX
        self.code_max_attempts: int = settings.VOUCHER_CODE_MAX_ATTEMPTS
        self.default_type: str = settings.DEFAULT_VOUCHER_TYPE
        self.default_validity_months: int = settings.DEFAULT_VOUCHER_VALIDITY_MONTHS

    async def issue(
        self,
        session_id: int,
        match_percentage: int,
        now: datetime | None = None,
    ) -> Voucher:
        """Return the session's voucher, minting it on first call.

        Raises ``DuplicateVoucherError`` if a concurrent call inserted a
        voucher for the same session between the existence check and the
        insert.  A clash on the voucher code alone is retried with a fresh
        code, up to ``VOUCHER_CODE_MAX_ATTEMPTS`` times, after which
        ``ExhaustedRetriesError`` is raised.
        """
        log = logger.bind(session_id=session_id, match_percentage=match_percentage)

        existing = await self.storage.get_voucher_by_session(session_id)
        if existing is not None:
            log.info("voucher_reused", voucher_code=existing.voucher_code)
            return existing

        game_session = await self.storage.get_session(session_id)
        if game_session is None:
            raise SessionNotFoundError(str(session_id))
        if not game_session.concluded:
            raise NotReadyError(game_session.session_code, "session has not concluded")

        now = now or datetime.now(timezone.utc)
        templates = await self.storage.get_active_coupon_templates()
        template = select_template(templates, match_percentage)

        if template is not None:
            discount = format_discount(template)
            voucher_type = template.name
            valid_until = now + timedelta(days=template.validity_days)
            log = log.bind(template_id=template.id)
        else:
            discount = default_discount(match_percentage)
            voucher_type = self.default_type
            valid_until = add_months(now, self.default_validity_months)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(_VoucherCodeCollision),
                stop=stop_after_attempt(self.code_max_attempts),
            ):
                with attempt:
                    voucher = await self._insert(
                        session_id, voucher_type, discount, valid_until, log
                    )
        except RetryError:
            log.error("voucher_code_retries_exhausted", attempts=self.code_max_attempts)
            raise ExhaustedRetriesError(self.code_max_attempts, "voucher code")

        log.info(
            "voucher_issued",
            voucher_id=voucher.id,
            voucher_code=voucher.voucher_code,
            discount=discount,
            from_template=template is not None,
        )
        return voucher

    async def mark_downloaded(self, voucher_id: int) -> None:
        if not await self.storage.mark_voucher_downloaded(voucher_id):
            raise VoucherNotFoundError(voucher_id)
        logger.info("voucher_downloaded", voucher_id=voucher_id)

    # ── Internal helpers ──────────────────────────────────────────────────

    async def _insert(
        self,
        session_id: int,
        voucher_type: str,
        discount: str,
        valid_until: datetime,
        log,
    ) -> Voucher:
        code = generate_voucher_code(self.code_prefix)
        try:
            return await self.storage.create_voucher(
                session_id=session_id,
                voucher_code=code,
                voucher_type=voucher_type,
                discount=discount,
                valid_until=valid_until,
            )
        except IntegrityError as exc:
            # Only a row for this session makes it a duplicate voucher.
            if await self.storage.get_voucher_by_session(session_id) is not None:
                log.error("voucher_duplicate_insert", error=str(exc.orig))
                raise DuplicateVoucherError(session_id) from exc
            log.warning("voucher_code_collision", voucher_code=code)
            raise _VoucherCodeCollision(code) from exc

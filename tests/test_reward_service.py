"""Tests for voucher issuing, template selection and download tracking."""
import asyncio
import re
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from pairquiz.database import Base
from pairquiz.exceptions import (
    DuplicateVoucherError,
    ExhaustedRetriesError,
    NotReadyError,
    SessionNotFoundError,
    VoucherNotFoundError,
)
from pairquiz.models import CouponTemplate, Voucher
from pairquiz.services.reward_service import (
    RewardService,
    add_months,
    default_discount,
    select_template,
)
from pairquiz.services.storage import Storage

NOW = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


def _naive(moment):
    return moment.replace(tzinfo=None)


def _template(id, threshold, active=True, **fields):
    defaults = dict(
        name=f"Template {id}",
        discount_type="percentage",
        discount_value="15",
        currency="AED",
        validity_days=30,
    )
    defaults.update(fields)
    return CouponTemplate(
        id=id,
        match_percentage_threshold=threshold,
        is_active=active,
        **defaults,
    )


async def _concluded_session(storage, code="DONE01", percentage=80):
    game_session = await storage.create_session(code)
    await storage.mark_concluded(game_session.id, percentage)
    return game_session


class TestHelpers:

    def test_add_months_clamps_day(self):
        assert add_months(NOW, 1) == datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)
        assert add_months(NOW, 3) == datetime(2026, 4, 30, 12, 0, tzinfo=timezone.utc)
        assert add_months(NOW, 12) == datetime(2027, 1, 31, 12, 0, tzinfo=timezone.utc)

    def test_add_months_crosses_year(self):
        moment = datetime(2026, 11, 15, tzinfo=timezone.utc)
        assert add_months(moment, 3) == datetime(2027, 2, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "percentage,expected",
        [(100, "30% OFF"), (80, "30% OFF"), (79, "20% OFF"), (60, "20% OFF"), (50, "10% OFF"), (0, "10% OFF")],
    )
    def test_default_tiers(self, percentage, expected):
        assert default_discount(percentage) == expected

    def test_highest_qualifying_threshold_wins(self):
        templates = [_template(1, 40), _template(2, 70), _template(3, 90)]
        assert select_template(templates, 75).id == 2
        assert select_template(templates, 90).id == 3
        assert select_template(templates, 39) is None

    def test_threshold_above_percentage_skipped(self):
        templates = [_template(1, 80), _template(2, 60)]
        assert select_template(templates, 75).id == 2

    def test_inactive_templates_ignored(self):
        templates = [_template(1, 40), _template(2, 70, active=False)]
        assert select_template(templates, 75).id == 1

    def test_tie_broken_by_lowest_id(self):
        templates = [_template(5, 60), _template(2, 60)]
        assert select_template(templates, 60).id == 2


class TestIssue:

    @pytest.mark.asyncio
    async def test_fallback_voucher(self, storage):
        game_session = await _concluded_session(storage, percentage=85)
        voucher = await RewardService(storage).issue(game_session.id, 85, now=NOW)

        assert re.fullmatch(r"MAWADHA-[A-Z0-9]{6}", voucher.voucher_code)
        assert voucher.voucher_type == "COUPLE'S DINNER"
        assert voucher.discount == "30% OFF"
        assert voucher.downloaded is False
        assert _naive(voucher.valid_until) == _naive(add_months(NOW, 3))

    @pytest.mark.asyncio
    async def test_percentage_template(self, storage, db_session):
        db_session.add(CouponTemplate(
            name="Spa Day", discount_type="percentage", discount_value="25",
            validity_days=30, match_percentage_threshold=60,
        ))
        await db_session.flush()
        game_session = await _concluded_session(storage, percentage=70)

        voucher = await RewardService(storage).issue(game_session.id, 70, now=NOW)
        assert voucher.voucher_type == "Spa Day"
        assert voucher.discount == "25% OFF"
        assert _naive(voucher.valid_until) == _naive(NOW + timedelta(days=30))

    @pytest.mark.asyncio
    async def test_fixed_template(self, storage, db_session):
        db_session.add(CouponTemplate(
            name="Dinner Credit", discount_type="fixed", discount_value="100",
            currency="AED", validity_days=14, match_percentage_threshold=50,
        ))
        await db_session.flush()
        game_session = await _concluded_session(storage, percentage=55)

        voucher = await RewardService(storage).issue(game_session.id, 55, now=NOW)
        assert voucher.discount == "100 AED OFF"

    @pytest.mark.asyncio
    async def test_template_above_percentage_falls_back(self, storage, db_session):
        db_session.add(CouponTemplate(
            name="Grand Prize", discount_type="percentage", discount_value="50",
            validity_days=30, match_percentage_threshold=95,
        ))
        await db_session.flush()
        game_session = await _concluded_session(storage, percentage=65)

        voucher = await RewardService(storage).issue(game_session.id, 65, now=NOW)
        assert voucher.voucher_type == "COUPLE'S DINNER"
        assert voucher.discount == "20% OFF"

    @pytest.mark.asyncio
    async def test_issue_is_idempotent(self, storage, db_session):
        game_session = await _concluded_session(storage)
        service = RewardService(storage)
        first = await service.issue(game_session.id, 80)
        second = await service.issue(game_session.id, 80)
        assert first.id == second.id
        assert first.voucher_code == second.voucher_code

        count = (
            await db_session.execute(select(func.count()).select_from(Voucher))
        ).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_session_must_be_concluded(self, storage):
        game_session = await storage.create_session("OPEN01")
        with pytest.raises(NotReadyError):
            await RewardService(storage).issue(game_session.id, 80)

    @pytest.mark.asyncio
    async def test_unknown_session(self, storage):
        with pytest.raises(SessionNotFoundError):
            await RewardService(storage).issue(9999, 80)

    @pytest.mark.asyncio
    async def test_duplicate_insert_raises(self, storage):
        game_session = await _concluded_session(storage)
        service = RewardService(storage)
        existing = await service.issue(game_session.id, 80)

        # A racing caller misses the voucher on its first look, then the
        # unique session key rejects its insert.
        with patch.object(
            storage, "get_voucher_by_session", AsyncMock(side_effect=[None, existing])
        ):
            with pytest.raises(DuplicateVoucherError) as exc_info:
                await service.issue(game_session.id, 80)
        assert exc_info.value.session_id == game_session.id

    @pytest.mark.asyncio
    async def test_code_collision_retries_with_fresh_code(self, storage):
        taken = await RewardService(storage).issue(
            (await _concluded_session(storage, "DONE01")).id, 80
        )
        game_session = await _concluded_session(storage, "DONE02")

        with patch(
            "pairquiz.services.reward_service.generate_voucher_code",
            side_effect=[taken.voucher_code, "MAWADHA-FRESH1"],
        ):
            voucher = await RewardService(storage).issue(game_session.id, 80)

        assert voucher.voucher_code == "MAWADHA-FRESH1"
        assert voucher.session_id == game_session.id

    @pytest.mark.asyncio
    async def test_code_collisions_exhaust(self, storage):
        taken = await RewardService(storage).issue(
            (await _concluded_session(storage, "DONE01")).id, 80
        )
        game_session = await _concluded_session(storage, "DONE02")

        with patch(
            "pairquiz.services.reward_service.generate_voucher_code",
            return_value=taken.voucher_code,
        ):
            with pytest.raises(ExhaustedRetriesError):
                await RewardService(storage).issue(game_session.id, 80)
        assert await storage.get_voucher_by_session(game_session.id) is None


class TestConcurrentIssue:

    @pytest.mark.asyncio
    async def test_two_connections_yield_one_voucher(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, expire_on_commit=False)

        async with factory() as session:
            game_session = await _concluded_session(Storage(session))
            session_id = game_session.id
            await session.commit()

        async def issue():
            async with factory() as session:
                voucher = await RewardService(Storage(session)).issue(session_id, 80)
                await session.commit()
                return voucher.voucher_code

        try:
            outcomes = await asyncio.gather(issue(), issue(), return_exceptions=True)

            codes = {o for o in outcomes if isinstance(o, str)}
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            assert len(codes) == 1
            assert all(isinstance(e, DuplicateVoucherError) for e in errors)

            async with factory() as session:
                vouchers = (await session.execute(select(Voucher))).scalars().all()
            assert [v.voucher_code for v in vouchers] == list(codes)
        finally:
            await engine.dispose()


class TestMarkDownloaded:

    @pytest.mark.asyncio
    async def test_marks_flag(self, storage):
        game_session = await _concluded_session(storage)
        service = RewardService(storage)
        voucher = await service.issue(game_session.id, 80)

        await service.mark_downloaded(voucher.id)
        assert (await storage.get_voucher(voucher.id)).downloaded is True

    @pytest.mark.asyncio
    async def test_unknown_voucher(self, storage):
        with pytest.raises(VoucherNotFoundError):
            await RewardService(storage).mark_downloaded(9999)

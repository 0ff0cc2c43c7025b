"""Tests for the session registry: code generation, joining, readiness."""
import re
from unittest.mock import MagicMock, patch

import pytest

from pairquiz.exceptions import (
    ExhaustedRetriesError,
    ParticipantNotFoundError,
    SessionFullError,
    SessionNotFoundError,
)
from pairquiz.services.session_service import SessionService


def _settings(**overrides):
    settings = MagicMock()
    settings.SESSION_CODE_LENGTH = 6
    settings.SESSION_CODE_MAX_ATTEMPTS = 5
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


class TestCreate:

    @pytest.mark.asyncio
    async def test_code_is_six_uppercase_alphanumerics(self, game):
        game_session = await game.create_session()
        assert re.fullmatch(r"[A-Z0-9]{6}", game_session.session_code)
        assert game_session.concluded is False

    @pytest.mark.asyncio
    async def test_codes_are_unique(self, game):
        codes = {(await game.create_session()).session_code for _ in range(20)}
        assert len(codes) == 20

    @pytest.mark.asyncio
    async def test_collision_is_retried(self, storage):
        await storage.create_session("TAKEN1")
        service = SessionService(storage)
        with patch(
            "pairquiz.services.session_service.generate_code",
            side_effect=["TAKEN1", "TAKEN1", "FRESH1"],
        ) as gen:
            game_session = await service.create()
        assert game_session.session_code == "FRESH1"
        assert gen.call_count == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, storage):
        await storage.create_session("TAKEN1")
        with patch(
            "pairquiz.services.session_service.get_settings",
            return_value=_settings(SESSION_CODE_MAX_ATTEMPTS=3),
        ):
            service = SessionService(storage)
        with patch(
            "pairquiz.services.session_service.generate_code",
            return_value="TAKEN1",
        ) as gen:
            with pytest.raises(ExhaustedRetriesError) as exc_info:
                await service.create()
        assert gen.call_count == 3
        assert exc_info.value.attempts == 3


class TestJoin:

    @pytest.mark.asyncio
    async def test_two_participants_join(self, game, alice, bob):
        game_session = await game.create_session()
        first = await game.join_session(game_session.session_code, alice.id)
        second = await game.join_session(game_session.session_code, bob.id)
        assert first.joined_now and first.member_count == 1
        assert second.joined_now and second.member_count == 2
        assert await game.is_session_ready(game_session.session_code)

    @pytest.mark.asyncio
    async def test_rejoin_is_idempotent(self, game, alice):
        game_session = await game.create_session()
        await game.join_session(game_session.session_code, alice.id)
        again = await game.join_session(game_session.session_code, alice.id)
        assert again.joined_now is False
        assert again.member_count == 1

    @pytest.mark.asyncio
    async def test_member_rejoin_of_full_session_is_not_rejected(
        self, game, paired_session, alice
    ):
        again = await game.join_session(paired_session.session_code, alice.id)
        assert again.joined_now is False
        assert again.member_count == 2

    @pytest.mark.asyncio
    async def test_third_participant_rejected(self, game, paired_session, carol):
        with pytest.raises(SessionFullError):
            await game.join_session(paired_session.session_code, carol.id)
        members = await game.sessions.get_participants(paired_session.session_code)
        assert len(members) == 2

    @pytest.mark.asyncio
    async def test_code_is_case_insensitive(self, game, alice):
        game_session = await game.create_session()
        result = await game.join_session(
            f"  {game_session.session_code.lower()} ", alice.id
        )
        assert result.session_code == game_session.session_code

    @pytest.mark.asyncio
    async def test_unknown_code(self, game, alice):
        with pytest.raises(SessionNotFoundError):
            await game.join_session("NOPE00", alice.id)

    @pytest.mark.asyncio
    async def test_unknown_participant(self, game):
        game_session = await game.create_session()
        with pytest.raises(ParticipantNotFoundError):
            await game.join_session(game_session.session_code, 9999)


class TestReadiness:

    @pytest.mark.asyncio
    async def test_not_ready_with_one_member(self, game, alice):
        game_session = await game.create_session()
        await game.join_session(game_session.session_code, alice.id)
        assert await game.is_session_ready(game_session.session_code) is False

    @pytest.mark.asyncio
    async def test_participants_sorted_by_id(self, game, alice, bob):
        game_session = await game.create_session()
        await game.join_session(game_session.session_code, bob.id)
        await game.join_session(game_session.session_code, alice.id)
        members = await game.sessions.get_participants(game_session.session_code)
        assert [m.id for m in members] == sorted([alice.id, bob.id])

    @pytest.mark.asyncio
    async def test_unknown_code_raises(self, game):
        with pytest.raises(SessionNotFoundError):
            await game.is_session_ready("NOPE00")

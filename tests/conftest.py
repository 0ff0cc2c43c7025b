"""Shared pytest fixtures for PairQuiz tests.

Every test gets a fresh in-memory SQLite database (aiosqlite) built from
the ORM metadata, with the default question catalog seeded.
"""
import os

# Must be set before pairquiz is imported: the engine is built at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TOKEN_SALT"] = "test-salt"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import pairquiz.models  # noqa: F401  (registers tables on Base.metadata)
from pairquiz.database import Base
from pairquiz.services.catalog_service import CatalogService
from pairquiz.services.game_service import GameService
from pairquiz.services.storage import Storage
from scripts.seed_questions import seed_questions

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        await seed_questions(session)
        await session.commit()
        yield session


@pytest.fixture
def storage(db_session):
    return Storage(db_session)


@pytest.fixture
def game(db_session):
    return GameService(db_session)


@pytest_asyncio.fixture
async def question_set(storage):
    return await CatalogService(storage).get_question_set()


@pytest_asyncio.fixture
async def alice(game):
    participant, _ = await game.register("Alice", "female", 29, "+971500000001")
    return participant


@pytest_asyncio.fixture
async def bob(game):
    participant, _ = await game.register("Bob", "male", 31, "+971500000002")
    return participant


@pytest_asyncio.fixture
async def carol(game):
    participant, _ = await game.register("Carol", "female", 44, "+971500000003")
    return participant


@pytest_asyncio.fixture
async def paired_session(game, alice, bob):
    """A session with Alice (created it) and Bob joined."""
    game_session = await game.create_session()
    await game.join_session(game_session.session_code, alice.id)
    await game.join_session(game_session.session_code, bob.id)
    return game_session


@pytest.fixture
def pick(question_set):
    """Build (question_id, option_id) pairs choosing ``option_indexes[i]``
    for the i-th question of the set (common first, then individual)."""
    def _pick(option_indexes):
        return [
            (q.id, q.options[index].id)
            for q, index in zip(question_set.all, option_indexes)
        ]
    return _pick

"""Seed the 7 default quiz questions (5 common, 2 individual) with their options.

Usage: python -m scripts.seed_questions
"""
import asyncio
import sys
sys.path.insert(0, ".")

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pairquiz.database import async_session_factory
from pairquiz.models import Question, QuestionOption


DEFAULT_QUESTIONS = [
    {
        "text": "What's your favorite travel destination?",
        "category": "common",
        "options": ["Beach", "Mountains", "City", "Countryside"],
    },
    {
        "text": "What's your favorite cuisine?",
        "category": "common",
        "options": ["Italian", "Asian", "Middle Eastern", "American"],
    },
    {
        "text": "What's your ideal date night?",
        "category": "common",
        "options": ["Dinner", "Movie", "Adventure activity", "Stay home"],
    },
    {
        "text": "What's your favorite way to relax?",
        "category": "common",
        "options": ["Reading", "Watching TV", "Exercise", "Socializing"],
    },
    {
        "text": "What's your favorite color?",
        "category": "common",
        "options": ["Blue", "Red", "Green", "Purple"],
    },
    {
        "text": "What quality do you value most in a relationship?",
        "category": "individual",
        "options": ["Trust", "Communication", "Humor", "Independence"],
    },
    {
        "text": "What's your partner's biggest strength?",
        "category": "individual",
        "options": ["Kindness", "Intelligence", "Reliability", "Patience"],
    },
]


async def seed_questions(session: AsyncSession) -> int:
    """Insert the default catalog unless questions already exist.

    Returns the number of questions inserted.  Does not commit.
    """
    existing = (
        await session.execute(select(func.count()).select_from(Question))
    ).scalar_one()
    if existing:
        print(f"  {existing} questions already exist, skipping.")
        return 0

    for q in DEFAULT_QUESTIONS:
        session.add(
            Question(
                text=q["text"],
                category=q["category"],
                options=[QuestionOption(option_text=o) for o in q["options"]],
            )
        )
        print(f"  Seeded {q['category']} question: {q['text']}")
    await session.flush()
    return len(DEFAULT_QUESTIONS)


async def seed():
    async with async_session_factory() as session:
        await seed_questions(session)
        await session.commit()
    print("Done seeding questions.")


if __name__ == "__main__":
    asyncio.run(seed())

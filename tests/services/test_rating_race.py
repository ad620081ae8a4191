"""Rating Race — several students rate the same writer at once.

Invariants checked:
    - Every rating commits; none fails on lock contention
    - The writer's total_orders and mean reflect all of them (no lost update)

Design Decisions:
    - File-backed SQLite with one session per rater, as in the accept race: each rating
      runs on its own connection and the database serializes the writes
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from notehub.db.base import Base
from notehub.infrastructure.auth_provider import hash_password
from notehub.models.note_request import NoteRequest
from notehub.models.rating import Rating
from notehub.models.user import User
from notehub.services.accounts import identity_of
from notehub.services.reputation import ReputationService

SCORES = [5, 4, 3, 5, 4]


@pytest.fixture
async def file_factory(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def test_concurrent_ratings_all_counted(file_factory):
    async with file_factory() as db:
        writer = User(
            username="wri", email="wri@example.com",
            password_hash=hash_password("secret123"), role="writer",
        )
        students = [
            User(
                username=f"s{i}", email=f"s{i}@example.com",
                password_hash=hash_password("secret123"), role="student",
            )
            for i in range(len(SCORES))
        ]
        db.add_all([writer, *students])
        await db.flush()
        now = datetime.now(timezone.utc)
        requests = [
            NoteRequest(
                student_id=s.id, writer_id=writer.id, subject="Physics",
                topic="Optics", note_type="printed", pages=2,
                deadline=now + timedelta(days=1), delivery_location="Lab",
                status="completed", reference_files=[],
                created_at=now, updated_at=now,
            )
            for s in students
        ]
        db.add_all(requests)
        await db.commit()
        writer_id = writer.id
        claims = [
            (identity_of(s), r.id, score)
            for s, r, score in zip(students, requests, SCORES)
        ]

    async def rate(identity, request_id, score):
        async with file_factory() as session:
            return await ReputationService(session).rate(identity, request_id, score)

    await asyncio.gather(*(rate(*c) for c in claims))

    async with file_factory() as db:
        stored = await db.get(User, writer_id)
        assert stored.total_orders == len(SCORES)
        assert stored.rating == Decimal("4.20")
        ratings = await db.execute(select(Rating.id))
        assert len(ratings.scalars().all()) == len(SCORES)

"""Service test fixtures — async DB, seeded users, hub, blob store and HTTP client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db, get_blob_store, get_notification_hub and get_session_scope are overridden
      so routes and services share the test DB, a temp upload dir and a fresh hub
    - db_manager patched for code paths that use it directly (readiness probe)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific locking is exercised in test_accept_race with a file DB)
    - Users seeded directly through the ORM; tokens minted with the real provider
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from notehub.db.base import Base
from notehub.infrastructure.auth_provider import get_token_provider, hash_password
from notehub.infrastructure.blob_store import LocalBlobStore, get_blob_store
from notehub.infrastructure.database import (
    DatabaseSessionManager, get_db, get_session_scope,
)
from notehub.infrastructure.notification_hub import NotificationHub, get_notification_hub
from notehub.models.note_request import NoteRequest
from notehub.models.user import User
from notehub.services.accounts import identity_of
import notehub.infrastructure.database as db_module
from notehub.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def hub():
    return NotificationHub(queue_size=10)


@pytest.fixture
def blob_store(tmp_path):
    store = LocalBlobStore(str(tmp_path / "uploads"))
    store.ensure_root()
    return store


@pytest.fixture
async def client(test_engine, test_session_factory, hub, blob_store):
    """FastAPI test client with DB, hub and blob store dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_hub] = lambda: hub
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_session_scope] = lambda: test_session_factory

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed helpers ────────────────────────────────────────────────

@pytest.fixture
def make_user(test_db):
    async def _make(username: str, role: str, password: str = "secret123", **extra):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            **extra,
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user
    return _make


@pytest.fixture
async def student(make_user):
    return await make_user("stu", "student", phone="555-0100")


@pytest.fixture
async def writer(make_user):
    return await make_user("wri", "writer", phone="555-0200")


@pytest.fixture
async def other_writer(make_user):
    return await make_user("wri2", "writer")


@pytest.fixture
def make_request(test_db):
    """Insert a request directly, in any status."""
    async def _make(student, writer=None, status: str = "open", **extra):
        now = datetime.now(timezone.utc)
        fields = dict(
            student_id=student.id,
            writer_id=writer.id if writer else None,
            subject="Calculus",
            topic="Limits and continuity",
            note_type="handwritten",
            pages=4,
            deadline=now + timedelta(days=2),
            delivery_location="Library",
            amount=Decimal("10.00"),
            payment_type="paid",
            status=status,
            reference_files=[],
            created_at=now,
            updated_at=now,
        )
        fields.update(extra)
        request = NoteRequest(**fields)
        test_db.add(request)
        await test_db.commit()
        await test_db.refresh(request)
        return request
    return _make


def auth_headers(user: User) -> dict:
    token = get_token_provider().issue(identity_of(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers

"""
Shared test fixtures for the Attendance Tracker test suite.

Every test gets a fresh in-memory SQLite database (aiosqlite + StaticPool),
a pinned clock, and helpers to create users with real JWTs.
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import date, datetime, timedelta, timezone

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_tracker.api.v1.deps import get_db, get_now
from attendance_tracker.core.security import create_access_token
from attendance_tracker.db.base import Base
from attendance_tracker.main import app
from attendance_tracker.models.attendance import AttendanceRecord
from attendance_tracker.models.user import Role, User

# Monday
TODAY = date(2024, 3, 11)


class Clock:
    """Mutable "now" handed to the app through the get_now dependency."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def set(self, hour: int, minute: int = 0, second: int = 0, day: date = TODAY) -> datetime:
        self.now = datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=timezone.utc)
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test, wired into the app."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
def clock() -> Clock:
    c = Clock(datetime(2024, 3, 11, 9, 0, tzinfo=timezone.utc))
    app.dependency_overrides[get_now] = lambda: c.now
    yield c
    app.dependency_overrides.pop(get_now, None)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ── Users ───────────────────────────────────────────────────────────
def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


@pytest.fixture
def make_user(db_session: AsyncSession):
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        role: Role = Role.EMPLOYEE,
        department: str | None = "Engineering",
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=f"user{n}@example.com",
            hashed_password="not-a-real-hash",
            employee_id=f"{role.value[:3].upper()}{n:03d}",
            department=department,
            role=role.value,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
async def employee(make_user) -> User:
    return await make_user(name="John Doe")


@pytest.fixture
async def manager(make_user) -> User:
    return await make_user(name="Admin Manager", role=Role.MANAGER, department="Management")


@pytest.fixture
def employee_headers(employee) -> dict[str, str]:
    return auth_headers(employee)


@pytest.fixture
def manager_headers(manager) -> dict[str, str]:
    return auth_headers(manager)


@pytest.fixture
def add_record(db_session: AsyncSession):
    """Insert a record directly, bypassing the check-in rules."""

    async def _add(user: User, day: date, status: str, total_hours: float = 0.0) -> AttendanceRecord:
        check_in = None
        check_out = None
        if status != "absent":
            check_in = datetime(day.year, day.month, day.day, 9, 0, tzinfo=timezone.utc)
            if total_hours:
                check_out = check_in + timedelta(hours=total_hours)
        record = AttendanceRecord(
            user_id=user.id,
            date=day,
            check_in_time=check_in,
            check_out_time=check_out,
            status=status,
            total_hours=total_hours,
        )
        db_session.add(record)
        await db_session.commit()
        await db_session.refresh(record)
        return record

    return _add

"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite database file, so concurrent sessions contend
on real storage locks the same way concurrent requests do. The HTTP client
opens a fresh session per request, like get_db does in production.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ["REDIS_ENABLED"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./campustix_test_app.db")
os.environ["ADMIN_EMAILS"] = '["admin@college.edu"]'

from datetime import date, time, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campustix.main import app
from campustix.db.base import Base
from campustix.db.session import build_engine, get_db
from campustix.core.security import CurrentUser, create_access_token, hash_password
from campustix.models.user import User, ROLE_ADMIN, ROLE_STUDENT
from campustix.models.event import Event


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own test-database session."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_user(
    session_factory,
    email: str,
    name: str = "Test User",
    role: str = ROLE_STUDENT,
    password: str = "testpassword123",
) -> User:
    async with session_factory() as session:
        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role=role,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def create_event(
    session_factory,
    creator: User,
    total_tickets: int = 100,
    available_tickets: Optional[int] = None,
    title: str = "Spring Concert",
    category: Optional[str] = "music",
    days_ahead: int = 30,
) -> Event:
    async with session_factory() as session:
        event = Event(
            title=title,
            description="A test event",
            date=date.today() + timedelta(days=days_ahead),
            time_start=time(19, 0),
            time_end=time(22, 0),
            location="Main Hall",
            category=category,
            price=Decimal("15.00"),
            total_tickets=total_tickets,
            available_tickets=total_tickets if available_tickets is None else available_tickets,
            created_by=creator.id,
        )
        session.add(event)
        await session.commit()
        await session.refresh(event)
        return event


async def fetch_event(session_factory, event_id: int) -> Optional[Event]:
    """Read an event through a fresh session, bypassing any identity map."""
    async with session_factory() as session:
        return await session.get(Event, event_id)


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def as_current_user(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, role=user.role)


@pytest_asyncio.fixture
async def student(session_factory) -> User:
    return await create_user(session_factory, "student@college.edu", name="Sam Student")


@pytest_asyncio.fixture
async def other_student(session_factory) -> User:
    return await create_user(session_factory, "other@college.edu", name="Olive Other")


@pytest_asyncio.fixture
async def admin(session_factory) -> User:
    return await create_user(session_factory, "admin@college.edu", name="Ada Admin", role=ROLE_ADMIN)


@pytest_asyncio.fixture
async def student_headers(student: User) -> dict:
    return headers_for(student)


@pytest_asyncio.fixture
async def admin_headers(admin: User) -> dict:
    return headers_for(admin)


@pytest_asyncio.fixture
async def test_event(session_factory, admin: User) -> Event:
    """Published event with 100 tickets."""
    return await create_event(session_factory, admin, total_tickets=100)


@pytest_asyncio.fixture
async def sold_out_event(session_factory, admin: User) -> Event:
    """Published event with no tickets left."""
    return await create_event(
        session_factory, admin, total_tickets=50, available_tickets=0, title="Sold Out Show",
    )


def event_payload(**overrides) -> dict:
    payload = {
        "title": "Hack Night",
        "description": "Bring a laptop",
        "date": (date.today() + timedelta(days=14)).isoformat(),
        "time_start": "18:00",
        "time_end": "21:00",
        "location": "Lab 3",
        "category": "tech",
        "price": "0",
        "total_tickets": 50,
    }
    payload.update(overrides)
    return payload

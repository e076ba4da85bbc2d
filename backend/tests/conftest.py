"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh in-memory SQLite database (aiosqlite); the app's
`get_db` dependency is overridden to hand out the test session. Redis is
disabled so listings always hit the database.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from booknest.main import app
from booknest.db.base import Base
from booknest.db import session as session_module
from booknest.db.session import get_db
from booknest.core.security import create_access_token, hash_password
from booknest.models.enums import EventStatus, ReservationStatus, UserRole
from booknest.models.user import User
from booknest.models.event import Event
from booknest.models.reservation import Reservation

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

ADMIN_PASSWORD = "AdminPass123"
PARTICIPANT_PASSWORD = "UserPass123"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    @sa_event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def request_sessions(db_engine, monkeypatch) -> async_sessionmaker:
    """Point the real `get_db` at the test database."""
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(session_module, "AsyncSessionLocal", factory)
    return factory


@pytest_asyncio.fixture(scope="function")
async def committing_client(request_sessions) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client running each request in its own session through the real
    `get_db`: commit on success, rollback on error, after-commit callbacks.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _make_user(db: AsyncSession, email: str, password: str, role: UserRole, **fields) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        first_name=fields.get("first_name", "Test"),
        last_name=fields.get("last_name", "User"),
        role=role.value,
        is_active=fields.get("is_active", True),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", ADMIN_PASSWORD, UserRole.ADMIN,
                            first_name="Ada", last_name="Admin")


@pytest_asyncio.fixture
async def other_admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin2@example.com", ADMIN_PASSWORD, UserRole.ADMIN)


@pytest_asyncio.fixture
async def participant(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "alice@example.com", PARTICIPANT_PASSWORD, UserRole.PARTICIPANT,
                            first_name="Alice", last_name="Martin")


@pytest_asyncio.fixture
async def other_participant(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "bob@example.com", PARTICIPANT_PASSWORD, UserRole.PARTICIPANT,
                            first_name="Bob", last_name="Durand")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def other_admin_headers(other_admin: User) -> dict:
    return _headers_for(other_admin)


@pytest_asyncio.fixture
async def auth_headers(participant: User) -> dict:
    """Bearer headers for the default participant."""
    return _headers_for(participant)


@pytest_asyncio.fixture
async def other_headers(other_participant: User) -> dict:
    return _headers_for(other_participant)


async def _make_event(
    db: AsyncSession,
    owner: User,
    *,
    title: str = "Test Concert",
    days_ahead: int = 30,
    max_participants: int = 100,
    available_seats: int | None = None,
    status: EventStatus = EventStatus.PUBLISHED,
) -> Event:
    event = Event(
        title=title,
        description="A test event",
        date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
        location="Test Venue",
        max_participants=max_participants,
        available_seats=max_participants if available_seats is None else available_seats,
        status=status.value,
        created_by=owner.id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, admin_user: User) -> Event:
    """Published event with 100 seats, 30 days out."""
    return await _make_event(db_session, admin_user)


@pytest_asyncio.fixture
async def draft_event(db_session: AsyncSession, admin_user: User) -> Event:
    return await _make_event(db_session, admin_user, title="Draft Workshop", status=EventStatus.DRAFT)


@pytest_asyncio.fixture
async def past_event(db_session: AsyncSession, admin_user: User) -> Event:
    return await _make_event(db_session, admin_user, title="Last Year's Gala", days_ahead=-10)


@pytest_asyncio.fixture
async def sold_out_event(db_session: AsyncSession, admin_user: User) -> Event:
    """Published event with 0 available seats."""
    return await _make_event(
        db_session, admin_user, title="Sold Out Show", max_participants=50, available_seats=0
    )


@pytest.fixture
def make_event(db_session: AsyncSession, admin_user: User):
    async def factory(**kwargs) -> Event:
        return await _make_event(db_session, admin_user, **kwargs)
    return factory


@pytest.fixture
def make_reservation(db_session: AsyncSession):
    """
    Insert a reservation directly, debiting the event counter when the status
    holds seats, as the ledger would have.
    """
    async def factory(
        event: Event,
        user: User,
        seats: int = 1,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
    ) -> Reservation:
        reservation = Reservation(
            event_id=event.id,
            user_id=user.id,
            number_of_seats=seats,
            status=status.value,
        )
        db_session.add(reservation)
        if status in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            event.available_seats -= seats
        await db_session.commit()
        await db_session.refresh(reservation)
        await db_session.refresh(event)
        return reservation
    return factory

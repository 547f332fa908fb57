"""
tests/conftest.py
Shared fixtures: a fresh SQLite database per test, the ASGI client, and
ready-made family / pandit accounts.
"""

import os
import tempfile

# Settings are read at import time, so the environment must be in place first
_TMP_DIR = tempfile.mkdtemp(prefix="find-my-pandit-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from config.database import Base, get_db
from main import app
from shared.models.models import (
    Booking,
    BookingStatus,
    PanditProfile,
    PanditService,
    Service,
    User,
    UserRole,
)
from shared.utils.security import create_access_token, hash_password

TEST_PASSWORD = "secret123"


def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=str(user.id), role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


# ── Database ───────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/test.db", poolclass=NullPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Accounts ───────────────────────────────────────────────────────────────────

async def make_user(db: AsyncSession, email: str, role: UserRole, name: str = "Test User") -> User:
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        name=name,
        phone="9876543210",
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db: AsyncSession) -> User:
    """A FAMILY account."""
    return await make_user(db, "family@example.com", UserRole.FAMILY, name="Sharma Family")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    return await make_user(db, "neighbour@example.com", UserRole.FAMILY, name="Verma Family")


@pytest_asyncio.fixture
async def pandit_user(db: AsyncSession) -> User:
    return await make_user(db, "pandit@example.com", UserRole.PANDIT, name="Pandit Ramesh Shastri")


@pytest_asyncio.fixture
async def pandit_profile(db: AsyncSession, pandit_user: User) -> PanditProfile:
    profile = PanditProfile(
        user_id=pandit_user.id,
        bio="Vedic scholar from Varanasi",
        experience_years=15,
        languages=["Hindi", "Sanskrit"],
        specializations=["Griha Pravesh", "Wedding Ceremony"],
        price_min=Decimal("1100"),
        price_max=Decimal("5100"),
        city="Varanasi",
        state="Uttar Pradesh",
        pincode="221001",
    )
    db.add(profile)
    await db.commit()
    return profile


@pytest_asyncio.fixture
async def service(db: AsyncSession) -> Service:
    svc = Service(
        name="Griha Pravesh",
        name_hindi="गृह प्रवेश",
        category="Life Events",
        description="Housewarming ceremony for new home",
    )
    db.add(svc)
    await db.commit()
    return svc


@pytest_asyncio.fixture
async def offering(db: AsyncSession, pandit_profile: PanditProfile, service: Service) -> PanditService:
    item = PanditService(
        pandit_id=pandit_profile.id,
        service_id=service.id,
        price=Decimal("2100"),
        duration="2 hours",
    )
    db.add(item)
    await db.commit()
    return item


async def make_booking(
    db: AsyncSession,
    user: User,
    pandit: PanditProfile,
    service: Service,
    status: BookingStatus = BookingStatus.PENDING,
    booking_date: date = date(2026, 12, 1),
) -> Booking:
    booking = Booking(
        user_id=user.id,
        pandit_id=pandit.id,
        service_id=service.id,
        booking_date=booking_date,
        start_time="10:00",
        end_time="12:00",
        address="12 Assi Ghat Road",
        city="Varanasi",
        pincode="221005",
        total_amount=Decimal("2100"),
        status=status,
    )
    db.add(booking)
    await db.commit()
    return booking


@pytest_asyncio.fixture
async def booking(db: AsyncSession, user: User, pandit_profile: PanditProfile, service: Service) -> Booking:
    return await make_booking(db, user, pandit_profile, service)


@pytest_asyncio.fixture
async def completed_booking(
    db: AsyncSession, user: User, pandit_profile: PanditProfile, service: Service
) -> Booking:
    return await make_booking(db, user, pandit_profile, service, status=BookingStatus.COMPLETED)

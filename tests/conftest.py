import sys
import os
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import pytz
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, async_sessionmaker

# Ensure project root is on sys.path so `import studio` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from database.base import Base, create_engine
from database.models import Barber, Customer, Service
from database.repositories import BarberRepository, CustomerRepository, ServiceRepository
from studio.config import Settings


BERLIN = pytz.timezone("Europe/Berlin")

# 2030-01-07 is a Monday; Berlin is UTC+1 in January
MONDAY = date(2030, 1, 7)
SUNDAY = date(2030, 1, 6)


def berlin(day: date, hour: int, minute: int = 0) -> datetime:
    """Aware studio-local datetime."""
    return BERLIN.localize(datetime(day.year, day.month, day.day, hour, minute))


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a per-test SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'studio.db'}",
        timezone="Europe/Berlin",
        slot_interval_minutes=15,
        booking_timeout_seconds=5.0,
        log_dir=str(tmp_path / "logs"),
    )


@pytest_asyncio.fixture(scope="function")
async def async_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Engine built the way the app builds it (NullPool, serialized SQLite writes)."""
    engine = create_engine(settings)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory injected into services under test."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def sample_barber(session_maker) -> Barber:
    """Barber working Mondays 09:00-17:00."""
    async with session_maker() as session:
        repo = BarberRepository(session)
        barber = await repo.create(display_name="Mika", languages=["de", "en"])
        await repo.set_working_hours(barber.id, weekday=1, start_time="09:00", end_time="17:00")
        await session.commit()
    return barber


@pytest_asyncio.fixture
async def second_barber(session_maker) -> Barber:
    """Barber working Mondays 12:00-14:00."""
    async with session_maker() as session:
        repo = BarberRepository(session)
        barber = await repo.create(display_name="Anton", languages=["de"])
        await repo.set_working_hours(barber.id, weekday=1, start_time="12:00", end_time="14:00")
        await session.commit()
    return barber


@pytest_asyncio.fixture
async def sample_customer(session_maker) -> Customer:
    """Create sample customer for tests."""
    async with session_maker() as session:
        customer = await CustomerRepository(session).create(
            name="Lena Weber",
            email="lena@example.com",
            phone="+491701234567",
        )
        await session.commit()
    return customer


@pytest_asyncio.fixture
async def sample_services(session_maker) -> dict[str, Service]:
    """Haircut (45 min, 40.00) and beard trim (30 min, 35.00)."""
    async with session_maker() as session:
        repo = ServiceRepository(session)
        haircut = await repo.create(
            slug="haircut",
            duration_minutes=45,
            base_price=Decimal("40.00"),
            translations={"de": "Haarschnitt", "en": "Haircut"},
            display_order=1,
        )
        beard = await repo.create(
            slug="beard-trim",
            duration_minutes=30,
            base_price=Decimal("35.00"),
            translations={"de": "Bartpflege", "en": "Beard trim"},
            display_order=2,
        )
        await session.commit()
    return {"haircut": haircut, "beard": beard}

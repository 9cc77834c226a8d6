"""Database base configuration and session management."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy import BigInteger, DateTime, Integer, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy.types import TypeDecorator

from core.exceptions import StorageUnavailableError
from studio.config import Settings


# SQLite only autoincrements INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored as UTC.

    Naive values are treated as UTC on both bind and load, so backends without
    native timezone support (SQLite) compare and return the same instants.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def serialize_sqlite_transactions(engine: AsyncEngine) -> AsyncEngine:
    """
    Make every SQLite transaction take the write lock up front.

    The driver otherwise defers BEGIN until the first INSERT/UPDATE, and
    ``FOR UPDATE`` is not supported, so a conflict check could run outside
    any lock. With ``BEGIN IMMEDIATE`` a second writer waits at BEGIN and
    sees the first writer's committed rows.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_engine(settings: Settings) -> AsyncEngine:
    """Create async engine from settings."""
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        return serialize_sqlite_transactions(
            create_async_engine(url, echo=settings.debug, poolclass=NullPool)
        )
    if settings.debug:
        return create_async_engine(url, echo=settings.debug, poolclass=NullPool)
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def write_transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Session with an open transaction for write paths.

    Commits on success, rolls back on any exception. Connection-level
    failures surface as StorageUnavailableError instead of a silent no-op.
    """
    try:
        async with session_factory() as session:
            async with session.begin():
                yield session
    except (OperationalError, InterfaceError, OSError) as e:
        raise StorageUnavailableError() from e


@asynccontextmanager
async def read_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Session for lookups that have no sensible fallback value."""
    try:
        async with session_factory() as session:
            yield session
    except (OperationalError, InterfaceError, OSError) as e:
        raise StorageUnavailableError() from e


async def init_db(engine: AsyncEngine):
    """Initialize database - create all tables."""
    # Register mappers before create_all
    import database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine):
    """Close database connections."""
    await engine.dispose()

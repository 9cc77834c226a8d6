"""Studio entrypoint: booking API (aiohttp) with optional Telegram notifications."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from aiohttp import web
from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import close_db, create_engine, create_session_maker, init_db
from services.availability import AvailabilityService
from services.booking import BookingService
from services.lifecycle import AppointmentLifecycleService
from services.locks import BarberLockRegistry
from services.notifications import (
    LoggingNotificationSender,
    NotificationSender,
    TelegramNotificationSender,
)
from studio.config import Settings, get_settings
from studio.handlers import setup_routes
from studio.keys import (
    AVAILABILITY_KEY,
    BOOKING_KEY,
    CLOCK_KEY,
    LIFECYCLE_KEY,
    SESSION_FACTORY_KEY,
    SETTINGS_KEY,
)
from studio.logging_config import setup_logging
from studio.middlewares import admin_api_auth_middleware, error_middleware

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    notifier: Optional[NotificationSender] = None,
    clock: Callable[[], datetime] = utc_now,
) -> web.Application:
    """
    Assemble the aiohttp application around an existing session factory.

    Args:
        settings: Application settings
        session_factory: Factory for database sessions
        notifier: Booking confirmation sender, logging only when omitted
        clock: Source of "now" for hiding elapsed slots

    Returns:
        Configured application
    """
    app = web.Application(middlewares=[error_middleware, admin_api_auth_middleware])

    app[SETTINGS_KEY] = settings
    app[SESSION_FACTORY_KEY] = session_factory
    app[CLOCK_KEY] = clock
    app[AVAILABILITY_KEY] = AvailabilityService(
        session_factory,
        timezone=settings.timezone,
        interval_minutes=settings.slot_interval_minutes,
        lunch_break=settings.lunch_break,
    )
    # Booking and rescheduling serialize on the same per-barber locks
    locks = BarberLockRegistry()
    app[BOOKING_KEY] = BookingService(
        session_factory,
        locks=locks,
        notifier=notifier or LoggingNotificationSender(),
        timeout_seconds=settings.booking_timeout_seconds,
    )
    app[LIFECYCLE_KEY] = AppointmentLifecycleService(
        session_factory,
        locks=locks,
        timezone=settings.timezone,
    )

    setup_routes(app)
    return app


def build_notifier(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> tuple[NotificationSender, Optional[Bot]]:
    """Telegram sender when a bot and admin chat are configured, logging otherwise."""
    if not settings.telegram_bot_token or settings.telegram_admin_chat_id is None:
        logger.info("Telegram notifications disabled: bot token or admin chat not configured")
        return LoggingNotificationSender(), None

    bot = Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML)
    )
    sender = TelegramNotificationSender(
        bot,
        settings.telegram_admin_chat_id,
        session_factory,
        timezone=settings.timezone,
        locale=settings.default_locale,
    )
    return sender, bot


async def main():
    settings = get_settings()
    setup_logging(settings)

    engine = create_engine(settings)
    session_factory = create_session_maker(engine)
    await init_db(engine)

    notifier, bot = build_notifier(settings, session_factory)
    app = build_app(settings, session_factory, notifier)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.http_host, settings.http_port)
    await site.start()
    logger.info(f"Studio API listening on {settings.http_host}:{settings.http_port} ({settings.environment})")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        if bot is not None:
            await bot.session.close()
        await close_db(engine)
        logger.info("Studio API stopped")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()

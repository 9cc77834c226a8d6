"""Typed keys for objects stored on the aiohttp application."""
from datetime import datetime
from typing import Callable

from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.availability import AvailabilityService
from services.booking import BookingService
from services.lifecycle import AppointmentLifecycleService
from studio.config import Settings

SETTINGS_KEY = web.AppKey("settings", Settings)
SESSION_FACTORY_KEY = web.AppKey("session_factory", async_sessionmaker[AsyncSession])
AVAILABILITY_KEY = web.AppKey("availability", AvailabilityService)
BOOKING_KEY = web.AppKey("booking", BookingService)
LIFECYCLE_KEY = web.AppKey("lifecycle", AppointmentLifecycleService)
CLOCK_KEY = web.AppKey("clock", Callable[[], datetime])

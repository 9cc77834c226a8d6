"""Booking confirmation senders."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from html import escape

from aiogram import Bot
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.repositories import AppointmentRepository
from studio.utils.time_utils import get_timezone

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Announces committed bookings. Failures never affect the booking itself."""

    @abstractmethod
    async def send_booking_confirmation(self, appointment_id: int) -> None:
        ...


class LoggingNotificationSender(NotificationSender):
    """Used when no Telegram bot is configured."""

    async def send_booking_confirmation(self, appointment_id: int) -> None:
        logger.info(
            f"Booking confirmation for appointment {appointment_id} (no sender configured)",
            extra={"appointment_id": appointment_id},
        )


class TelegramNotificationSender(NotificationSender):
    """Posts new bookings to the studio admin chat."""

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        session_factory: async_sessionmaker[AsyncSession],
        timezone: str = "Europe/Berlin",
        locale: str = "de",
    ):
        self.bot = bot
        self.chat_id = chat_id
        self.session_factory = session_factory
        self.tz = get_timezone(timezone)
        self.locale = locale

    async def send_booking_confirmation(self, appointment_id: int) -> None:
        async with self.session_factory() as session:
            appointment = await AppointmentRepository(session).get_by_id(appointment_id, with_relations=True)
            if not appointment:
                logger.warning(
                    f"Appointment {appointment_id} vanished before confirmation",
                    extra={"appointment_id": appointment_id},
                )
                return
            text = self.format_message(appointment)

        await self.bot.send_message(chat_id=self.chat_id, text=text, parse_mode="HTML")
        logger.info(
            f"Confirmation for appointment {appointment_id} sent to chat {self.chat_id}",
            extra={"appointment_id": appointment_id},
        )

    def format_message(self, appointment) -> str:
        local_start = appointment.start_time.astimezone(self.tz)
        local_end = appointment.end_time.astimezone(self.tz)

        names = []
        for item in appointment.services:
            translation = item.service.translation(self.locale)
            names.append(escape(translation.name if translation else item.service.slug))

        return (
            f"✂️ <b>New booking #{appointment.id}</b>\n\n"
            f"📅 {local_start.strftime('%d.%m.%Y')} "
            f"<b>{local_start.strftime('%H:%M')}–{local_end.strftime('%H:%M')}</b>\n"
            f"💈 Barber: {escape(appointment.barber.display_name)}\n"
            f"👤 Customer: {escape(appointment.customer.name)}\n"
            f"📋 {', '.join(names)}\n"
            f"💰 {appointment.total_price} €"
        )

"""
Appointment lifecycle operations used by studio staff.

Status changes, rescheduling, bulk cancellation, time off and working
hours. Every operation except the cancellation count is a write path:
storage failures surface as ``StorageUnavailableError`` rather than falling
back to a default. Operations that move an appointment window take the
same per-barber lock as booking.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import AppointmentNotFoundError, InvalidRangeError, ValidationError
from database.base import read_session, write_transaction
from database.fallback import with_fallback
from database.models import Appointment, AppointmentStatus, TimeOff, WorkingHours
from database.repositories import AppointmentRepository
from services.locks import BarberLockRegistry
from services.use_cases import (
    AppointmentSnapshot,
    CancellationResult,
    CancelBarberAppointmentsUseCase,
    ChangeAppointmentDurationUseCase,
    CreateTimeOffUseCase,
    RescheduleAppointmentUseCase,
    SetWorkingHoursUseCase,
    UpdateAppointmentNotesUseCase,
    UpdateAppointmentStatusUseCase,
)
from studio.utils.time_utils import get_timezone, parse_time

logger = logging.getLogger(__name__)

__all__ = ["AppointmentLifecycleService", "AppointmentSnapshot", "CancellationResult"]


class AppointmentLifecycleService:
    """Administrative changes to appointments and barber schedules."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: Optional[BarberLockRegistry] = None,
        timezone: str = "Europe/Berlin",
    ):
        self.session_factory = session_factory
        self.locks = locks if locks is not None else BarberLockRegistry()
        self.tz = get_timezone(timezone)

    async def update_status(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        """
        Overwrite the status of an appointment.

        Any status may follow any other; restricting transitions is left to
        the caller.

        Raises:
            AppointmentNotFoundError: If appointment not found
        """
        async with write_transaction(self.session_factory) as session:
            appointment = await UpdateAppointmentStatusUseCase(session).execute(appointment_id, new_status)

        logger.info(
            f"Appointment {appointment_id} status set to {new_status.value}",
            extra={"appointment_id": appointment_id, "barber_id": appointment.barber_id},
        )
        return appointment

    async def _barber_of(self, appointment_id: int) -> int:
        async with read_session(self.session_factory) as session:
            appointment = await AppointmentRepository(session).get_by_id(appointment_id)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)
        return appointment.barber_id

    async def reschedule_appointment(
        self,
        appointment_id: int,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        barber_id: Optional[int] = None,
    ) -> Appointment:
        """
        Move an appointment, optionally to another barber.

        The new window must fall inside the target barber's working hours
        and must not overlap any of their other non-canceled appointments.

        Raises:
            AppointmentNotFoundError: If appointment not found
            BarberNotFoundError: If the target barber does not exist
            InvalidRangeError: If end is not after start
            OutsideWorkingHoursError: If the window leaves working hours
            SlotConflictError: If the window is taken
        """
        target = barber_id if barber_id is not None else await self._barber_of(appointment_id)

        async with self.locks.hold(target):
            async with write_transaction(self.session_factory) as session:
                appointment = await RescheduleAppointmentUseCase(session).execute(
                    appointment_id, start_time, end_time, barber_id=barber_id, tz=self.tz
                )

        logger.info(
            f"Appointment {appointment_id} moved to barber {appointment.barber_id} "
            f"at {appointment.start_time.isoformat()}",
            extra={"appointment_id": appointment_id, "barber_id": appointment.barber_id},
        )
        return appointment

    async def change_duration(self, appointment_id: int, duration_minutes: int) -> Appointment:
        """
        Keep the start and recompute the end from ``duration_minutes``.

        Raises:
            ValidationError: If the duration is not positive
            AppointmentNotFoundError: If appointment not found
            OutsideWorkingHoursError: If the new end passes closing time
            SlotConflictError: If the longer window hits another appointment
        """
        if duration_minutes <= 0:
            raise ValidationError("duration", "must be a positive number of minutes")

        barber_id = await self._barber_of(appointment_id)
        async with self.locks.hold(barber_id):
            async with write_transaction(self.session_factory) as session:
                appointment = await ChangeAppointmentDurationUseCase(session).execute(
                    appointment_id, duration_minutes, tz=self.tz
                )

        logger.info(
            f"Appointment {appointment_id} duration set to {duration_minutes} min",
            extra={"appointment_id": appointment_id, "barber_id": barber_id, "duration": duration_minutes},
        )
        return appointment

    async def update_notes(self, appointment_id: int, notes: Optional[str]) -> Appointment:
        """Replace appointment notes; empty notes clear them."""
        async with write_transaction(self.session_factory) as session:
            appointment = await UpdateAppointmentNotesUseCase(session).execute(appointment_id, notes)

        logger.info(f"Notes of appointment {appointment_id} updated", extra={"appointment_id": appointment_id})
        return appointment

    async def cancel_by_barber_and_date_range(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
    ) -> CancellationResult:
        """
        Cancel every active appointment of a barber starting within [start, end].

        Running it twice is harmless: the second call finds nothing to cancel.

        Returns:
            Count of canceled appointments and their state before cancellation
        """
        if end <= start:
            raise InvalidRangeError(start, end)

        async with write_transaction(self.session_factory) as session:
            result = await CancelBarberAppointmentsUseCase(session).execute(barber_id, start, end)

        logger.info(
            f"Canceled {result.canceled_count} appointments of barber {barber_id} "
            f"between {start.isoformat()} and {end.isoformat()}",
            extra={"barber_id": barber_id},
        )
        return result

    async def count_by_barber_and_date_range(self, barber_id: int, start: datetime, end: datetime) -> int:
        """
        Number of appointments ``cancel_by_barber_and_date_range`` would cancel.

        Read-only; returns 0 when storage is unreachable.
        """
        if end <= start:
            raise InvalidRangeError(start, end)

        async def query() -> int:
            async with self.session_factory() as session:
                return await AppointmentRepository(session).count_active_starting_between(barber_id, start, end)

        return await with_fallback(query, 0, label="count_by_barber_and_date_range")

    async def create_time_off(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        reason: Optional[str] = None,
    ) -> TimeOff:
        """Record time off. Appointments already inside the period stay booked."""
        if end <= start:
            raise InvalidRangeError(start, end)

        async with write_transaction(self.session_factory) as session:
            time_off = await CreateTimeOffUseCase(session).execute(barber_id, start, end, reason)

        logger.info(
            f"Time off {time_off.id} added for barber {barber_id}",
            extra={"barber_id": barber_id},
        )
        return time_off

    async def set_working_hours(self, barber_id: int, weekday: int, start: str, end: str) -> WorkingHours:
        """Create or replace hours for one weekday (0 = Sunday)."""
        if not 0 <= weekday <= 6:
            raise ValidationError("weekday", "must be between 0 (Sunday) and 6 (Saturday)")
        opens, closes = parse_time(start), parse_time(end)
        if closes <= opens:
            raise InvalidRangeError(start, end)
        start, end = opens.strftime("%H:%M"), closes.strftime("%H:%M")

        async with write_transaction(self.session_factory) as session:
            hours = await SetWorkingHoursUseCase(session).execute(barber_id, weekday, start, end)

        logger.info(
            f"Working hours of barber {barber_id} for weekday {weekday} set to {start}-{end}",
            extra={"barber_id": barber_id},
        )
        return hours

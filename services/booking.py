"""
Booking transaction: turn a customer request into a persisted appointment.

The conflict check and the insert run in one transaction while the barber is
locked twice over: the in-process ``asyncio.Lock`` and the database row lock.
Commit happens before either lock is released, so two overlapping requests
for one barber can never both succeed.
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.dto.appointments import CreateAppointmentDTO
from core.exceptions import BookingTimeoutError
from database.base import write_transaction
from database.models import Appointment
from services.locks import BarberLockRegistry
from services.notifications import LoggingNotificationSender, NotificationSender
from services.use_cases import CreateAppointmentUseCase, PrepareBookingUseCase

logger = logging.getLogger(__name__)


class BookingService:
    """Create appointments atomically and announce them."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: Optional[BarberLockRegistry] = None,
        notifier: Optional[NotificationSender] = None,
        timeout_seconds: float = 10.0,
    ):
        self.session_factory = session_factory
        self.locks = locks if locks is not None else BarberLockRegistry()
        self.notifier = notifier if notifier is not None else LoggingNotificationSender()
        self.timeout_seconds = timeout_seconds

    async def create_appointment(self, data: CreateAppointmentDTO) -> Appointment:
        """
        Book the requested services with a barber.

        Args:
            data: Validated booking request

        Returns:
            Committed appointment with its line items

        Raises:
            InvalidServiceSelectionError: Unknown, inactive or duplicate services
            BarberNotFoundError: Barber does not exist
            SlotConflictError: Window overlaps an existing non-canceled appointment
            BookingTimeoutError: Atomic section did not finish in time
            StorageUnavailableError: Database cannot be reached
        """
        async with write_transaction(self.session_factory) as session:
            quote = await PrepareBookingUseCase(session).execute(data)

        # Waiting for the lock and the check-and-insert share one deadline.
        # COMMIT runs outside it: once it starts, the outcome is reported as is.
        deadline = asyncio.get_running_loop().time() + self.timeout_seconds
        try:
            async with self.locks.hold(data.barber_id, deadline):
                async with write_transaction(self.session_factory) as session:
                    try:
                        async with asyncio.timeout_at(deadline):
                            appointment = await CreateAppointmentUseCase(session).execute(data, quote)
                    except TimeoutError as e:
                        raise self._timed_out(data) from e
        except TimeoutError as e:
            raise self._timed_out(data) from e

        logger.info(
            f"Appointment {appointment.id} booked for barber {appointment.barber_id} "
            f"at {appointment.start_time.isoformat()}",
            extra={
                "appointment_id": appointment.id,
                "barber_id": appointment.barber_id,
                "customer_id": appointment.customer_id,
                "duration": quote.duration_minutes,
            },
        )

        await self._notify(appointment.id)
        return appointment

    def _timed_out(self, data: CreateAppointmentDTO) -> BookingTimeoutError:
        logger.warning(
            f"Booking for barber {data.barber_id} timed out after {self.timeout_seconds}s",
            extra={"barber_id": data.barber_id, "customer_id": data.customer_id},
        )
        return BookingTimeoutError()

    async def _notify(self, appointment_id: int) -> None:
        try:
            await self.notifier.send_booking_confirmation(appointment_id)
        except Exception as e:
            # The booking is committed; a failed notification must not undo it
            logger.error(
                f"Failed to send confirmation for appointment {appointment_id}: {e}",
                exc_info=True,
                extra={"appointment_id": appointment_id},
            )

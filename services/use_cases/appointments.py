"""
Appointment use cases for business logic.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

import pytz

from database.repositories import AppointmentRepository, BarberRepository, ServiceRepository
from database.models import Appointment, AppointmentStatus, Service
from core.exceptions import (
    AppointmentNotFoundError,
    BarberNotFoundError,
    InvalidRangeError,
    InvalidServiceSelectionError,
    OutsideWorkingHoursError,
    SlotConflictError,
    ValidationError,
)
from core.dto.appointments import CreateAppointmentDTO
from services.use_cases.base import BaseUseCase
from studio.utils.time_utils import ensure_aware, studio_weekday, to_iso_utc, within_working_hours

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class BookingQuote:
    """Resolved services with the derived end time and snapshot price."""
    services: List[Service]
    start_time: datetime
    end_time: datetime
    total_price: Decimal

    @property
    def duration_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.services)


@dataclass(frozen=True)
class AppointmentSnapshot:
    """Pre-image of an appointment, detached from the session."""
    id: int
    customer_id: int
    barber_id: int
    start_time: datetime
    end_time: datetime
    status: str
    total_price: Decimal

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentSnapshot":
        return cls(
            id=appointment.id,
            customer_id=appointment.customer_id,
            barber_id=appointment.barber_id,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=appointment.status,
            total_price=appointment.total_price,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "barberId": self.barber_id,
            "startTime": to_iso_utc(self.start_time),
            "endTime": to_iso_utc(self.end_time),
            "status": self.status,
            "totalPrice": str(self.total_price),
        }


@dataclass
class CancellationResult:
    """Outcome of a bulk cancellation."""
    canceled_count: int
    appointments: List[AppointmentSnapshot]

    def to_dict(self) -> dict:
        return {
            "canceledCount": self.canceled_count,
            "appointments": [a.to_dict() for a in self.appointments],
        }


class PrepareBookingUseCase(BaseUseCase[BookingQuote]):
    """
    Resolve the selected services and derive end time and total price.

    Runs before the atomic section; nothing is written.
    """

    async def execute(self, data: CreateAppointmentDTO) -> BookingQuote:
        """
        Raises:
            InvalidServiceSelectionError: If the selection is empty, has
                duplicates, or names unknown or inactive services
        """
        requested = list(data.service_ids)
        if not requested or len(set(requested)) != len(requested):
            raise InvalidServiceSelectionError(requested)

        services = await ServiceRepository(self.session).get_active_by_ids(requested)
        by_id = {s.id: s for s in services}
        missing = [sid for sid in requested if sid not in by_id]
        if missing:
            raise InvalidServiceSelectionError(missing)

        ordered = [by_id[sid] for sid in requested]
        total_duration = sum(s.duration_minutes for s in ordered)
        total_price = sum((Decimal(s.base_price) for s in ordered), Decimal("0")).quantize(CENTS)

        return BookingQuote(
            services=ordered,
            start_time=data.start_time,
            end_time=data.start_time + timedelta(minutes=total_duration),
            total_price=total_price,
        )


class CreateAppointmentUseCase(BaseUseCase[Appointment]):
    """
    Conflict check and insert. Must run inside the caller's transaction while
    the barber lock is held.
    """

    async def execute(self, data: CreateAppointmentDTO, quote: BookingQuote) -> Appointment:
        """
        Create appointment with its line items.

        Raises:
            BarberNotFoundError: If barber not found
            SlotConflictError: If the window overlaps a non-canceled appointment
        """
        brepo = BarberRepository(self.session)
        arepo = AppointmentRepository(self.session)

        # Row lock serializes bookings for this barber across processes
        barber = await brepo.get_for_update(data.barber_id)
        if not barber:
            raise BarberNotFoundError(data.barber_id)

        conflict = await arepo.find_conflict(data.barber_id, quote.start_time, quote.end_time)
        if conflict:
            raise SlotConflictError(
                barber_id=data.barber_id,
                start_time=quote.start_time,
                end_time=quote.end_time,
            )

        return await arepo.create(
            customer_id=data.customer_id,
            barber_id=data.barber_id,
            start_time=quote.start_time,
            end_time=quote.end_time,
            services=quote.services,
            total_price=quote.total_price,
            notes=data.notes,
        )


class UpdateAppointmentStatusUseCase(BaseUseCase[Appointment]):
    """
    Overwrite an appointment status.

    No transition graph is enforced; callers gate business rules.
    """

    async def execute(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        appointment = await AppointmentRepository(self.session).update_status(appointment_id, status)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)
        return appointment


class CancelBarberAppointmentsUseCase(BaseUseCase[CancellationResult]):
    """
    Cancel every non-canceled appointment of a barber starting in [start, end].
    """

    async def execute(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
    ) -> CancellationResult:
        """
        Returns:
            Count of appointments changed and their pre-images

        Raises:
            InvalidRangeError: If end is not after start
        """
        if end <= start:
            raise InvalidRangeError(start, end)

        arepo = AppointmentRepository(self.session)
        affected = await arepo.get_active_starting_between(barber_id, start, end)
        snapshots = [AppointmentSnapshot.from_model(a) for a in affected]

        canceled = await arepo.cancel_many(affected)
        return CancellationResult(canceled_count=canceled, appointments=snapshots)


async def ensure_within_working_hours(
    brepo: BarberRepository,
    barber_id: int,
    start: datetime,
    end: datetime,
    tz=pytz.utc,
) -> None:
    """
    Raises:
        OutsideWorkingHoursError: If the barber has no hours that weekday or
            the window leaves them
    """
    weekday = studio_weekday(ensure_aware(start).astimezone(tz).date())
    hours = await brepo.get_working_hours(barber_id, weekday)
    if not hours:
        raise OutsideWorkingHoursError(barber_id)
    if not within_working_hours(start, end, hours.start_time, hours.end_time, tz):
        raise OutsideWorkingHoursError(barber_id, hours.start_time, hours.end_time)


class RescheduleAppointmentUseCase(BaseUseCase[Appointment]):
    """
    Move an appointment to a new window, optionally with another barber.

    Must run inside the caller's transaction while the target barber's lock
    is held. Line items and the booked price are kept.
    """

    async def execute(
        self,
        appointment_id: int,
        start_time: datetime,
        end_time: Optional[datetime] = None,
        barber_id: Optional[int] = None,
        tz=pytz.utc,
    ) -> Appointment:
        """
        Args:
            appointment_id: Appointment to move
            start_time: New start
            end_time: New end; keeps the current duration when None
            barber_id: New barber; keeps the current one when None
            tz: Studio timezone for the working hours check

        Raises:
            AppointmentNotFoundError: If appointment not found
            BarberNotFoundError: If the target barber does not exist
            InvalidRangeError: If end is not after start
            OutsideWorkingHoursError: If the window is outside working hours
            SlotConflictError: If the window overlaps another appointment
        """
        arepo = AppointmentRepository(self.session)
        brepo = BarberRepository(self.session)

        appointment = await arepo.get_by_id(appointment_id)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)

        target = barber_id if barber_id is not None else appointment.barber_id
        if end_time is None:
            end_time = start_time + (appointment.end_time - appointment.start_time)
        if end_time <= start_time:
            raise InvalidRangeError(start_time, end_time)

        if not await brepo.get_for_update(target):
            raise BarberNotFoundError(target)
        await ensure_within_working_hours(brepo, target, start_time, end_time, tz)

        conflict = await arepo.find_conflict(target, start_time, end_time, exclude_id=appointment.id)
        if conflict:
            raise SlotConflictError(barber_id=target, start_time=start_time, end_time=end_time)

        return await arepo.move(appointment, target, start_time, end_time)


class ChangeAppointmentDurationUseCase(BaseUseCase[Appointment]):
    """
    Keep the start, set a new end from a duration.

    Same locking contract as rescheduling.
    """

    async def execute(self, appointment_id: int, duration_minutes: int, tz=pytz.utc) -> Appointment:
        if duration_minutes <= 0:
            raise ValidationError("duration", "must be a positive number of minutes")

        arepo = AppointmentRepository(self.session)
        brepo = BarberRepository(self.session)

        appointment = await arepo.get_by_id(appointment_id)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)

        start_time = appointment.start_time
        end_time = start_time + timedelta(minutes=duration_minutes)

        await brepo.get_for_update(appointment.barber_id)
        await ensure_within_working_hours(brepo, appointment.barber_id, start_time, end_time, tz)

        conflict = await arepo.find_conflict(appointment.barber_id, start_time, end_time, exclude_id=appointment.id)
        if conflict:
            raise SlotConflictError(barber_id=appointment.barber_id, start_time=start_time, end_time=end_time)

        return await arepo.move(appointment, appointment.barber_id, start_time, end_time)


class UpdateAppointmentNotesUseCase(BaseUseCase[Appointment]):
    """Replace the free-text notes of an appointment."""

    async def execute(self, appointment_id: int, notes: Optional[str]) -> Appointment:
        appointment = await AppointmentRepository(self.session).update_notes(appointment_id, notes)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)
        return appointment


def appointment_to_dict(appointment: Appointment) -> dict:
    """JSON-ready view of an appointment."""
    return {
        "id": appointment.id,
        "customerId": appointment.customer_id,
        "barberId": appointment.barber_id,
        "startTime": to_iso_utc(appointment.start_time),
        "endTime": to_iso_utc(appointment.end_time),
        "status": appointment.status,
        "totalPrice": str(appointment.total_price),
        "notes": appointment.notes,
        "services": [
            {
                "serviceId": item.service_id,
                "order": item.order_index,
                "price": str(item.effective_price),
                "priceOverride": str(item.price_override) if item.price_override is not None else None,
            }
            for item in appointment.services
        ],
    }

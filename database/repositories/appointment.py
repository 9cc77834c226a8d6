"""Appointment repository for database operations."""
from typing import Optional, List, Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from database.models import Appointment, AppointmentService, AppointmentStatus, Service
from database.repositories.base import BaseRepository


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository for Appointment model operations."""

    model_class = Appointment

    async def get_by_id(
        self,
        appointment_id: int,
        with_relations: bool = False
    ) -> Optional[Appointment]:
        """Get appointment by ID."""
        query = select(Appointment).where(Appointment.id == appointment_id)

        if with_relations:
            query = query.options(
                selectinload(Appointment.customer),
                selectinload(Appointment.barber),
                selectinload(Appointment.services).selectinload(AppointmentService.service),
            )

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_overlapping(
        self,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
    ) -> List[Appointment]:
        """Get non-canceled appointments of a barber intersecting [start_time, end_time)."""
        result = await self.session.execute(
            select(Appointment)
            .where(
                Appointment.barber_id == barber_id,
                Appointment.status != AppointmentStatus.CANCELED.value,
                Appointment.start_time < end_time,
                Appointment.end_time > start_time,
            )
            .order_by(Appointment.start_time)
        )
        return list(result.scalars().all())

    async def find_conflict(
        self,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """First non-canceled appointment overlapping the window, if any.

        Back-to-back bookings touching at a boundary do not conflict.
        ``exclude_id`` skips the appointment being moved or resized.
        """
        query = select(Appointment).where(
            Appointment.barber_id == barber_id,
            Appointment.status != AppointmentStatus.CANCELED.value,
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.where(Appointment.id != exclude_id)

        result = await self.session.execute(query.order_by(Appointment.start_time).limit(1))
        return result.scalars().first()

    async def get_active_starting_between(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
    ) -> List[Appointment]:
        """Get non-canceled appointments with start_time in [start, end]."""
        result = await self.session.execute(
            select(Appointment)
            .where(
                Appointment.barber_id == barber_id,
                Appointment.status != AppointmentStatus.CANCELED.value,
                Appointment.start_time >= start,
                Appointment.start_time <= end,
            )
            .order_by(Appointment.start_time)
        )
        return list(result.scalars().all())

    async def count_active_starting_between(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
    ) -> int:
        """Count non-canceled appointments with start_time in [start, end]."""
        result = await self.session.execute(
            select(func.count(Appointment.id)).where(
                Appointment.barber_id == barber_id,
                Appointment.status != AppointmentStatus.CANCELED.value,
                Appointment.start_time >= start,
                Appointment.start_time <= end,
            )
        )
        return result.scalar_one()

    async def get_by_barber(
        self,
        barber_id: int,
        status: Optional[AppointmentStatus] = None,
    ) -> List[Appointment]:
        """Get appointments of a barber, optionally filtered by status."""
        query = select(Appointment).where(Appointment.barber_id == barber_id)

        if status:
            query = query.where(Appointment.status == status.value)

        result = await self.session.execute(query.order_by(Appointment.start_time))
        return list(result.scalars().all())

    async def create(
        self,
        customer_id: int,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
        services: Sequence[Service],
        total_price: Decimal,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Create appointment with one line item per service, in the given order."""
        appointment = Appointment(
            customer_id=customer_id,
            barber_id=barber_id,
            start_time=start_time,
            end_time=end_time,
            total_price=total_price,
            notes=notes,
            status=AppointmentStatus.BOOKED.value,
            services=[
                AppointmentService(
                    service_id=service.id,
                    base_price=service.base_price,
                    price_override=None,
                    order_index=index,
                )
                for index, service in enumerate(services)
            ],
        )

        self.session.add(appointment)
        await self.session.flush()
        return appointment

    async def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
    ) -> Optional[Appointment]:
        """Update appointment status."""
        appointment = await self.get_by_id(appointment_id)
        if appointment:
            appointment.status = status.value
            await self.session.flush()
        return appointment

    async def move(
        self,
        appointment: Appointment,
        barber_id: int,
        start_time: datetime,
        end_time: datetime,
    ) -> Appointment:
        """Change barber and window. Line items and price stay as booked."""
        appointment.barber_id = barber_id
        appointment.start_time = start_time
        appointment.end_time = end_time
        await self.session.flush()
        return appointment

    async def update_notes(self, appointment_id: int, notes: Optional[str]) -> Optional[Appointment]:
        """Replace appointment notes; blank notes are stored as NULL."""
        appointment = await self.get_by_id(appointment_id)
        if appointment:
            appointment.notes = notes or None
            await self.session.flush()
        return appointment

    async def cancel_many(self, appointments: Sequence[Appointment]) -> int:
        """Mark the given appointments as canceled, skipping ones already canceled."""
        canceled = 0
        for appointment in appointments:
            if appointment.status != AppointmentStatus.CANCELED.value:
                appointment.status = AppointmentStatus.CANCELED.value
                canceled += 1

        if canceled:
            await self.session.flush()
        return canceled

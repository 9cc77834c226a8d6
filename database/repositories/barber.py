"""Barber repository for database operations."""
from typing import Optional, List, Iterable
from datetime import datetime

from sqlalchemy import select

from database.models import Barber, WorkingHours, TimeOff
from database.repositories.base import BaseRepository


class BarberRepository(BaseRepository[Barber]):
    """Repository for Barber, WorkingHours and TimeOff operations."""

    model_class = Barber

    async def get_for_update(self, barber_id: int) -> Optional[Barber]:
        """Get barber and hold a row lock until the transaction ends."""
        result = await self.session.execute(
            select(Barber).where(Barber.id == barber_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_active(self) -> List[Barber]:
        """Get active barbers ordered by display name."""
        result = await self.session.execute(
            select(Barber)
            .where(Barber.is_active == True)  # noqa: E712
            .order_by(Barber.display_name, Barber.id)
        )
        return list(result.scalars().all())

    async def create(
        self,
        display_name: str,
        languages: Optional[Iterable[str]] = None,
        bio: Optional[str] = None,
        is_active: bool = True,
    ) -> Barber:
        """Create new barber."""
        barber = Barber(
            display_name=display_name,
            languages=sorted(set(languages or [])),
            bio=bio,
            is_active=is_active,
        )
        self.session.add(barber)
        await self.session.flush()
        return barber

    # ========== Working hours ==========

    async def get_working_hours(self, barber_id: int, weekday: int) -> Optional[WorkingHours]:
        """Get working hours of a barber for a weekday (0 = Sunday)."""
        result = await self.session.execute(
            select(WorkingHours).where(
                WorkingHours.barber_id == barber_id,
                WorkingHours.weekday == weekday,
            )
        )
        return result.scalar_one_or_none()

    async def get_all_working_hours(self, barber_id: int) -> List[WorkingHours]:
        """Get the full weekly schedule of a barber."""
        result = await self.session.execute(
            select(WorkingHours)
            .where(WorkingHours.barber_id == barber_id)
            .order_by(WorkingHours.weekday)
        )
        return list(result.scalars().all())

    async def set_working_hours(
        self,
        barber_id: int,
        weekday: int,
        start_time: str,
        end_time: str,
    ) -> WorkingHours:
        """Create or replace working hours for one weekday."""
        hours = await self.get_working_hours(barber_id, weekday)
        if hours:
            hours.start_time = start_time
            hours.end_time = end_time
        else:
            hours = WorkingHours(
                barber_id=barber_id,
                weekday=weekday,
                start_time=start_time,
                end_time=end_time,
            )
            self.session.add(hours)
        await self.session.flush()
        return hours

    # ========== Time off ==========

    async def get_time_offs_overlapping(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
    ) -> List[TimeOff]:
        """Get time-off periods intersecting [start, end)."""
        result = await self.session.execute(
            select(TimeOff)
            .where(
                TimeOff.barber_id == barber_id,
                TimeOff.start_datetime < end,
                TimeOff.end_datetime > start,
            )
            .order_by(TimeOff.start_datetime)
        )
        return list(result.scalars().all())

    async def create_time_off(
        self,
        barber_id: int,
        start_datetime: datetime,
        end_datetime: datetime,
        reason: Optional[str] = None,
    ) -> TimeOff:
        """Create time-off entry."""
        time_off = TimeOff(
            barber_id=barber_id,
            start_datetime=start_datetime,
            end_datetime=end_datetime,
            reason=reason,
        )
        self.session.add(time_off)
        await self.session.flush()
        return time_off

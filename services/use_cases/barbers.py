"""
Barber schedule use cases.
"""
from datetime import datetime
from typing import Optional

from database.repositories import BarberRepository
from database.models import TimeOff, WorkingHours
from core.exceptions import BarberNotFoundError, InvalidRangeError
from services.use_cases.base import BaseUseCase


class CreateTimeOffUseCase(BaseUseCase[TimeOff]):
    """
    Record an unavailability period for a barber.

    Existing appointments inside the period are left untouched.
    """

    async def execute(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        reason: Optional[str] = None,
    ) -> TimeOff:
        """
        Raises:
            InvalidRangeError: If end is not after start
            BarberNotFoundError: If barber not found
        """
        if end <= start:
            raise InvalidRangeError(start, end)

        brepo = BarberRepository(self.session)
        if not await brepo.exists(barber_id):
            raise BarberNotFoundError(barber_id)

        return await brepo.create_time_off(barber_id, start, end, reason)


class SetWorkingHoursUseCase(BaseUseCase[WorkingHours]):
    """Create or replace a barber's hours for one weekday."""

    async def execute(self, barber_id: int, weekday: int, start: str, end: str) -> WorkingHours:
        brepo = BarberRepository(self.session)
        if not await brepo.exists(barber_id):
            raise BarberNotFoundError(barber_id)

        return await brepo.set_working_hours(barber_id, weekday, start, end)

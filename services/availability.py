"""
Availability calculation: bookable slots and calendar day status.

All operations are read-only and advisory. The authoritative conflict check
happens again inside the booking transaction, so stale data here can only
show a slot as free that then fails with a conflict at booking time.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import InvalidRangeError, ValidationError
from database.fallback import with_fallback
from database.models import Appointment, Barber, TimeOff
from database.repositories import AppointmentRepository, BarberRepository, ServiceRepository
from studio.utils.time_utils import (
    SUNDAY,
    DayStatus,
    build_day_slots,
    day_bounds,
    day_status,
    get_timezone,
    intervals_overlap,
    iter_days,
    localize,
    next_interval_boundary,
    parse_time,
    slot_overlaps_appointment,
    studio_weekday,
    to_iso_utc,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    """Candidate booking window."""
    start: datetime
    end: datetime
    available: bool

    def to_dict(self) -> dict:
        return {
            "start": to_iso_utc(self.start),
            "end": to_iso_utc(self.end),
            "available": self.available,
        }


@dataclass
class BarberSlots:
    """Slots of one barber for one day."""
    barber_id: int
    display_name: str
    slots: List[TimeSlot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "barberId": self.barber_id,
            "displayName": self.display_name,
            "slots": [s.to_dict() for s in self.slots],
        }


@dataclass
class BarberSchedule:
    """Everything slot computation needs about one barber over a date range."""
    barber_id: int
    hours: Dict[int, Tuple[str, str]]
    appointments: Sequence[Appointment]
    time_offs: Sequence[TimeOff]


class AvailabilityService:
    """Compute slots and day status from working hours, appointments and time off."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timezone: str = "Europe/Berlin",
        interval_minutes: int = 15,
        lunch_break: Optional[Tuple[str, str]] = None,
    ):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.session_factory = session_factory
        self.tz = get_timezone(timezone)
        self.interval_minutes = interval_minutes
        self.lunch_break = (parse_time(lunch_break[0]), parse_time(lunch_break[1])) if lunch_break else None

    # ========== Pure computation ==========

    def compute_day_slots(
        self,
        schedule: BarberSchedule,
        day: date,
        duration_minutes: int,
        interval_minutes: int,
        now: Optional[datetime] = None,
    ) -> List[TimeSlot]:
        """Slots for one barber and day from an already loaded schedule."""
        window = schedule.hours.get(studio_weekday(day))
        if not window:
            return []

        start_hhmm, end_hhmm = window
        opening = localize(day, parse_time(start_hhmm), self.tz)
        close = localize(day, parse_time(end_hhmm), self.tz)
        duration = timedelta(minutes=duration_minutes)
        cutoff = next_interval_boundary(now, interval_minutes, self.tz, origin=opening) if now else None

        lunch = None
        if self.lunch_break:
            lunch = (localize(day, self.lunch_break[0], self.tz), localize(day, self.lunch_break[1], self.tz))

        slots = []
        for start in build_day_slots(day, start_hhmm, end_hhmm, interval_minutes, self.tz):
            if lunch and lunch[0] <= start < lunch[1]:
                continue

            end = self.tz.normalize(start + duration)
            # Service must fit entirely inside working hours
            if end > close:
                continue

            busy = any(slot_overlaps_appointment(start, end, a) for a in schedule.appointments) or any(
                intervals_overlap(start, end, t.start_datetime, t.end_datetime) for t in schedule.time_offs
            )
            is_past = cutoff is not None and start < cutoff
            slots.append(TimeSlot(start=start, end=end, available=not busy and not is_past))

        return slots

    # ========== Loading ==========

    async def _load_schedule(
        self,
        session: AsyncSession,
        barber_id: int,
        first_day: date,
        last_day: date,
    ) -> BarberSchedule:
        brepo = BarberRepository(session)
        arepo = AppointmentRepository(session)

        window_start = day_bounds(first_day, self.tz)[0]
        window_end = day_bounds(last_day, self.tz)[1]

        hours = await brepo.get_all_working_hours(barber_id)
        appointments = await arepo.get_overlapping(barber_id, window_start, window_end)
        time_offs = await brepo.get_time_offs_overlapping(barber_id, window_start, window_end)

        return BarberSchedule(
            barber_id=barber_id,
            hours={h.weekday: (h.start_time, h.end_time) for h in hours},
            appointments=appointments,
            time_offs=time_offs,
        )

    async def _active_barbers_for_service(self, session: AsyncSession, service_id: int) -> List[Barber]:
        service = await ServiceRepository(session).get_by_id(service_id)
        if not service or not service.is_active:
            logger.info(f"Service {service_id} is unknown or inactive, no availability")
            return []

        barbers = await BarberRepository(session).get_active()
        return sorted(barbers, key=lambda b: (b.display_name.casefold(), b.id))

    def _check_params(self, duration_minutes: int, interval_minutes: int) -> None:
        if duration_minutes <= 0:
            raise ValidationError("duration", "must be a positive number of minutes")
        if interval_minutes <= 0:
            raise ValidationError("interval", "must be a positive number of minutes")

    # ========== Public operations ==========

    async def generate_slots(
        self,
        barber_id: int,
        day: date,
        duration_minutes: int,
        interval_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[TimeSlot]:
        """
        All slots (available and not) for a barber on a day.

        Args:
            barber_id: Barber ID
            day: Studio calendar day
            duration_minutes: Total duration of the selected services
            interval_minutes: Grid step, defaults to the configured interval
            now: When given, slots before the next grid boundary are unavailable

        Returns:
            Slots in ascending start order; empty when the barber does not work that day
        """
        interval = self.interval_minutes if interval_minutes is None else interval_minutes
        self._check_params(duration_minutes, interval)

        async def query() -> List[TimeSlot]:
            async with self.session_factory() as session:
                schedule = await self._load_schedule(session, barber_id, day, day)
            return self.compute_day_slots(schedule, day, duration_minutes, interval, now)

        return await with_fallback(query, [], label="generate_slots")

    async def generate_slots_for_service(
        self,
        service_id: int,
        day: date,
        duration_minutes: int,
        interval_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[BarberSlots]:
        """Slots of every active barber, ordered by display name, empty lists included."""
        interval = self.interval_minutes if interval_minutes is None else interval_minutes
        self._check_params(duration_minutes, interval)

        async def query() -> List[BarberSlots]:
            results = []
            async with self.session_factory() as session:
                for barber in await self._active_barbers_for_service(session, service_id):
                    schedule = await self._load_schedule(session, barber.id, day, day)
                    results.append(BarberSlots(
                        barber_id=barber.id,
                        display_name=barber.display_name,
                        slots=self.compute_day_slots(schedule, day, duration_minutes, interval, now),
                    ))
            return results

        return await with_fallback(query, [], label="generate_slots_for_service")

    async def check_availability_for_date_range(
        self,
        service_id: int,
        range_start: date,
        range_end: date,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> Dict[str, DayStatus]:
        """
        Day status across all active barbers for the closed range.

        A day is available if any barber has at least one available slot.
        This view has no notion of "today"; pass ``now`` to make elapsed
        slots (and therefore past days) unavailable.
        """
        self._check_params(duration_minutes, self.interval_minutes)
        if range_end < range_start:
            raise InvalidRangeError(range_start, range_end)

        async def query() -> Dict[str, DayStatus]:
            async with self.session_factory() as session:
                barbers = await self._active_barbers_for_service(session, service_id)
                schedules = [
                    await self._load_schedule(session, b.id, range_start, range_end)
                    for b in barbers
                ]

            availability = {}
            for day in iter_days(range_start, range_end):
                if studio_weekday(day) == SUNDAY:
                    availability[day.isoformat()] = DayStatus.SUNDAY
                    continue
                has_free_slot = any(
                    any(slot.available for slot in self.compute_day_slots(
                        schedule, day, duration_minutes, self.interval_minutes, now
                    ))
                    for schedule in schedules
                )
                availability[day.isoformat()] = DayStatus.AVAILABLE if has_free_slot else DayStatus.BOOKED
            return availability

        return await with_fallback(query, {}, label="check_availability_for_date_range")

    async def check_barber_availability_for_date_range(
        self,
        barber_id: int,
        range_start: date,
        range_end: date,
        duration_minutes: int,
        today: date,
        now: Optional[datetime] = None,
    ) -> Dict[str, DayStatus]:
        """Single-barber calendar view including the ``past`` status."""
        self._check_params(duration_minutes, self.interval_minutes)
        if range_end < range_start:
            raise InvalidRangeError(range_start, range_end)

        async def query() -> Dict[str, DayStatus]:
            async with self.session_factory() as session:
                schedule = await self._load_schedule(session, barber_id, range_start, range_end)

            availability = {}
            for day in iter_days(range_start, range_end):
                slots = self.compute_day_slots(schedule, day, duration_minutes, self.interval_minutes, now)
                availability[day.isoformat()] = day_status(
                    day,
                    studio_weekday(day),
                    is_before_today=day < today,
                    has_any_overlap=not any(s.available for s in slots),
                )
            return availability

        return await with_fallback(query, {}, label="check_barber_availability_for_date_range")

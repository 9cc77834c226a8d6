"""Time utilities for slot generation and calendar day status.

Everything here is pure: no storage access, no clock reads. Weekdays follow
the studio convention 0 = Sunday ... 6 = Saturday.
"""
import calendar
import math
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterator, Optional, Tuple

import pytz

from core.exceptions import InvalidTimeError
from database.models.appointment import AppointmentStatus

SUNDAY = 0


class DayStatus(str, Enum):
    """Calendar day classification."""
    AVAILABLE = "available"
    BOOKED = "booked"
    SUNDAY = "sunday"
    PAST = "past"


def parse_time(time_str: str) -> time:
    """Parse time string in format HH:MM."""
    try:
        hour, minute = map(int, time_str.split(':'))
        return time(hour, minute)
    except (ValueError, AttributeError, TypeError):
        raise InvalidTimeError(str(time_str))


def get_timezone(name: str):
    """pytz timezone by name."""
    return pytz.timezone(name)


def studio_weekday(day: date) -> int:
    """Weekday number with Sunday as 0."""
    return (day.weekday() + 1) % 7


def localize(day: date, at: time, tz=pytz.utc) -> datetime:
    """Aware datetime for a wall-clock time on a studio day."""
    return tz.localize(datetime.combine(day, at))


def day_bounds(day: date, tz=pytz.utc) -> Tuple[datetime, datetime]:
    """Aware [start, end) of a studio calendar day."""
    return localize(day, time(0, 0), tz), localize(day + timedelta(days=1), time(0, 0), tz)


def ensure_aware(dt: datetime, tz=pytz.utc) -> datetime:
    """Treat naive datetimes as studio-local time."""
    if dt.tzinfo is None:
        return tz.localize(dt)
    return dt


def to_iso_utc(dt: datetime) -> str:
    """ISO-8601 string in UTC with explicit offset."""
    return ensure_aware(dt).astimezone(pytz.utc).isoformat()


class DaySlots:
    """Restartable iterable of slot start times for one day.

    Steps in wall-clock time and localizes each start, so a DST switch inside
    the working window does not shift the grid.
    """

    def __init__(self, day: date, start: time, end: time, interval_minutes: int, tz=pytz.utc):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.day = day
        self.start = start
        self.end = end
        self.step = timedelta(minutes=interval_minutes)
        self.tz = tz

    def __iter__(self) -> Iterator[datetime]:
        current = datetime.combine(self.day, self.start)
        end = datetime.combine(self.day, self.end)
        while current < end:
            yield self.tz.localize(current)
            current += self.step

    def __repr__(self) -> str:
        return f"<DaySlots({self.day} {self.start}-{self.end} step={self.step})>"


def build_day_slots(
    day: date,
    start_hhmm: str,
    end_hhmm: str,
    interval_minutes: int,
    tz=pytz.utc,
) -> DaySlots:
    """Slot starts from day@start (inclusive) to day@end (exclusive)."""
    return DaySlots(day, parse_time(start_hhmm), parse_time(end_hhmm), interval_minutes, tz)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """Half-open interval overlap: touching boundaries do not overlap."""
    return a_start < b_end and a_end > b_start


def slot_overlaps_appointment(slot_start: datetime, slot_end: datetime, appointment) -> bool:
    """True if the slot intersects a non-canceled appointment."""
    if appointment.status == AppointmentStatus.CANCELED.value:
        return False
    return intervals_overlap(slot_start, slot_end, appointment.start_time, appointment.end_time)


def day_status(
    day: date,
    weekday: Optional[int],
    is_before_today: bool,
    has_any_overlap: bool,
) -> DayStatus:
    """
    Classify a calendar day.

    Priority: Sunday, then past, then booked, then available. Sunday wins
    even if working hours exist for it.

    Args:
        day: Day being classified
        weekday: Studio weekday (0 = Sunday); derived from ``day`` when None
        is_before_today: Day lies strictly before today
        has_any_overlap: No bookable slot is left that day
    """
    if weekday is None:
        weekday = studio_weekday(day)
    if weekday == SUNDAY:
        return DayStatus.SUNDAY
    if is_before_today:
        return DayStatus.PAST
    if has_any_overlap:
        return DayStatus.BOOKED
    return DayStatus.AVAILABLE


def next_interval_boundary(
    now: datetime,
    interval_minutes: int,
    tz=pytz.utc,
    origin: Optional[datetime] = None,
) -> datetime:
    """First grid boundary at or after ``now`` in studio time.

    The grid runs from ``origin`` (a day's opening time) in steps of the
    interval; without an origin it is anchored at the top of the hour.
    Seconds are ignored. When ``now`` is before the origin, the origin is
    the boundary.
    """
    local = ensure_aware(now).astimezone(tz).replace(tzinfo=None, second=0, microsecond=0)
    if origin is None:
        anchor = local.replace(minute=0)
    else:
        anchor = ensure_aware(origin, tz).astimezone(tz).replace(tzinfo=None)

    if local <= anchor:
        return tz.localize(anchor)

    elapsed = (local - anchor) // timedelta(minutes=1)
    steps = math.ceil(elapsed / interval_minutes)
    return tz.localize(anchor + timedelta(minutes=steps * interval_minutes))


def within_working_hours(
    start: datetime,
    end: datetime,
    opens_hhmm: str,
    closes_hhmm: str,
    tz=pytz.utc,
) -> bool:
    """True if [start, end) lies inside one day's opening hours in studio time."""
    local_start = ensure_aware(start).astimezone(tz)
    day = local_start.date()
    opens = localize(day, parse_time(opens_hhmm), tz)
    closes = localize(day, parse_time(closes_hhmm), tz)
    return opens <= local_start and ensure_aware(end) <= closes


def iter_days(start: date, end: date) -> Iterator[date]:
    """Calendar days of the closed range [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)

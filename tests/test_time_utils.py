"""Unit tests for calendar math."""
from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytz

from core.exceptions import InvalidTimeError
from database.models import AppointmentStatus
from studio.utils.time_utils import (
    DayStatus,
    build_day_slots,
    day_bounds,
    day_status,
    intervals_overlap,
    iter_days,
    month_bounds,
    next_interval_boundary,
    parse_time,
    slot_overlaps_appointment,
    studio_weekday,
    to_iso_utc,
    within_working_hours,
)

BERLIN = pytz.timezone("Europe/Berlin")
UTC = timezone.utc


def appointment(start: datetime, end: datetime, status: AppointmentStatus = AppointmentStatus.BOOKED):
    return SimpleNamespace(start_time=start, end_time=end, status=status.value)


def test_parse_time():
    assert parse_time("09:00") == time(9, 0)
    assert parse_time("9:05") == time(9, 5)
    assert parse_time("23:59") == time(23, 59)


@pytest.mark.parametrize("value", ["", "9", "25:00", "12:60", "ab:cd", None])
def test_parse_time_rejects_malformed(value):
    with pytest.raises(InvalidTimeError):
        parse_time(value)


def test_studio_weekday_sunday_is_zero():
    assert studio_weekday(date(2030, 1, 6)) == 0  # Sunday
    assert studio_weekday(date(2030, 1, 7)) == 1  # Monday
    assert studio_weekday(date(2030, 1, 12)) == 6  # Saturday


def test_day_slots_half_open():
    day = date(2030, 1, 7)
    starts = list(build_day_slots(day, "10:00", "12:00", 30))
    assert starts[0] == datetime(2030, 1, 7, 10, 0, tzinfo=pytz.utc)
    assert starts[-1] == datetime(2030, 1, 7, 11, 30, tzinfo=pytz.utc)
    assert len(starts) == 4


def test_day_slots_restartable():
    slots = build_day_slots(date(2030, 1, 7), "09:00", "10:00", 15)
    assert list(slots) == list(slots)
    assert len(list(slots)) == 4


def test_day_slots_localized():
    starts = list(build_day_slots(date(2030, 1, 7), "09:00", "10:00", 30, BERLIN))
    # Berlin is UTC+1 in January
    assert starts[0].astimezone(UTC) == datetime(2030, 1, 7, 8, 0, tzinfo=UTC)


def test_day_slots_empty_when_start_not_before_end():
    assert list(build_day_slots(date(2030, 1, 7), "12:00", "12:00", 15)) == []
    assert list(build_day_slots(date(2030, 1, 7), "13:00", "12:00", 15)) == []


def test_day_slots_reject_non_positive_interval():
    with pytest.raises(ValueError):
        build_day_slots(date(2030, 1, 7), "09:00", "17:00", 0)


def test_intervals_touching_do_not_overlap():
    a = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
    b = datetime(2030, 1, 7, 10, 45, tzinfo=UTC)
    c = datetime(2030, 1, 7, 11, 30, tzinfo=UTC)
    assert intervals_overlap(a, b, b, c) is False
    assert intervals_overlap(a, c, b, c) is True
    assert intervals_overlap(a, b + timedelta(minutes=1), b, c) is True


def test_slot_overlap_ignores_canceled():
    start = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
    end = start + timedelta(minutes=45)
    booked = appointment(start, end)
    canceled = appointment(start, end, AppointmentStatus.CANCELED)

    assert slot_overlaps_appointment(start, end, booked) is True
    assert slot_overlaps_appointment(start, end, canceled) is False


@pytest.mark.parametrize("status", [AppointmentStatus.ARRIVED, AppointmentStatus.MISSED, AppointmentStatus.COMPLETED])
def test_slot_overlap_counts_other_statuses(status):
    start = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
    assert slot_overlaps_appointment(start, start + timedelta(minutes=30), appointment(start, start + timedelta(minutes=15), status))


def test_day_status_priority():
    sunday = date(2030, 1, 6)
    monday = date(2030, 1, 7)

    # Sunday wins over everything
    assert day_status(sunday, None, is_before_today=True, has_any_overlap=True) == DayStatus.SUNDAY
    assert day_status(monday, None, is_before_today=True, has_any_overlap=True) == DayStatus.PAST
    assert day_status(monday, None, is_before_today=False, has_any_overlap=True) == DayStatus.BOOKED
    assert day_status(monday, None, is_before_today=False, has_any_overlap=False) == DayStatus.AVAILABLE


def test_day_status_uses_explicit_weekday():
    assert day_status(date(2030, 1, 7), 0, False, False) == DayStatus.SUNDAY


def test_next_interval_boundary_rounds_up():
    now = datetime(2030, 1, 7, 9, 7, 30, tzinfo=UTC)  # 10:07:30 in Berlin
    boundary = next_interval_boundary(now, 15, BERLIN)
    assert boundary == BERLIN.localize(datetime(2030, 1, 7, 10, 15))


def test_next_interval_boundary_on_grid():
    now = datetime(2030, 1, 7, 9, 30, tzinfo=UTC)
    assert next_interval_boundary(now, 15, BERLIN) == BERLIN.localize(datetime(2030, 1, 7, 10, 30))


def test_next_interval_boundary_rolls_hour():
    now = datetime(2030, 1, 7, 9, 50, tzinfo=UTC)
    assert next_interval_boundary(now, 15, BERLIN) == BERLIN.localize(datetime(2030, 1, 7, 11, 0))


def test_next_interval_boundary_from_opening_time():
    opening = BERLIN.localize(datetime(2030, 1, 7, 9, 0))
    now = BERLIN.localize(datetime(2030, 1, 7, 10, 5))
    # 45 minute grid from 09:00: 09:00, 09:45, 10:30
    assert next_interval_boundary(now, 45, BERLIN, origin=opening) == BERLIN.localize(datetime(2030, 1, 7, 10, 30))


def test_next_interval_boundary_off_grid_opening():
    opening = BERLIN.localize(datetime(2030, 1, 7, 9, 10))
    now = BERLIN.localize(datetime(2030, 1, 7, 9, 12, 40))
    assert next_interval_boundary(now, 15, BERLIN, origin=opening) == BERLIN.localize(datetime(2030, 1, 7, 9, 25))

    on_grid = BERLIN.localize(datetime(2030, 1, 7, 9, 40))
    assert next_interval_boundary(on_grid, 15, BERLIN, origin=opening) == on_grid


def test_next_interval_boundary_before_opening():
    opening = BERLIN.localize(datetime(2030, 1, 7, 9, 10))
    now = BERLIN.localize(datetime(2030, 1, 7, 7, 55))
    assert next_interval_boundary(now, 15, BERLIN, origin=opening) == opening


def test_within_working_hours():
    assert within_working_hours(
        BERLIN.localize(datetime(2030, 1, 7, 9, 0)), BERLIN.localize(datetime(2030, 1, 7, 17, 0)), "09:00", "17:00", BERLIN
    )
    # UTC input is compared in studio time: 08:00Z is 09:00 in Berlin
    assert within_working_hours(
        datetime(2030, 1, 7, 8, 0, tzinfo=UTC), datetime(2030, 1, 7, 9, 0, tzinfo=UTC), "09:00", "17:00", BERLIN
    )
    assert not within_working_hours(
        BERLIN.localize(datetime(2030, 1, 7, 8, 45)), BERLIN.localize(datetime(2030, 1, 7, 9, 30)), "09:00", "17:00", BERLIN
    )
    assert not within_working_hours(
        BERLIN.localize(datetime(2030, 1, 7, 16, 30)), BERLIN.localize(datetime(2030, 1, 7, 17, 15)), "09:00", "17:00", BERLIN
    )


def test_iter_days_closed_range():
    days = list(iter_days(date(2030, 1, 30), date(2030, 2, 2)))
    assert days == [date(2030, 1, 30), date(2030, 1, 31), date(2030, 2, 1), date(2030, 2, 2)]
    assert list(iter_days(date(2030, 1, 2), date(2030, 1, 1))) == []


def test_month_bounds():
    assert month_bounds(date(2030, 2, 14)) == (date(2030, 2, 1), date(2030, 2, 28))
    assert month_bounds(date(2028, 2, 14)) == (date(2028, 2, 1), date(2028, 2, 29))


def test_day_bounds_in_studio_time():
    start, end = day_bounds(date(2030, 1, 7), BERLIN)
    assert start.astimezone(UTC) == datetime(2030, 1, 6, 23, 0, tzinfo=UTC)
    assert end - start == timedelta(days=1)


def test_to_iso_utc():
    local = BERLIN.localize(datetime(2030, 1, 7, 10, 0))
    assert to_iso_utc(local) == "2030-01-07T09:00:00+00:00"

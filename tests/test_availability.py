"""Tests for slot generation and calendar day status."""
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.exceptions import InvalidRangeError, ValidationError
from database.fallback import with_fallback
from database.models import AppointmentStatus
from database.repositories import AppointmentRepository, BarberRepository, ServiceRepository
from services.availability import AvailabilityService
from studio.utils.time_utils import DayStatus
from tests.conftest import MONDAY, SUNDAY, berlin


async def add_appointment(session_maker, barber, customer, service, start, minutes, status=None):
    async with session_maker() as session:
        repo = AppointmentRepository(session)
        appointment = await repo.create(
            customer_id=customer.id,
            barber_id=barber.id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            services=[service],
            total_price=service.base_price,
        )
        if status:
            await repo.update_status(appointment.id, status)
        await session.commit()
    return appointment


@pytest.fixture
def availability(session_maker) -> AvailabilityService:
    return AvailabilityService(session_maker, timezone="Europe/Berlin", interval_minutes=15)


def unavailable_starts(slots):
    return [s.start.strftime("%H:%M") for s in slots if not s.available]


@pytest.mark.asyncio
async def test_full_free_day(availability, sample_barber):
    """45 minute service on a 09:00-17:00 day, 15 minute grid."""
    slots = await availability.generate_slots(sample_barber.id, MONDAY, 45)

    assert len(slots) == 30
    assert slots[0].start == berlin(MONDAY, 9, 0)
    assert slots[-1].start == berlin(MONDAY, 16, 15)
    assert slots[-1].end == berlin(MONDAY, 17, 0)
    assert all(s.available for s in slots)
    assert [s.start for s in slots] == sorted(s.start for s in slots)


@pytest.mark.asyncio
async def test_every_slot_fits_working_hours(availability, sample_barber):
    for duration in (15, 30, 50, 90):
        slots = await availability.generate_slots(sample_barber.id, MONDAY, duration)
        assert slots
        for slot in slots:
            assert slot.end - slot.start == timedelta(minutes=duration)
            assert slot.start >= berlin(MONDAY, 9, 0)
            assert slot.end <= berlin(MONDAY, 17, 0)


@pytest.mark.asyncio
async def test_existing_appointment_blocks_overlapping_slots(
    availability, session_maker, sample_barber, sample_customer, sample_services
):
    await add_appointment(
        session_maker, sample_barber, sample_customer, sample_services["haircut"], berlin(MONDAY, 10, 0), 45
    )

    slots = await availability.generate_slots(sample_barber.id, MONDAY, 45)

    assert unavailable_starts(slots) == ["09:30", "09:45", "10:00", "10:15", "10:30"]
    # Back-to-back on both sides stays bookable
    by_start = {s.start: s for s in slots}
    assert by_start[berlin(MONDAY, 9, 15)].available
    assert by_start[berlin(MONDAY, 10, 45)].available


@pytest.mark.asyncio
async def test_canceled_appointment_frees_slots(
    availability, session_maker, sample_barber, sample_customer, sample_services
):
    await add_appointment(
        session_maker, sample_barber, sample_customer, sample_services["haircut"],
        berlin(MONDAY, 10, 0), 45, status=AppointmentStatus.CANCELED,
    )

    slots = await availability.generate_slots(sample_barber.id, MONDAY, 45)
    assert all(s.available for s in slots)


@pytest.mark.asyncio
async def test_time_off_blocks_slots(availability, session_maker, sample_barber):
    async with session_maker() as session:
        await BarberRepository(session).create_time_off(
            sample_barber.id, berlin(MONDAY, 12, 0), berlin(MONDAY, 13, 0), reason="Dentist"
        )
        await session.commit()

    slots = await availability.generate_slots(sample_barber.id, MONDAY, 45)
    assert unavailable_starts(slots) == ["11:30", "11:45", "12:00", "12:15", "12:30", "12:45"]


@pytest.mark.asyncio
async def test_no_working_hours_means_no_slots(availability, sample_barber):
    assert await availability.generate_slots(sample_barber.id, SUNDAY, 45) == []
    assert await availability.generate_slots(sample_barber.id, MONDAY + timedelta(days=1), 45) == []


@pytest.mark.asyncio
async def test_duration_longer_than_window(availability, sample_barber):
    assert await availability.generate_slots(sample_barber.id, MONDAY, 9 * 60) == []
    slots = await availability.generate_slots(sample_barber.id, MONDAY, 8 * 60)
    assert len(slots) == 1


@pytest.mark.asyncio
async def test_custom_interval(availability, sample_barber):
    slots = await availability.generate_slots(sample_barber.id, MONDAY, 60, interval_minutes=60)
    assert [s.start.strftime("%H:%M") for s in slots] == [
        "09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"
    ]


@pytest.mark.asyncio
async def test_elapsed_slots_unavailable(availability, sample_barber):
    slots = await availability.generate_slots(sample_barber.id, MONDAY, 45, now=berlin(MONDAY, 10, 7))
    assert unavailable_starts(slots) == ["09:00", "09:15", "09:30", "09:45", "10:00"]


@pytest.mark.asyncio
async def test_elapsed_cutoff_follows_coarse_grid(availability, sample_barber):
    """With a 45 minute grid the 10:30 start is still ahead at 10:05."""
    slots = await availability.generate_slots(
        sample_barber.id, MONDAY, 45, interval_minutes=45, now=berlin(MONDAY, 10, 5)
    )

    assert [(s.start.strftime("%H:%M"), s.available) for s in slots[:4]] == [
        ("09:00", False), ("09:45", False), ("10:30", True), ("11:15", True),
    ]


@pytest.mark.asyncio
async def test_elapsed_cutoff_follows_opening_time(availability, session_maker, sample_barber):
    async with session_maker() as session:
        await BarberRepository(session).set_working_hours(sample_barber.id, 1, "09:10", "12:00")
        await session.commit()

    slots = await availability.generate_slots(sample_barber.id, MONDAY, 30, now=berlin(MONDAY, 9, 12))

    assert unavailable_starts(slots) == ["09:10"]
    assert slots[1].start == berlin(MONDAY, 9, 25)
    assert slots[1].available


@pytest.mark.asyncio
async def test_lunch_break_skips_starts(session_maker, sample_barber):
    service = AvailabilityService(session_maker, timezone="Europe/Berlin", lunch_break=("12:00", "13:00"))
    slots = await service.generate_slots(sample_barber.id, MONDAY, 45)

    starts = [s.start.strftime("%H:%M") for s in slots]
    assert "12:00" not in starts
    assert "12:45" not in starts
    assert "13:00" in starts
    assert len(slots) == 26


@pytest.mark.asyncio
async def test_invalid_duration_rejected(availability, sample_barber):
    with pytest.raises(ValidationError):
        await availability.generate_slots(sample_barber.id, MONDAY, 0)
    with pytest.raises(ValidationError):
        await availability.generate_slots(sample_barber.id, MONDAY, 45, interval_minutes=-15)
    with pytest.raises(ValidationError):
        await availability.generate_slots(sample_barber.id, MONDAY, 45, interval_minutes=0)
    with pytest.raises(ValidationError):
        await availability.generate_slots_for_service(1, MONDAY, 45, interval_minutes=0)


@pytest.mark.asyncio
async def test_slots_for_service_lists_every_barber(
    availability, session_maker, sample_barber, second_barber, sample_services
):
    async with session_maker() as session:
        await BarberRepository(session).create(display_name="Zoe")
        inactive = await BarberRepository(session).create(display_name="Bruno", is_active=False)
        await BarberRepository(session).set_working_hours(inactive.id, 1, "09:00", "17:00")
        await session.commit()

    result = await availability.generate_slots_for_service(sample_services["haircut"].id, MONDAY, 45)

    assert [b.display_name for b in result] == ["Anton", "Mika", "Zoe"]
    anton, mika, zoe = result
    assert [s.start.strftime("%H:%M") for s in anton.slots] == [
        "12:00", "12:15", "12:30", "12:45", "13:00", "13:15"
    ]
    assert len(mika.slots) == 30
    assert zoe.slots == []
    assert zoe.to_dict()["slots"] == []


@pytest.mark.asyncio
async def test_slots_for_inactive_service(availability, session_maker, sample_barber, sample_services):
    async with session_maker() as session:
        await ServiceRepository(session).deactivate(sample_services["beard"].id)
        await session.commit()

    assert await availability.generate_slots_for_service(sample_services["beard"].id, MONDAY, 30) == []
    assert await availability.generate_slots_for_service(9999, MONDAY, 30) == []


@pytest.mark.asyncio
async def test_date_range_statuses(availability, sample_barber, sample_services):
    tuesday = MONDAY + timedelta(days=1)
    result = await availability.check_availability_for_date_range(
        sample_services["haircut"].id, SUNDAY, tuesday, 45
    )

    assert result == {
        SUNDAY.isoformat(): DayStatus.SUNDAY,
        MONDAY.isoformat(): DayStatus.AVAILABLE,
        tuesday.isoformat(): DayStatus.BOOKED,
    }


@pytest.mark.asyncio
async def test_fully_booked_day(
    availability, session_maker, sample_barber, sample_customer, sample_services
):
    await add_appointment(
        session_maker, sample_barber, sample_customer, sample_services["haircut"], berlin(MONDAY, 9, 0), 8 * 60
    )

    result = await availability.check_availability_for_date_range(
        sample_services["haircut"].id, MONDAY, MONDAY, 45
    )
    assert result == {MONDAY.isoformat(): DayStatus.BOOKED}


@pytest.mark.asyncio
async def test_one_free_barber_makes_day_available(
    availability, session_maker, sample_barber, second_barber, sample_customer, sample_services
):
    await add_appointment(
        session_maker, sample_barber, sample_customer, sample_services["haircut"], berlin(MONDAY, 9, 0), 8 * 60
    )

    result = await availability.check_availability_for_date_range(
        sample_services["haircut"].id, MONDAY, MONDAY, 45
    )
    assert result[MONDAY.isoformat()] == DayStatus.AVAILABLE


@pytest.mark.asyncio
async def test_date_range_rejects_reversed_range(availability, sample_services):
    with pytest.raises(InvalidRangeError):
        await availability.check_availability_for_date_range(
            sample_services["haircut"].id, MONDAY, SUNDAY, 45
        )


@pytest.mark.asyncio
async def test_barber_range_marks_past_days(availability, sample_barber):
    tuesday = MONDAY + timedelta(days=1)
    result = await availability.check_barber_availability_for_date_range(
        sample_barber.id, SUNDAY, MONDAY + timedelta(days=7), 45, today=tuesday
    )

    assert result[SUNDAY.isoformat()] == DayStatus.SUNDAY
    assert result[MONDAY.isoformat()] == DayStatus.PAST
    assert result[tuesday.isoformat()] == DayStatus.BOOKED
    assert result[(MONDAY + timedelta(days=7)).isoformat()] == DayStatus.AVAILABLE


@pytest.mark.asyncio
async def test_storage_failure_falls_back(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}",
        poolclass=NullPool,
    )
    broken = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    service = AvailabilityService(broken, timezone="Europe/Berlin")

    try:
        assert await service.generate_slots(1, MONDAY, 45) == []
        assert await service.generate_slots_for_service(1, MONDAY, 45) == []
        assert await service.check_availability_for_date_range(1, MONDAY, MONDAY, 45) == {}
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_fallback_only_covers_connection_errors():
    async def offline():
        raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

    async def bad_query():
        raise ProgrammingError("SELECT missing FROM barbers", {}, Exception("no such column: missing"))

    assert await with_fallback(offline, [], label="offline") == []
    with pytest.raises(ProgrammingError):
        await with_fallback(bad_query, [], label="bad_query")
